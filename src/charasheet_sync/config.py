"""Runtime configuration for the character sheet synchronisation service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import CharacterSyncError

DEFAULT_SOURCE_BASE_URL = "https://charasheet.vampire-blood.net"
DEFAULT_SOURCE_SUFFIX = ".js"
DEFAULT_NOTION_BASE_URL = "https://api.notion.com/v1"
DEFAULT_TIMEOUT = 30.0
DEFAULT_PORT = 3000


class MissingConfiguration(CharacterSyncError):
    """Raised when a mandatory configuration value is absent."""

    kind = "ConfigurationError"


@dataclass(frozen=True)
class SyncSettings:
    """Credentials and endpoints used by a single synchronisation run."""

    notion_api_key: Optional[str] = None
    database_id: Optional[str] = None
    source_base_url: str = DEFAULT_SOURCE_BASE_URL
    source_suffix: str = DEFAULT_SOURCE_SUFFIX
    notion_base_url: str = DEFAULT_NOTION_BASE_URL
    id_property: str = "ID"
    timeout: float = DEFAULT_TIMEOUT
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, *, use_dotenv: bool = True) -> "SyncSettings":
        """Build settings from the process environment.

        A ``.env`` file in the working directory is loaded first unless
        ``use_dotenv`` is false or an explicit ``environ`` mapping is given.
        """

        if environ is None:
            if use_dotenv:
                load_dotenv()
            environ = os.environ

        return cls(
            notion_api_key=environ.get("NOTION_API_KEY") or environ.get("NOTION_TOKEN") or None,
            database_id=environ.get("NOTION_DATABASE_ID") or None,
            source_base_url=environ.get("CHARASHEET_BASE_URL") or DEFAULT_SOURCE_BASE_URL,
            source_suffix=environ.get("CHARASHEET_SUFFIX") or DEFAULT_SOURCE_SUFFIX,
            notion_base_url=environ.get("NOTION_BASE_URL") or DEFAULT_NOTION_BASE_URL,
            id_property=environ.get("NOTION_ID_PROPERTY") or "ID",
            timeout=_parse_float(environ.get("CHARASHEET_SYNC_TIMEOUT"), DEFAULT_TIMEOUT),
            port=int(_parse_float(environ.get("PORT"), DEFAULT_PORT)),
        )

    def require_notion(self) -> None:
        """Ensure the Notion credential and database are configured."""
        missing = []
        if not self.notion_api_key:
            missing.append("NOTION_API_KEY")
        if not self.database_id:
            missing.append("NOTION_DATABASE_ID")
        if missing:
            raise MissingConfiguration(
                f"{', '.join(missing)} must be set in the environment or .env file"
            )


def _parse_float(value: Optional[str], default: float) -> float:
    if not value:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise MissingConfiguration(f"Expected a number, got {value!r}") from exc
