"""Retrieve raw character sheets from the character repository."""
from __future__ import annotations

from typing import Optional, Union

import requests
import structlog

from .config import DEFAULT_SOURCE_BASE_URL, DEFAULT_SOURCE_SUFFIX, DEFAULT_TIMEOUT
from .errors import FetchError, NotFoundError

LOGGER = structlog.get_logger(__name__)

CharacterId = Union[int, str]


class CharacterSheetFetcher:
    """Small wrapper around the character repository's per-character endpoint."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_SOURCE_BASE_URL,
        suffix: str = DEFAULT_SOURCE_SUFFIX,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._suffix = suffix
        self._timeout = timeout
        self._session = session or requests.Session()
        self._logger = (logger or LOGGER).bind(component="fetcher")

    def close(self) -> None:
        self._session.close()

    def build_url(self, character_id: CharacterId) -> str:
        return f"{self._base_url}/{str(character_id).strip()}{self._suffix}"

    def fetch(self, character_id: CharacterId) -> str:
        """Return the raw body of the sheet for ``character_id``.

        A single GET is issued; there are no retries.
        """
        url = self.build_url(character_id)
        self._logger.info("fetching_character_sheet", character_id=str(character_id), url=url)
        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            raise FetchError(f"Failed to reach the character repository for {character_id}: {exc}") from exc

        if response.status_code == 404:
            raise NotFoundError(character_id)
        if response.status_code >= 400:
            raise FetchError(
                f"Character repository returned {response.status_code} for {character_id}"
            )

        # Sheets are UTF-8 but served without a charset.
        if not response.encoding or response.encoding.lower() == "iso-8859-1":
            response.encoding = "utf-8"
        return response.text
