"""Client helpers for upserting character pages into a Notion database."""
from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Optional

import requests
import structlog

from .config import DEFAULT_NOTION_BASE_URL, DEFAULT_TIMEOUT
from .errors import UpstreamError
from .models import PageReference, SyncOutcome

LOGGER = structlog.get_logger(__name__)

NOTION_VERSION = "2022-06-28"

# Notion error code -> (status returned to our caller, message)
_ERROR_TRANSLATIONS: Dict[str, tuple] = {
    "unauthorized": (401, "The Notion API key was rejected"),
    "restricted_resource": (401, "The Notion integration does not have access to this database"),
    "object_not_found": (404, "The Notion database or page was not found; check the database ID and that it is shared with the integration"),
    "validation_error": (500, "Notion rejected the page properties"),
    "rate_limited": (500, "Notion rate limit reached; try again later"),
    "conflict_error": (500, "Notion reported a conflicting write; try again"),
}

_STATUS_CODES = {401: "unauthorized", 403: "restricted_resource", 404: "object_not_found", 429: "rate_limited"}


def translate_error(response: requests.Response, action: str) -> UpstreamError:
    """Build an :class:`UpstreamError` from a failed Notion response."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, Mapping):
        body = {}

    code = body.get("code") or _STATUS_CODES.get(response.status_code)
    detail = body.get("message") or response.text
    status, message = _ERROR_TRANSLATIONS.get(code, (500, f"Notion API request failed ({response.status_code})"))
    if code == "validation_error" and detail:
        message = f"{message}: {detail}"
    return UpstreamError(f"Failed to {action}: {message}", status_code=status, code=code)


class NotionApi:
    """Small wrapper around the Notion API endpoints used by the sync."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = DEFAULT_NOTION_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Notion-Version": NOTION_VERSION,
                "Content-Type": "application/json",
            }
        )
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _request(self, method: str, path: str, *, action: str, payload: Mapping[str, object]) -> Dict[str, Any]:
        try:
            response = self._session.request(
                method,
                f"{self._base_url}{path}",
                json=payload,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise UpstreamError(f"Failed to {action}: could not reach Notion ({exc})") from exc
        if response.status_code >= 400:
            raise translate_error(response, action)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"Failed to {action}: Notion returned a non-JSON response") from exc

    def close(self) -> None:
        self._session.close()

    def query_database(
        self,
        database_id: str,
        filter_body: Mapping[str, object],
        *,
        start_cursor: Optional[str] = None,
        page_size: int = 100,
    ) -> Dict[str, Any]:
        payload: Dict[str, object] = {"filter": filter_body, "page_size": page_size}
        if start_cursor:
            payload["start_cursor"] = start_cursor
        return self._request(
            "POST",
            f"/databases/{database_id}/query",
            action="query Notion database",
            payload=payload,
        )

    def iter_database_pages(
        self,
        database_id: str,
        filter_body: Mapping[str, object],
        *,
        page_size: int = 100,
    ) -> Iterator[Mapping[str, object]]:
        """Iterate over the pages matching ``filter_body``.

        Further result pages are only requested once the caller has consumed
        the current one.
        """

        cursor: Optional[str] = None
        while True:
            data = self.query_database(database_id, filter_body, start_cursor=cursor, page_size=page_size)
            yield from data.get("results", [])
            if not data.get("has_more"):
                break
            cursor = data.get("next_cursor")

    def create_page(self, payload: Mapping[str, object]) -> Dict[str, Any]:
        return self._request("POST", "/pages", action="create Notion page", payload=payload)

    def update_page(self, page_id: str, properties: Mapping[str, object]) -> Dict[str, Any]:
        return self._request(
            "PATCH",
            f"/pages/{page_id}",
            action="update Notion page",
            payload={"properties": properties},
        )


def _page_reference(page: Mapping[str, object]) -> PageReference:
    url = page.get("url")
    return PageReference(id=str(page.get("id")), url=str(url) if url else None)


class CharacterSyncClient:
    """Find-or-create a single character page in a Notion database."""

    def __init__(
        self,
        notion_api: NotionApi,
        *,
        database_id: str,
        id_property: str = "ID",
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        self._notion = notion_api
        self._database_id = database_id
        self._id_property = id_property
        self._logger = (logger or LOGGER).bind(component="notion_client")

    def find_page(self, character_id: int) -> Optional[PageReference]:
        filter_body = {
            "property": self._id_property,
            "number": {"equals": character_id},
        }
        pages = self._notion.iter_database_pages(self._database_id, filter_body, page_size=1)
        first = next(iter(pages), None)
        if first is None:
            return None
        page = _page_reference(first)
        self._logger.debug("existing_page_found", character_id=character_id, page_id=page.id)
        return page

    def upsert(
        self,
        character_id: int,
        properties: Mapping[str, object],
        *,
        title: Optional[Mapping[str, object]] = None,
    ) -> SyncOutcome:
        """Update the page for ``character_id`` or create it when none exists.

        Exactly one write is issued per call. ``title`` is merged into the
        properties only when a new page is created.
        """

        existing = self.find_page(character_id)
        if existing is not None:
            self._logger.info("updating_notion_page", character_id=character_id, page_id=existing.id)
            page = self._notion.update_page(existing.id, properties)
            reference = _page_reference(page) if page.get("id") else existing
            return SyncOutcome(
                action="updated",
                character_id=character_id,
                message=f"Updated the Notion page for character {character_id}",
                page=reference,
            )

        payload = {
            "parent": {"database_id": self._database_id},
            "properties": {**(title or {}), **properties},
        }
        self._logger.info("creating_notion_page", character_id=character_id)
        page = self._notion.create_page(payload)
        return SyncOutcome(
            action="created",
            character_id=character_id,
            message=f"Created a Notion page for character {character_id}",
            page=_page_reference(page),
        )
