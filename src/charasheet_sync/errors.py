"""Error taxonomy shared by the fetch → parse → map → upsert pipeline."""
from __future__ import annotations

from typing import Optional


class CharacterSyncError(RuntimeError):
    """Base class for errors surfaced to the caller of a sync."""

    status_code = 500
    kind = "CharacterSyncError"

    def to_dict(self) -> dict:
        return {"message": str(self), "error": self.kind}


class ValidationError(CharacterSyncError):
    """Raised when the request input is missing or malformed."""

    status_code = 400
    kind = "ValidationError"


class NotFoundError(CharacterSyncError):
    """Raised when the character repository has no sheet for the ID."""

    status_code = 404
    kind = "NotFoundError"

    def __init__(self, character_id: object) -> None:
        super().__init__(f"Character {character_id} was not found in the character repository")
        self.character_id = character_id


class FetchError(CharacterSyncError):
    """Raised for network failures or non-404 errors from the character repository."""

    kind = "FetchError"


class ParseError(CharacterSyncError):
    """Raised when a fetched character sheet cannot be parsed."""

    kind = "ParseError"

    def __init__(self, message: str, *, snippet: Optional[str] = None) -> None:
        super().__init__(message)
        self.snippet = snippet


class UpstreamError(CharacterSyncError):
    """Raised when the Notion API rejects a query or write."""

    kind = "UpstreamError"

    def __init__(self, message: str, *, status_code: int = 500, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
