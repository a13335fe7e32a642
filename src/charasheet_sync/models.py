"""Data structures passed between the pipeline stages."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

ATTRIBUTE_NAMES = ("STR", "CON", "POW", "DEX", "APP", "SIZ", "INT", "EDU")
DERIVED_NAMES = ("SAN", "idea", "luck", "knowledge")

Score = Optional[object]


@dataclass(frozen=True)
class Skill:
    """A named skill and its success value."""

    name: str
    value: object


@dataclass
class CharacterRecord:
    """Parsed representation of one character sheet.

    Produced fresh for every sync and never persisted. Fields missing from the
    source sheet are ``None``; ``attributes`` and ``derived`` only contain the
    scores that were present.
    """

    character_id: int
    name: Optional[str] = None
    job: Optional[str] = None
    sex: Optional[str] = None
    age: Optional[int] = None
    height: Optional[int] = None
    weight: Optional[int] = None
    birthplace: Optional[str] = None
    hair_color: Optional[str] = None
    eye_color: Optional[str] = None
    skin_color: Optional[str] = None
    attributes: Dict[str, Score] = field(default_factory=dict)
    derived: Dict[str, Score] = field(default_factory=dict)
    memo: Optional[str] = None
    chat_palette: Optional[str] = None
    skills: List[Skill] = field(default_factory=list)


@dataclass(frozen=True)
class PageReference:
    """Identifier of a Notion page matching a character ID."""

    id: str
    url: Optional[str] = None


@dataclass(frozen=True)
class SyncOutcome:
    """Result of a single synchronisation."""

    action: str
    character_id: int
    message: str
    page: Optional[PageReference] = None

    @property
    def page_id(self) -> Optional[str]:
        return self.page.id if self.page else None

    @property
    def url(self) -> Optional[str]:
        return self.page.url if self.page else None

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "message": self.message,
            "action": self.action,
            "characterId": self.character_id,
        }
        if self.page:
            payload["pageId"] = self.page.id
            if self.page.url:
                payload["url"] = self.page.url
        return payload
