"""Synchronise tabletop RPG character sheets into a Notion database."""

from .client import CharacterSyncClient, NotionApi  # noqa: F401
from .config import MissingConfiguration, SyncSettings  # noqa: F401
from .errors import (  # noqa: F401
    CharacterSyncError,
    FetchError,
    NotFoundError,
    ParseError,
    UpstreamError,
    ValidationError,
)
from .fetcher import CharacterSheetFetcher  # noqa: F401
from .mappers import PROPERTY_SCHEMA, build_properties, build_title_property  # noqa: F401
from .models import CharacterRecord, PageReference, Skill, SyncOutcome  # noqa: F401
from .parser import parse_character_sheet  # noqa: F401
from .pipeline import sync_character  # noqa: F401
