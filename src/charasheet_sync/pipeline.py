"""Fetch → parse → map → upsert for a single character."""
from __future__ import annotations

import re
from contextlib import ExitStack, closing
from typing import Optional

import structlog

from .client import CharacterSyncClient, NotionApi
from .config import SyncSettings
from .errors import ValidationError
from .fetcher import CharacterSheetFetcher
from .mappers import build_properties, build_title_property
from .models import SyncOutcome
from .parser import parse_character_sheet

LOGGER = structlog.get_logger(__name__)

_NUMERIC_ID = re.compile(r"[0-9]+")


def normalise_character_id(value: object) -> int:
    """Validate a caller-supplied character ID and return it as an int."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("A character ID is required")
    if isinstance(value, bool):
        raise ValidationError("The character ID must be numeric")
    if isinstance(value, int):
        character_id = value
    else:
        text = str(value).strip()
        if not _NUMERIC_ID.fullmatch(text):
            raise ValidationError(f"The character ID must be numeric, got {text!r}")
        character_id = int(text)
    if character_id <= 0:
        raise ValidationError("The character ID must be a positive number")
    return character_id


def sync_character(
    character_id: object,
    settings: SyncSettings,
    *,
    fetcher: Optional[CharacterSheetFetcher] = None,
    notion_api: Optional[NotionApi] = None,
    dry_run: bool = False,
    logger: Optional[structlog.BoundLogger] = None,
) -> SyncOutcome:
    """Synchronise one character sheet into the configured Notion database.

    Every stage runs once and in order; errors propagate to the caller
    unchanged.
    """

    log = (logger or LOGGER).bind(component="pipeline")
    numeric_id = normalise_character_id(character_id)
    if not dry_run:
        settings.require_notion()

    with ExitStack() as owned:
        if fetcher is None:
            fetcher = owned.enter_context(
                closing(
                    CharacterSheetFetcher(
                        base_url=settings.source_base_url,
                        suffix=settings.source_suffix,
                        timeout=settings.timeout,
                    )
                )
            )
        raw = fetcher.fetch(numeric_id)
        record = parse_character_sheet(raw)
        if record.character_id != numeric_id:
            log.warning("character_id_mismatch", requested=numeric_id, sheet=record.character_id)

        properties = build_properties(record, numeric_id)
        log.info("character_sheet_mapped", character_id=numeric_id, properties=sorted(properties))

        if dry_run:
            return SyncOutcome(
                action="skipped",
                character_id=numeric_id,
                message=f"Dry run: {len(properties)} properties mapped for character {numeric_id}",
            )

        if notion_api is None:
            notion_api = owned.enter_context(
                closing(
                    NotionApi(
                        settings.notion_api_key,
                        base_url=settings.notion_base_url,
                        timeout=settings.timeout,
                    )
                )
            )
        client = CharacterSyncClient(
            notion_api,
            database_id=settings.database_id,
            id_property=settings.id_property,
            logger=log,
        )
        outcome = client.upsert(numeric_id, properties, title=build_title_property(record))

    log.info("character_synced", character_id=numeric_id, action=outcome.action, page_id=outcome.page_id)
    return outcome
