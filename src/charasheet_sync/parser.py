"""Parse raw character sheets into :class:`CharacterRecord` instances.

The character repository serves sheets either as pure JSON or as a script
assignment such as ``pc = {...};`` whose right-hand side is an object literal
with unquoted keys, single quotes and trailing commas. The latter is handled
by slicing off the assignment and reading the literal as JSON5; nothing from
the remote body is ever executed.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

import json5
import structlog

from .errors import ParseError
from .models import ATTRIBUTE_NAMES, DERIVED_NAMES, CharacterRecord, Skill
from .utils import extract_digits, is_blank

LOGGER = structlog.get_logger(__name__)

SPOILER_MARKER = "※※※　以下、ネタバレ有　※※※"
SNIPPET_RADIUS = 30

_ASSIGNMENT = re.compile(r"^(?:(?:var|let|const)\s+)?[A-Za-z_$][\w$]*\s*=\s*")
_UNDEFINED = re.compile(r"""('(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*")|(?<![\w$])undefined(?![\w$])""")
_ERROR_LOCATION = re.compile(r"<string>:(\d+) .*? at column (\d+)")

IDENTITY_KEYS = ("id", "ID", "pc_id", "data_id")

TEXT_FIELDS: Dict[str, tuple] = {
    "name": ("name", "pc_name"),
    "job": ("job",),
    "sex": ("sex", "gender"),
    "birthplace": ("birthplace", "origin"),
    "hair_color": ("hair_color",),
    "eye_color": ("eye_color",),
    "skin_color": ("skin_color",),
    "chat_palette": ("chat_palette",),
}

NUMERIC_TEXT_FIELDS: Dict[str, tuple] = {
    "age": ("age",),
    "height": ("height",),
    "weight": ("weight",),
}

SCORE_ALIASES: Dict[str, tuple] = {
    "STR": ("STR", "st"),
    "CON": ("CON", "co"),
    "POW": ("POW", "po"),
    "DEX": ("DEX", "dx"),
    "APP": ("APP", "ap"),
    "SIZ": ("SIZ", "si"),
    "INT": ("INT", "in"),
    "EDU": ("EDU", "ed"),
    "SAN": ("SAN", "san"),
    "idea": ("idea", "IDEA"),
    "luck": ("luck", "LUCK"),
    "knowledge": ("knowledge", "know"),
}

MEMO_KEYS = ("memo", "pc_making_memo")


def _snippet(text: str, position: Optional[int]) -> str:
    if position is None:
        return text[: SNIPPET_RADIUS * 2]
    start = max(position - SNIPPET_RADIUS, 0)
    return text[start : position + SNIPPET_RADIUS]


def _error_position(text: str, message: str) -> Optional[int]:
    match = _ERROR_LOCATION.search(message)
    if not match:
        return None
    line, column = int(match.group(1)), int(match.group(2))
    lines = text.split("\n")
    return sum(len(previous) + 1 for previous in lines[: line - 1]) + column - 1


def _strip_assignment(text: str) -> str:
    match = _ASSIGNMENT.match(text)
    if match:
        text = text[match.end():]
    text = text.rstrip()
    while text.endswith(";"):
        text = text[:-1].rstrip()
    if not text.startswith("{"):
        raise ParseError(
            "Character sheet is neither JSON nor an object literal assignment",
            snippet=_snippet(text, 0),
        )
    return text


def _replace_undefined(text: str) -> str:
    # JS ``undefined`` has no JSON5 spelling; string contents are left alone.
    return _UNDEFINED.sub(lambda match: match.group(1) or "null", text)


def _load_literal(text: str) -> Any:
    try:
        return json5.loads(_replace_undefined(text), strict=False)
    except ValueError as exc:
        raise ParseError(
            f"Failed to parse character sheet literal: {exc}",
            snippet=_snippet(text, _error_position(text, str(exc))),
        ) from exc


def load_character_payload(raw: str) -> Dict[str, Any]:
    """Decode a raw sheet body into a mapping without interpreting its fields."""

    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    text = (raw or "").lstrip("\ufeff").strip()
    if not text:
        raise ParseError("Character sheet body is empty")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        LOGGER.debug("json_decode_failed", error=exc.msg, position=exc.pos)
        payload = _load_literal(_strip_assignment(text))

    if not isinstance(payload, Mapping):
        raise ParseError(
            f"Character sheet must be an object, got {type(payload).__name__}",
            snippet=_snippet(text, 0),
        )
    return dict(payload)


def _first_present(payload: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = payload.get(key)
        if not is_blank(value):
            return value
    return None


def _text(value: Any) -> Optional[str]:
    if is_blank(value):
        return None
    return str(value).strip()


def _score(value: Any) -> Optional[object]:
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return value.strip()
    return value


def _identity(payload: Mapping[str, Any]) -> int:
    value = _first_present(payload, IDENTITY_KEYS)
    if value is None:
        raise ParseError("Character sheet has no identity field (expected one of: %s)" % ", ".join(IDENTITY_KEYS))
    if isinstance(value, bool):
        raise ParseError(f"Character identity must be numeric, got {value!r}")
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ParseError(f"Character identity must be numeric, got {value!r}") from exc


def truncate_spoilers(memo: Optional[str]) -> Optional[str]:
    """Drop everything from the spoiler marker onwards."""
    if memo is None:
        return None
    index = memo.find(SPOILER_MARKER)
    if index != -1:
        memo = memo[:index]
    memo = memo.strip()
    return memo or None


def _skills(raw: Any) -> List[Skill]:
    if not raw:
        return []
    if isinstance(raw, Mapping):
        entries = [{"name": name, "value": value} for name, value in raw.items()]
    elif isinstance(raw, list):
        entries = raw
    else:
        raise ParseError(f"Skills must be a list or an object, got {type(raw).__name__}")

    skills: List[Skill] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        name = _text(entry.get("name"))
        value = _score(entry.get("value"))
        if name is None or value is None:
            continue
        skills.append(Skill(name=name, value=value))
    return skills


def parse_character_sheet(raw: str) -> CharacterRecord:
    """Parse a raw body from the character repository.

    Raises
    ------
    ParseError
        If the body cannot be decoded or lacks a numeric identity field.
    """

    payload = load_character_payload(raw)
    record = CharacterRecord(character_id=_identity(payload))

    for attribute, keys in TEXT_FIELDS.items():
        setattr(record, attribute, _text(_first_present(payload, keys)))

    for attribute, keys in NUMERIC_TEXT_FIELDS.items():
        setattr(record, attribute, extract_digits(_first_present(payload, keys)))

    for name, keys in SCORE_ALIASES.items():
        value = _score(_first_present(payload, keys))
        if value is None:
            continue
        if name in ATTRIBUTE_NAMES:
            record.attributes[name] = value
        elif name in DERIVED_NAMES:
            record.derived[name] = value

    record.memo = truncate_spoilers(_text(_first_present(payload, MEMO_KEYS)))
    record.skills = _skills(payload.get("skills"))

    LOGGER.debug(
        "character_sheet_parsed",
        character_id=record.character_id,
        attributes=len(record.attributes),
        skills=len(record.skills),
    )
    return record
