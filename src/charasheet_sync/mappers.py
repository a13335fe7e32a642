"""Mapping helpers for building Notion payloads from character records."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from .models import CharacterRecord, Skill
from .utils import is_blank

TITLE_PROPERTY = "名前"
UNTITLED = "未設定"

RICH_TEXT_CHUNK = 2000
RICH_TEXT_MAX_ITEMS = 100
SELECT_NAME_LIMIT = 100


@dataclass(frozen=True)
class PropertyRule:
    """One row of the character → Notion property table."""

    source: str
    target: str
    kind: str
    coerce: Optional[Callable[[Any], Any]] = None


def _stringify_score(value: Any) -> Optional[str]:
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def format_skill_lines(skills: Iterable[Skill]) -> Optional[str]:
    """Render skills as one ``CCB<=value 【name】`` chat command per line."""
    lines = [f"CCB<={skill.value} 【{skill.name}】" for skill in skills]
    return "\n".join(lines) or None


PROPERTY_SCHEMA: Sequence[PropertyRule] = (
    PropertyRule("character_id", "ID", "number"),
    PropertyRule("job", "職業", "rich_text"),
    PropertyRule("sex", "性別", "select"),
    PropertyRule("age", "年齢", "number"),
    PropertyRule("height", "身長", "number"),
    PropertyRule("weight", "体重", "number"),
    PropertyRule("birthplace", "出身地", "select"),
    PropertyRule("hair_color", "髪色", "select"),
    PropertyRule("eye_color", "瞳色", "select"),
    PropertyRule("skin_color", "肌色", "select"),
    PropertyRule("attributes.STR", "STR", "select", _stringify_score),
    PropertyRule("attributes.CON", "CON", "select", _stringify_score),
    PropertyRule("attributes.POW", "POW", "select", _stringify_score),
    PropertyRule("attributes.DEX", "DEX", "select", _stringify_score),
    PropertyRule("attributes.APP", "APP", "select", _stringify_score),
    PropertyRule("attributes.SIZ", "SIZ", "select", _stringify_score),
    PropertyRule("attributes.INT", "INT", "select", _stringify_score),
    PropertyRule("attributes.EDU", "EDU", "select", _stringify_score),
    PropertyRule("derived.SAN", "SAN値", "select", _stringify_score),
    PropertyRule("derived.idea", "アイデア", "select", _stringify_score),
    PropertyRule("derived.luck", "幸運", "select", _stringify_score),
    PropertyRule("derived.knowledge", "知識", "select", _stringify_score),
    PropertyRule("memo", "メモ欄", "rich_text"),
    PropertyRule("skills", "技能", "rich_text", format_skill_lines),
    PropertyRule("chat_palette", "チャットパレット", "rich_text"),
)


def _resolve(record: CharacterRecord, path: str) -> Any:
    value: Any = record
    for part in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def _chunks(text: str) -> List[str]:
    return [text[index : index + RICH_TEXT_CHUNK] for index in range(0, len(text), RICH_TEXT_CHUNK)]


def _build_title_payload(value: str) -> Dict[str, Any]:
    return {"title": [{"text": {"content": value[:RICH_TEXT_CHUNK]}}]}


def _build_rich_text_payload(value: Any) -> Dict[str, Any]:
    text = str(value)
    return {
        "rich_text": [
            {"text": {"content": chunk}}
            for chunk in _chunks(text)[:RICH_TEXT_MAX_ITEMS]
        ]
    }


def _build_number_payload(value: Any) -> Dict[str, Any]:
    return {"number": value}


def _build_select_payload(value: Any) -> Dict[str, Any]:
    # Notion rejects commas in select option names.
    name = str(value).replace(",", " ").strip()[:SELECT_NAME_LIMIT]
    return {"select": {"name": name}}


_BUILDERS: Dict[str, Callable[[Any], Dict[str, Any]]] = {
    "title": _build_title_payload,
    "rich_text": _build_rich_text_payload,
    "number": _build_number_payload,
    "select": _build_select_payload,
}


def build_properties(
    record: CharacterRecord,
    character_id: Optional[int] = None,
    *,
    schema: Sequence[PropertyRule] = PROPERTY_SCHEMA,
) -> Dict[str, Dict[str, Any]]:
    """Create the Notion property map for ``record``.

    Parameters
    ----------
    record:
        Parsed character sheet.
    character_id:
        The ID the sync was requested for. When given it is written to the
        identity property in place of the ID found in the sheet.
    schema:
        Rules applied in order. Rules whose source value is absent (``None``,
        blank text or an empty collection) produce no property at all, so an
        update never clears a value that already exists in Notion.
    """

    if character_id is not None:
        record = replace(record, character_id=int(character_id))

    properties: Dict[str, Dict[str, Any]] = {}
    for rule in schema:
        value = _resolve(record, rule.source)
        if rule.coerce is not None and value is not None:
            value = rule.coerce(value)
        if is_blank(value) or value == [] or value == {}:
            continue
        try:
            builder = _BUILDERS[rule.kind]
        except KeyError as exc:
            raise ValueError(f"Unsupported Notion property type: {rule.kind}") from exc
        properties[rule.target] = builder(value)
    return properties


def build_title_property(record: CharacterRecord) -> Dict[str, Dict[str, Any]]:
    """Title sent only when a page is created."""
    return {TITLE_PROPERTY: _build_title_payload(record.name or UNTITLED)}
