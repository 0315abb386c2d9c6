"""Per-entity cursor extractors.

Each extractor returns only the sort-key fields that position a row in its
listing order. Rows may be mappings (dicts, asyncpg records) or objects with
attributes (pydantic models).
"""

from datetime import date, datetime
from typing import Any, Dict
from uuid import UUID

from .cursor import CursorData, CursorExtractor


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict) or hasattr(item, "keys"):
        try:
            return item[name]
        except KeyError:
            return None
    return getattr(item, name, None)


def _iso(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _text(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    return value


def id_and_created_at(item: Any) -> CursorData:
    return {"id": _field(item, "id"), "created_at": _iso(_field(item, "created_at"))}


def person_id(item: Any) -> CursorData:
    return {"person_id": _field(item, "person_id")}


def visit(item: Any) -> CursorData:
    return {
        "visit_occurrence_id": _field(item, "visit_occurrence_id"),
        "created_at": _iso(_field(item, "created_at")),
    }


def created_at(item: Any) -> CursorData:
    return {"created_at": _iso(_field(item, "created_at"))}


def uploaded_at(item: Any) -> CursorData:
    return {
        "uploaded_at": _iso(_field(item, "uploaded_at")),
        "document_id": _text(_field(item, "document_id")),
    }


CURSOR_EXTRACTORS: Dict[str, CursorExtractor] = {
    "id_and_created_at": id_and_created_at,
    "person_id": person_id,
    "visit": visit,
    "created_at": created_at,
    "uploaded_at": uploaded_at,
}


def get_cursor_extractor(kind: str) -> CursorExtractor:
    """Look up the extractor for an entity kind.

    Raises:
        KeyError: If no extractor is registered for ``kind``
    """
    try:
        return CURSOR_EXTRACTORS[kind]
    except KeyError:
        raise KeyError(f"No cursor extractor registered for '{kind}'") from None
