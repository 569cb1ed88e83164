# Overview: Service-layer operations for notes, including keyword search.

from __future__ import annotations

from typing import Any, Mapping

from flask import current_app
from sqlalchemy import func, or_

from ..models import Note
from ..validation import ValidationError, clean_text, parse_date
from .record_store import RecordStore


def normalize_note(fields: Mapping[str, Any]) -> dict:
    for name in ("title", "content", "date"):
        if fields.get(name) is None:
            raise ValidationError(f"Missing required fields: {name}")

    content = fields["content"]
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("content cannot be blank")

    return {
        "title": clean_text(fields["title"], "title", max_length=255),
        # Content is kept verbatim; leading whitespace can be meaningful
        "content": content,
        "date": parse_date(fields["date"]),
    }


store = RecordStore(Note, label="Note", normalize=normalize_note)


def create_note(owner_id: int, fields: Mapping[str, Any]) -> Note:
    return store.create(owner_id, fields)


def get_note(owner_id: int, note_id: int) -> Note:
    return store.get(owner_id, note_id)


def list_notes(owner_id: int) -> list[Note]:
    return store.list(owner_id)


def update_note(owner_id: int, note_id: int, fields: Mapping[str, Any]) -> Note:
    return store.update(owner_id, note_id, fields)


def delete_note(owner_id: int, note_id: int) -> None:
    store.delete(owner_id, note_id)


def search_notes(owner_id: int, query: str | None, *, case_sensitive: bool | None = None) -> list[Note]:
    """
    Notes of one owner whose title OR content contains `query`.

    An empty or whitespace-only query returns [] without touching the
    database. LIKE wildcards in the query match literally.

    Case sensitivity comes from NOTE_SEARCH_CASE_SENSITIVE unless given.
    SQL only narrows the candidates; the final match is always decided in
    Python. SQLite LIKE ignores ASCII case and SQLite lower() folds ASCII
    only, so case-insensitive matching uses str.casefold() and a non-ASCII
    query is checked against every note of the owner.
    """
    if query is None or not query.strip():
        return []

    if case_sensitive is None:
        case_sensitive = bool(current_app.config.get("NOTE_SEARCH_CASE_SENSITIVE", False))

    if case_sensitive:
        candidates = store.list(owner_id, criteria=[
            or_(
                Note.title.contains(query, autoescape=True),
                Note.content.contains(query, autoescape=True),
            )
        ])
        return [n for n in candidates if query in n.title or query in n.content]

    needle = query.casefold()
    criteria = []
    if query.isascii():
        criteria.append(or_(
            func.lower(Note.title).contains(needle, autoescape=True),
            func.lower(Note.content).contains(needle, autoescape=True),
        ))
    candidates = store.list(owner_id, criteria=criteria)
    return [n for n in candidates if needle in n.title.casefold() or needle in n.content.casefold()]
