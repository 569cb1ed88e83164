# Overview: Generic tenant-scoped CRUD over one record model.

"""
Tenant-Scoped Record Store

One RecordStore instance per record type (Sale, Note, Expense). All of them
share the same contract:

- create(owner_id, fields)       -> record
- get(owner_id, record_id)       -> record or NotFoundError
- list(owner_id, ...)            -> records, newest first
- update(owner_id, id, fields)   -> record (full replacement)
- delete(owner_id, id)           -> None

TENANT ISOLATION: every query is built from owned(owner_id), so the owner
filter is part of the same statement as the id lookup. A row that belongs to
another owner is reported exactly like a row that does not exist.

Field validation is delegated to the `normalize` callable given at
construction. It receives the raw field mapping and must return the complete
set of column values to write, including derived columns. Updates go through
the same callable, so derived values are always recomputed.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping

from ..extensions import db
from ..validation import NotFoundError


class RecordStore:
    def __init__(
        self,
        model,
        *,
        label: str,
        normalize: Callable[[Mapping[str, Any]], dict],
        server_fields: Iterable[str] = (),
    ):
        self.model = model
        self.label = label
        self.normalize = normalize
        # Columns the service may set but clients may not (e.g. image_key)
        self.server_fields = frozenset(server_fields)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def owned(self, owner_id: int):
        """Base query restricted to one owner."""
        return db.session.query(self.model).filter(self.model.user_id == owner_id)

    def default_ordering(self) -> tuple:
        m = self.model
        return (m.date.desc(), m.created_at.desc(), m.id.desc())

    def _not_found(self) -> NotFoundError:
        return NotFoundError(f"{self.label} not found")

    def _server_values(self, server_values: Mapping[str, Any]) -> dict:
        unknown = set(server_values) - self.server_fields
        if unknown:
            raise ValueError(f"Not a server-managed field: {', '.join(sorted(unknown))}")
        return dict(server_values)

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    def validate(self, fields: Mapping[str, Any]) -> dict:
        return self.normalize(fields)

    def create(self, owner_id: int, fields: Mapping[str, Any], **server_values) -> Any:
        values = self.normalize(fields)
        values.update(self._server_values(server_values))

        record = self.model(user_id=owner_id, **values)
        db.session.add(record)
        db.session.commit()
        return record

    def get(self, owner_id: int, record_id: int) -> Any:
        record = self.owned(owner_id).filter(self.model.id == record_id).first()
        if record is None:
            raise self._not_found()
        return record

    def list(self, owner_id: int, *, limit: int | None = None, criteria: Iterable = ()) -> list:
        query = self.owned(owner_id)
        for criterion in criteria:
            query = query.filter(criterion)
        query = query.order_by(*self.default_ordering())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def update(self, owner_id: int, record_id: int, fields: Mapping[str, Any], **server_values) -> Any:
        record = self.get(owner_id, record_id)
        values = self.normalize(fields)
        values.update(self._server_values(server_values))

        for key, value in values.items():
            setattr(record, key, value)
        db.session.commit()
        return record

    def delete(self, owner_id: int, record_id: int) -> None:
        record = self.get(owner_id, record_id)
        db.session.delete(record)
        db.session.commit()
