# Overview: Service-layer maintenance operations; orphaned attachment cleanup.

from __future__ import annotations

import re
import time

from ..blobstore import get_blob_store
from ..extensions import db
from ..models import Note, Sale


# Image references embedded in note content, e.g. https://host/api/images/<key>
IMAGE_REF_PATTERN = re.compile(r"/api/images/([A-Za-z0-9][A-Za-z0-9._-]*)")

# <prefix><unix-ms>-... as produced by blobstore.make_blob_key
KEY_TIMESTAMP_PATTERN = re.compile(r"^(?:[A-Za-z]+-)?(\d{13})-")


def referenced_blob_keys() -> set[str]:
    keys = {
        key for (key,) in db.session.query(Sale.image_key).filter(Sale.image_key.isnot(None))
    }
    for (content,) in db.session.query(Note.content).filter(Note.content.contains("/api/images/")):
        keys.update(IMAGE_REF_PATTERN.findall(content or ""))
    return keys


def _key_age_seconds(key: str, now: float) -> float | None:
    match = KEY_TIMESTAMP_PATTERN.match(key)
    if not match:
        return None
    return now - int(match.group(1)) / 1000


def find_orphan_blobs(*, grace_minutes: int = 60) -> list[str]:
    """
    Blob keys referenced by no sale and no note.

    Keys younger than grace_minutes are skipped: a note image is uploaded
    before the note that embeds it is saved.
    """
    referenced = referenced_blob_keys()
    now = time.time()
    orphans = []
    for key in get_blob_store().keys():
        if key in referenced:
            continue
        age = _key_age_seconds(key, now)
        if age is not None and age < grace_minutes * 60:
            continue
        orphans.append(key)
    return orphans


def delete_orphan_blobs(*, grace_minutes: int = 60) -> list[str]:
    orphans = find_orphan_blobs(grace_minutes=grace_minutes)
    store = get_blob_store()
    for key in orphans:
        store.delete(key)
    return orphans
