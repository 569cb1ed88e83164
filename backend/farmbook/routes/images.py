# Overview: Public image serving and authenticated generic uploads.

# backend/farmbook/routes/images.py
"""
Attachment routes.

GET /api/images/<key> is deliberately public so images can be embedded in
an <img> tag without a token. Anyone holding a key can read the blob; keys
carry a random component so they cannot be guessed from upload times.
"""

from flask import Blueprint, Response, current_app, jsonify, request, url_for

from ..blobstore import (
    Attachment,
    BlobNotFoundError,
    InvalidBlobKeyError,
    get_blob_store,
    make_blob_key,
)
from ..decorators import require_auth
from ..validation import ValidationError


images_bp = Blueprint("images", __name__, url_prefix="/api")

NOTE_IMAGE_PREFIX = "note-"
IMAGE_CACHE_CONTROL = "public, max-age=31536000"


def image_url(key: str | None) -> str | None:
    """Absolute URL that serves `key`, honouring PUBLIC_BASE_URL when set."""
    if not key:
        return None
    base = current_app.config.get("PUBLIC_BASE_URL")
    if base:
        return f"{base.rstrip('/')}/api/images/{key}"
    return url_for("images.get_image_route", key=key, _external=True)


def attachment_from_request(field: str = "image") -> Attachment | None:
    """
    Read an uploaded image from the multipart field, or None when absent/empty.

    Only image/* content types are accepted; the stored type is served back
    verbatim by the public image route.
    """
    file = request.files.get(field)
    if file is None or not file.filename:
        return None

    data = file.read()
    if not data:
        return None

    content_type = (file.mimetype or "").lower()
    if not content_type.startswith("image/"):
        raise ValidationError(f"{field} must be an image file")

    return Attachment(filename=file.filename, data=data, content_type=content_type)


@images_bp.get("/images/<key>")
def get_image_route(key: str):
    """Serve a stored image. Public, no token required."""
    try:
        blob = get_blob_store().get(key)
    except (BlobNotFoundError, InvalidBlobKeyError):
        return jsonify({"error": "Image not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to fetch image")
        return jsonify({"error": "Failed to fetch image"}), 500

    response = Response(blob.data, mimetype=blob.content_type)
    response.headers["Cache-Control"] = IMAGE_CACHE_CONTROL
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


@images_bp.post("/upload")
@require_auth
def upload_route():
    """
    Generic image upload used by notes.

    Returns the public URL to embed in note content.
    """
    try:
        attachment = attachment_from_request("image")
        if attachment is None:
            return jsonify({"error": "No image provided"}), 400

        key = make_blob_key(attachment.filename, prefix=NOTE_IMAGE_PREFIX)
        get_blob_store().put(key, attachment.data, attachment.content_type)

        return jsonify({"url": image_url(key), "key": key}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to upload image")
        return jsonify({"error": "Upload failed"}), 500
