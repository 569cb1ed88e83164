# Overview: Flask API routes for notes; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, current_tenant
from ..services import notes_service
from ..validation import NotFoundError, ValidationError, parse_date, require_fields


notes_bp = Blueprint("notes", __name__, url_prefix="/api/notes")

NOTE_FIELDS = ("title", "content", "date")


def _note_fields_from_request() -> dict:
    data = require_fields(request.get_json(silent=True), NOTE_FIELDS)
    return {
        "title": data.get("title"),
        "content": data.get("content"),
        "date": parse_date(data.get("date")),
    }


@notes_bp.post("")
@require_auth
def create_note_route():
    try:
        note = notes_service.create_note(current_tenant().user_id, _note_fields_from_request())
        return jsonify(note.to_dict()), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create note")
        return jsonify({"error": "Internal server error"}), 500


@notes_bp.get("")
@require_auth
def list_notes_route():
    try:
        notes = notes_service.list_notes(current_tenant().user_id)
        return jsonify([n.to_dict() for n in notes]), 200
    except Exception:
        current_app.logger.exception("Failed to list notes")
        return jsonify({"error": "Internal server error"}), 500


@notes_bp.get("/search")
@require_auth
def search_notes_route():
    """
    Keyword search over title and content.

    Query params:
    - q: keyword; empty or missing returns []
    """
    try:
        notes = notes_service.search_notes(current_tenant().user_id, request.args.get("q", ""))
        return jsonify([n.to_dict() for n in notes]), 200
    except Exception:
        current_app.logger.exception("Failed to search notes")
        return jsonify({"error": "Internal server error"}), 500


@notes_bp.get("/<int:note_id>")
@require_auth
def get_note_route(note_id: int):
    try:
        note = notes_service.get_note(current_tenant().user_id, note_id)
        return jsonify(note.to_dict()), 200
    except NotFoundError:
        return jsonify({"error": "Note not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to fetch note")
        return jsonify({"error": "Internal server error"}), 500


@notes_bp.put("/<int:note_id>")
@require_auth
def update_note_route(note_id: int):
    try:
        note = notes_service.update_note(current_tenant().user_id, note_id, _note_fields_from_request())
        return jsonify(note.to_dict()), 200

    except NotFoundError:
        return jsonify({"error": "Note not found"}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update note")
        return jsonify({"error": "Internal server error"}), 500


@notes_bp.delete("/<int:note_id>")
@require_auth
def delete_note_route(note_id: int):
    try:
        notes_service.delete_note(current_tenant().user_id, note_id)
        return jsonify({"success": True}), 200

    except NotFoundError:
        return jsonify({"error": "Note not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to delete note")
        return jsonify({"error": "Internal server error"}), 500
