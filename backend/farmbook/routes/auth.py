# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/farmbook/routes/auth.py
"""
Authentication API routes

- POST /register: open self-registration; every user is its own tenant
- POST /login: exchange credentials for a signed bearer token
- GET /me: identity behind the presented token

There is no logout endpoint: tokens are stateless and the client discards
them.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, current_tenant
from ..services import auth_service
from ..services import token_service
from ..services.auth_service import InvalidCredentialsError
from ..time_utils import to_utc_z
from ..validation import ConflictError, ValidationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """
    Create an account.

    Request body: {"username": "...", "password": "..."}
    """
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.register_user(data.get("username"), data.get("password"))
        return jsonify({"success": True, "id": user.id}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue a token.

    Token must be included in the Authorization header (Bearer) for
    protected routes. It expires after TOKEN_TTL_HOURS.
    """
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.authenticate(data.get("username"), data.get("password"))

        token, expires_at = token_service.issue_token(user.id, user.username)
        current_app.logger.info("User id=%s logged in", user.id)

        return jsonify({
            "token": token,
            "user": user.to_summary(),
            "expires_at": to_utc_z(expires_at),
        }), 200

    except InvalidCredentialsError as e:
        return jsonify({"error": str(e)}), 401
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    tenant = current_tenant()
    return jsonify({
        "user": {"id": tenant.user_id, "username": tenant.username},
        "expires_at": to_utc_z(tenant.expires_at),
    }), 200
