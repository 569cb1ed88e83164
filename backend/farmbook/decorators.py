# Overview: Authentication guard for protected API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import token_service
from .services.token_service import TenantContext, TokenError


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_auth(f):
    """
    Require a valid bearer token and establish tenant context.

    Sets g.tenant to a TenantContext (user_id, username, expires_at).
    Handlers read the owner id through current_tenant() and never from
    request input.

    Returns 401 if:
    - No Authorization header, or not a Bearer token
    - Invalid signature or malformed token
    - Expired token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        try:
            g.tenant = token_service.validate_token(token)
        except TokenError as e:
            return jsonify({"error": str(e)}), 401

        return f(*args, **kwargs)

    return decorated_function


def current_tenant() -> TenantContext:
    """Tenant context for the current request. Only valid under @require_auth."""
    tenant = getattr(g, "tenant", None)
    if tenant is None:
        raise RuntimeError("current_tenant() called outside @require_auth")
    return tenant
