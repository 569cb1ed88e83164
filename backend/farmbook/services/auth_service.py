# Overview: Service-layer operations for accounts; registration and credential checks.

"""
Authentication Service

Every user is a tenant: registration creates the identity that owns all of
its sales, notes and expenses.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor BCRYPT_ROUNDS, default 10)
- Plaintext passwords are never stored or logged
- Unknown username and wrong password fail with the same error, and an
  unknown username still pays for one bcrypt comparison
- Session tokens are issued separately (see token_service.py)
"""

from __future__ import annotations

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..validation import ConflictError, ValidationError, clean_text


USERNAME_MAX_LENGTH = 64

# bcrypt only looks at the first 72 bytes; longer inputs are rejected
PASSWORD_MAX_BYTES = 72

_dummy_hashes: dict[int, bytes] = {}


class InvalidCredentialsError(Exception):
    """Raised for any failed login. The message never says which part was wrong."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


def _rounds() -> int:
    return int(current_app.config.get("BCRYPT_ROUNDS", 10))


def _validate_password(password) -> str:
    if password is None or not isinstance(password, str) or password == "":
        raise ValidationError("password cannot be blank")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(f"password cannot exceed {PASSWORD_MAX_BYTES} bytes")
    return password


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with the configured cost factor.

    A fresh salt is generated per call, so equal passwords hash differently.
    """
    _validate_password(password)
    salt = bcrypt.gensalt(rounds=_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False (never raises) for malformed hashes or oversized input.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except (ValueError, TypeError, AttributeError):
        return False


def _burn_dummy_check(password: str) -> None:
    rounds = _rounds()
    dummy = _dummy_hashes.get(rounds)
    if dummy is None:
        dummy = bcrypt.hashpw(b"farmbook-dummy-password", bcrypt.gensalt(rounds=rounds))
        _dummy_hashes[rounds] = dummy
    try:
        bcrypt.checkpw(password.encode('utf-8'), dummy)
    except (ValueError, TypeError, AttributeError):
        pass


def register_user(username, password) -> User:
    """
    Create a new account.

    Raises:
        ValidationError: username or password missing/too long
        ConflictError: username already taken
    """
    username = clean_text(username, "username", max_length=USERNAME_MAX_LENGTH)
    password_hash = hash_password(password)

    if db.session.query(User.id).filter(User.username == username).first():
        raise ConflictError("Username already exists")

    user = User(username=username, password_hash=password_hash)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration of the same name
        db.session.rollback()
        raise ConflictError("Username already exists")

    current_app.logger.info("Registered user %s (id=%s)", user.username, user.id)
    return user


def authenticate(username, password) -> User:
    """
    Return the User for valid credentials.

    Raises InvalidCredentialsError for an unknown user, a wrong password,
    or missing input, always with the same message.
    """
    if not isinstance(username, str) or not isinstance(password, str) or not username.strip():
        raise InvalidCredentialsError()

    user = db.session.query(User).filter(User.username == username.strip()).first()
    if user is None:
        _burn_dummy_check(password)
        current_app.logger.warning("Failed login for unknown username")
        raise InvalidCredentialsError()

    if not verify_password(password, user.password_hash):
        current_app.logger.warning("Failed login for user id=%s", user.id)
        raise InvalidCredentialsError()

    return user
