# Overview: Service-layer operations for accounts; password hashing, user creation and login.

"""
Accounts and credentials.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, at least one letter and one digit
- Session tokens managed separately (see session_service.py)
"""

import logging
import re

import bcrypt

from ..errors import Conflict, ValidationError
from ..extensions import db
from ..models import User
from ..models.auth import ROLES, ROLE_CUSTOMER
from .concurrency import commit_or_conflict
from avenue.time_utils import utcnow

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r"[A-Za-z]", password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str, *, rounds: int = 12) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw is constant-time; malformed hashes count as a mismatch."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def normalize_email(email) -> str:
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        raise ValidationError("A valid email address is required")
    return email.strip().lower()


def create_user(
    *,
    email: str,
    name: str,
    password: str,
    role: str = ROLE_CUSTOMER,
    bcrypt_rounds: int = 12,
) -> User:
    email = normalize_email(email)
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required")
    if role not in ROLES:
        raise ValidationError(f"Unknown role: {role}")

    if db.session.query(User).filter_by(email=email).first():
        raise Conflict("An account with this email already exists")

    user = User(
        email=email,
        name=name.strip(),
        password_hash=hash_password(password, rounds=bcrypt_rounds),
        role=role,
        is_active=True,
    )
    db.session.add(user)
    commit_or_conflict("An account with this email already exists")
    logger.info("Created %s account %s", role, email)
    return user


def authenticate(email: str, password: str) -> User | None:
    """Return the active user for these credentials, or None."""
    if not isinstance(email, str) or not isinstance(password, str):
        return None

    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def set_role(user: User, role: str) -> User:
    if role not in ROLES:
        raise ValidationError(f"Unknown role: {role}")
    user.role = role
    db.session.commit()
    return user
