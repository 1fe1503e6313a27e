# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Every action must be attributable to a staff account. Passwords are hashed
with bcrypt; session tokens are managed in session_service.py.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor BCRYPT_ROUNDS, default 12)
- Minimum 8 characters, upper, lower, digit and special char required
- Login and logout are written to the audit log
"""

import bcrypt
import re
from flask import current_app

from ..extensions import db
from ..models import User
from ..models.audit import ACTION_LOGIN, ACTION_LOGOUT
from ..models.auth import ROLES, ROLE_ADMIN
from ..validation import ConflictError, ValidationError
from pharmapos.time_utils import utcnow
from . import audit_service, session_service, state_store


DEFAULT_BCRYPT_ROUNDS = 12

# Where each role lands after login
ROLE_HOME = {ROLE_ADMIN: "/admin"}
DEFAULT_HOME = "/pos"


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class AuthenticationError(Exception):
    """Raised when credentials are rejected."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def _bcrypt_rounds() -> int:
    try:
        return int(current_app.config.get("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS))
    except RuntimeError:
        # Outside an application context
        return DEFAULT_BCRYPT_ROUNDS


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=_bcrypt_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Malformed hashes count as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def create_user(email: str, name: str, password: str, role: str = "employee") -> User:
    """
    Create a staff account.

    Raises:
        ValidationError: blank name/email or unknown role
        ConflictError: email already registered
        PasswordValidationError: weak password
    """
    email = normalize_email(email)
    name = (name or "").strip()

    if not email or "@" not in email:
        raise ValidationError("A valid email is required")
    if not name:
        raise ValidationError("Name is required")
    if role not in ROLES:
        raise ValidationError(f"Invalid role: {role}", details={"allowed": list(ROLES)})

    if db.session.query(User).filter_by(email=email).first():
        raise ConflictError("Email already exists")

    user = User(
        email=email,
        name=name,
        role=role,
        password_hash=hash_password(password),
    )

    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Check credentials.

    Returns the active User on success (and stamps last_login_at), None
    otherwise.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def home_path_for(user: User) -> str:
    return ROLE_HOME.get(user.role, DEFAULT_HOME)


def login(email: str, password: str, user_agent: str | None = None, ip_address: str | None = None):
    """
    Authenticate, open a session and write the login audit entry.

    Returns (user, plaintext_token). Raises AuthenticationError on bad
    credentials.
    """
    user = authenticate(email, password)
    if not user:
        current_app.logger.info("Rejected login for %s", normalize_email(email))
        raise AuthenticationError("Invalid credentials")

    session, token = session_service.create_session(
        user.id,
        user_agent=user_agent,
        ip_address=ip_address,
        commit=False,
    )
    audit_service.record_event(
        user=user,
        action=ACTION_LOGIN,
        details=f"{user.name} logged in",
        metadata={"role": user.role},
    )
    db.session.commit()
    state_store.invalidate(state_store.AUDIT_LOGS)
    return user, token


def logout(user: User, token: str) -> bool:
    """Revoke the token and write the logout audit entry."""
    revoked = session_service.revoke_session(token, reason="User logout")
    if revoked:
        audit_service.record_event(
            user=user,
            action=ACTION_LOGOUT,
            details=f"{user.name} logged out",
            commit=True,
        )
        state_store.invalidate(state_store.AUDIT_LOGS)
    return revoked
