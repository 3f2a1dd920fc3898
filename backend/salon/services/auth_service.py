# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Every visit is attributed to the staff member who recorded it, so every
staff member has their own login. Passwords are hashed with bcrypt.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
- Self-signup always creates an employee profile; only admins grant admin
"""

import bcrypt
import logging
import re
from ..extensions import db
from ..models import Profile, ROLES, ROLE_EMPLOYEE
from ..validation import ConflictError, ValidationError
from salon.time_utils import utcnow


logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
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


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise.
    Malformed hashes never match.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _normalize_email(email: str | None) -> str:
    value = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValidationError("A valid email is required")
    return value


def create_profile(
    email: str,
    password: str,
    full_name: str,
    phone: str | None = None,
    role: str = ROLE_EMPLOYEE,
) -> Profile:
    """
    Create a staff profile with a bcrypt-hashed password.

    Raises:
        ValidationError: bad email, blank name, or unknown role
        ConflictError: email already registered
        PasswordValidationError: password doesn't meet requirements
    """
    email = _normalize_email(email)
    full_name = (full_name or "").strip()
    if not full_name:
        raise ValidationError("full_name is required")
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

    existing = db.session.query(Profile).filter_by(email=email).first()
    if existing:
        raise ConflictError("Email is already registered")

    profile = Profile(
        email=email,
        password_hash=hash_password(password),
        full_name=full_name,
        phone=(phone or "").strip() or None,
        role=role,
        active=True,
    )

    db.session.add(profile)
    db.session.commit()
    logger.info("Created %s profile id=%s", profile.role, profile.id)
    return profile


def signup(email: str, password: str, full_name: str, phone: str | None = None) -> Profile:
    """Self-service account creation. The role is always employee."""
    return create_profile(
        email=email,
        password=password,
        full_name=full_name,
        phone=phone,
        role=ROLE_EMPLOYEE,
    )


def authenticate(email: str, password: str) -> Profile | None:
    """
    Authenticate a profile by email and password.

    Returns the Profile if credentials are valid and the profile is active,
    None otherwise. Updates last_login_at on success.
    """
    try:
        email = _normalize_email(email)
    except ValidationError:
        return None

    profile = db.session.query(Profile).filter(
        Profile.email == email,
        Profile.active.is_(True),
    ).first()

    if not profile:
        return None

    if verify_password(password, profile.password_hash):
        profile.last_login_at = utcnow()
        db.session.commit()
        return profile

    return None
