# =============================================================================
# HELPDESK API - SECURITY
# =============================================================================
# Password hashing (bcrypt) and JWT creation/validation (PyJWT).
#
# CONFIGURATION:
# - JWT_SECRET_KEY: signing key (CHANGE IN PRODUCTION!)
# - JWT_ALGORITHM: signing algorithm (HS256)
# - JWT_EXPIRATION_HOURS: token lifetime
# =============================================================================

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import bcrypt
import jwt

from ..config import config
from .models import TokenPayload, Role


# =============================================================================
# PASSWORDS
# =============================================================================

def hash_password(password: str) -> str:
    """
    Generate the bcrypt hash of a password.

    Called explicitly by the user write path before persistence; the salt
    is embedded in the returned hash.

    Args:
        password: Clear text password

    Returns:
        bcrypt hash (~60 chars, format $2b$12$<salt><hash>)
    """
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a clear text password against a stored hash.

    Returns:
        True on match, False otherwise (malformed hashes included)
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8")
        )
    except ValueError:
        # Malformed hash
        return False


# =============================================================================
# JWT - CREATION
# =============================================================================

def create_access_token(
    user_id: int,
    email: str,
    role: Role,
    expires_delta: Optional[timedelta] = None
) -> Tuple[str, datetime]:
    """
    Create a signed JWT access token.

    Args:
        user_id: User id (stored as `sub`)
        email: User email
        role: User role
        expires_delta: Custom lifetime (default: JWT_EXPIRATION_HOURS)

    Returns:
        Tuple (token, expires_at)

    Payload:
        {"sub": "12", "email": "...", "role": "team", "exp": ..., "iat": ...}
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=config.JWT_EXPIRATION_HOURS))

    payload = {
        "sub": str(user_id),
        "email": email,
        "role": Role(role).value,
        "exp": expire,
        "iat": now,
    }
    token = jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)
    return token, expire


# =============================================================================
# JWT - VALIDATION
# =============================================================================

def decode_access_token(token: str) -> Optional[TokenPayload]:
    """
    Decode and validate a JWT.

    Checks the signature, the expiry and the payload shape. Does NOT check
    that the user still exists (done by the dependency).

    Returns:
        TokenPayload if valid, None if invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            config.JWT_SECRET_KEY,
            algorithms=[config.JWT_ALGORITHM]
        )
        return TokenPayload(
            sub=int(payload["sub"]),
            email=payload["email"],
            role=Role(payload["role"]),
        )
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    except (KeyError, ValueError, TypeError):
        # Missing fields or invalid values
        return None


def get_token_expiration_seconds() -> int:
    """Token lifetime in seconds (cookie max-age)."""
    return config.JWT_EXPIRATION_HOURS * 3600
