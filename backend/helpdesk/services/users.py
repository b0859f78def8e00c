# =============================================================================
# HELPDESK API - IDENTITY STORE
# =============================================================================
# Users: registration, authentication, lookup, listing, role change.
# Users are never deleted; the role is only changed by an admin.
# =============================================================================

import logging
from typing import Any, Dict, Optional, Tuple, List

from ..auth.models import Role, STAFF_ROLES
from ..auth.security import hash_password, verify_password
from ..database import INTEGRITY_ERRORS, utcnow
from ..exceptions import (
    ValidationError,
    UserNotFoundError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
)
from .pagination import Query, paginate

logger = logging.getLogger(__name__)

PUBLIC_COLUMNS = """
    id, email, name, phone, address, avatar, has_notifications,
    is_email_verified, role, created_at, updated_at
"""


def serialize_user(row: Dict[str, Any]) -> Dict[str, Any]:
    """Public representation of a user (never includes the password hash)."""
    return {
        "id": row["id"],
        "email": row["email"],
        "name": row["name"],
        "phone": row.get("phone"),
        "address": row.get("address"),
        "avatar": row.get("avatar"),
        "hasNotifications": bool(row.get("has_notifications")),
        "isEmailVerified": bool(row.get("is_email_verified")),
        "role": row["role"],
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
    }


# =============================================================================
# QUERIES
# =============================================================================

def get_user_row(db, user_id: int) -> Optional[Dict[str, Any]]:
    row = db.execute(f"SELECT {PUBLIC_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
    return dict(row) if row else None


def get_user(db, user_id: int) -> Dict[str, Any]:
    """
    Fetch a user by id.

    Raises:
        UserNotFoundError: if the id does not exist
    """
    row = get_user_row(db, user_id)
    if not row:
        raise UserNotFoundError()
    return serialize_user(row)


def list_users(db, role: Optional[str] = None, search: Optional[str] = None,
               page: Any = None, limit: Any = None) -> Tuple[List[Dict], Dict[str, int]]:
    """
    Paginated user list, newest first.

    Args:
        role: Exact role filter (ignored when empty)
        search: Case-insensitive match on name and email
    """
    query = Query(f"SELECT {PUBLIC_COLUMNS}", "users")
    query.exact("role", role).search(["name", "email"], search)
    rows, pagination = paginate(db, query, page, limit, order_by="created_at DESC, id DESC")
    return [serialize_user(row) for row in rows], pagination


def count_users_by_role(db) -> Dict[str, int]:
    rows = db.execute("SELECT role, COUNT(*) AS total FROM users GROUP BY role").fetchall()
    counts = {role.value: 0 for role in Role}
    for row in rows:
        counts[row["role"]] = int(row["total"])
    return counts


# =============================================================================
# COMMANDS
# =============================================================================

def create_user(db, email: str, password: str, name: str,
                role: Role = Role.CUSTOMER, phone: Optional[str] = None,
                address: Optional[str] = None, avatar: Optional[str] = None,
                has_notifications: bool = False) -> Dict[str, Any]:
    """
    Create a user. The password is hashed here, before persistence.

    Raises:
        ValidationError: missing fields, short password
        EmailAlreadyRegisteredError: email already in use
    """
    email = (email or "").strip().lower()
    name = (name or "").strip()
    if not email:
        raise ValidationError("Email is required")
    if not name:
        raise ValidationError("Name is required")
    if not password or len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")
    if phone is not None and len(phone.strip()) < 7:
        raise ValidationError("Phone must be at least 7 characters")

    existing = db.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
    if existing:
        raise EmailAlreadyRegisteredError()

    now = utcnow()
    try:
        cursor = db.execute(
            """
            INSERT INTO users (email, password_hash, name, phone, address, avatar,
                               has_notifications, is_email_verified, role,
                               created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (email, hash_password(password), name, phone, address, avatar,
             bool(has_notifications), False, Role(role).value, now, now)
        )
        db.commit()
    except INTEGRITY_ERRORS:
        # Concurrent registration of the same email won the race
        db.rollback()
        raise EmailAlreadyRegisteredError()
    logger.info(f"User registered: {email} ({Role(role).value})")
    return get_user(db, cursor.lastrowid)


def authenticate(db, email: str, password: str) -> Dict[str, Any]:
    """
    Verify credentials.

    Raises:
        InvalidCredentialsError: unknown email or wrong password
    """
    row = db.execute(
        "SELECT id, password_hash FROM users WHERE email = ?",
        ((email or "").strip().lower(),)
    ).fetchone()
    if not row or not verify_password(password, row["password_hash"]):
        raise InvalidCredentialsError()
    return get_user(db, row["id"])


def update_user_role(db, user_id: int, role: Optional[str]) -> Dict[str, Any]:
    """
    Change a user's role (admin operation).

    Raises:
        ValidationError: "Invalid role provided"
        UserNotFoundError: "User not found"
    """
    try:
        new_role = Role(role)
    except ValueError:
        raise ValidationError("Invalid role provided")

    if not get_user_row(db, user_id):
        raise UserNotFoundError()

    db.execute(
        "UPDATE users SET role = ?, updated_at = ? WHERE id = ?",
        (new_role.value, utcnow(), user_id)
    )
    db.commit()
    logger.info(f"User {user_id} role changed to {new_role.value}")
    return get_user(db, user_id)


def is_staff_user(row: Optional[Dict[str, Any]]) -> bool:
    return bool(row) and Role(row["role"]) in STAFF_ROLES
