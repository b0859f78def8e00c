# =============================================================================
# HELPDESK API - AUTH MODELS
# =============================================================================
# Roles, the authenticated Actor, and request models of the auth API.
#
# STRUCTURE:
# - Enumerations (Role)
# - Actor (authenticated identity passed explicitly to services)
# - Request models (Register, Login)
# - TokenPayload (internal, JWT)
# =============================================================================

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, EmailStr, field_validator


# =============================================================================
# ROLES
# =============================================================================

class Role(str, Enum):
    """
    User roles. The string value is what the database stores.

    - customer: files tickets, sees only their own
    - team:     support staff, triages and replies
    - admin:    unrestricted, manages users and assignment
    """
    CUSTOMER = "customer"
    TEAM = "team"
    ADMIN = "admin"


STAFF_ROLES = (Role.TEAM, Role.ADMIN)


# =============================================================================
# ACTOR
# =============================================================================

@dataclass(frozen=True)
class Actor:
    """Authenticated identity, built by the auth dependency for each request."""
    id: int
    role: Role
    email: str
    name: str

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_customer(self) -> bool:
        return self.role == Role.CUSTOMER


# =============================================================================
# REQUEST MODELS
# =============================================================================

class RegisterRequest(BaseModel):
    """Body of POST /auth/register. New accounts are always customers."""
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, min_length=7, max_length=50)
    address: Optional[str] = None
    avatar: Optional[str] = None
    hasNotifications: bool = False

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, v):
        return v.strip().lower()

    @field_validator("name")
    @classmethod
    def name_strip(cls, v):
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class LoginRequest(BaseModel):
    """Body of POST /auth/login."""
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, v):
        return v.strip().lower()


class TokenPayload(BaseModel):
    """Decoded JWT payload (internal)."""
    sub: int
    email: str
    role: Role
