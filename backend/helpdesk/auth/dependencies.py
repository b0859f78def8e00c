# =============================================================================
# HELPDESK API - AUTH DEPENDENCIES
# =============================================================================
# FastAPI dependencies protecting routes. The authenticated identity is
# returned as an Actor value and passed explicitly to the services.
#
# COMPONENTS:
# - security_scheme: Bearer token extraction from the header
# - get_current_user: main dependency (mandatory authentication)
# - require_roles: factory requiring one of the given roles
# =============================================================================

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import config
from ..database import get_db
from ..exceptions import UnauthorizedError, ForbiddenError
from .models import Actor, Role, STAFF_ROLES
from .security import decode_access_token


# HTTPBearer reads "Authorization: Bearer <token>"; errors are raised by us
security_scheme = HTTPBearer(
    scheme_name="JWT",
    description="JWT obtained from /auth/login",
    auto_error=False
)


def _extract_token(request: Request,
                   credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Bearer header first, then the auth cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(config.AUTH_COOKIE_NAME)


# =============================================================================
# DEPENDENCY: GET CURRENT USER
# =============================================================================

async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db=Depends(get_db)
) -> Actor:
    """
    Resolve the authenticated Actor.

    The role is read from the database, so a role change applies to
    tokens issued before it.

    Raises:
        UnauthorizedError 401: missing, invalid or expired token, or unknown user
    """
    token = _extract_token(request, credentials)
    if not token:
        raise UnauthorizedError()

    payload = decode_access_token(token)
    if not payload:
        raise UnauthorizedError()

    row = db.execute(
        "SELECT id, email, name, role FROM users WHERE id = ?",
        (payload.sub,)
    ).fetchone()
    if not row:
        raise UnauthorizedError()

    return Actor(id=row["id"], role=Role(row["role"]), email=row["email"], name=row["name"])


# =============================================================================
# DEPENDENCY: ROLES
# =============================================================================

def require_roles(*roles: Role):
    """
    Factory for a dependency requiring one of the given roles.

    Usage:
        @router.get("/admin/dashboard")
        async def dashboard(actor: Actor = Depends(require_roles(Role.ADMIN))):
            ...
    """
    async def role_checker(actor: Actor = Depends(get_current_user)) -> Actor:
        if actor.role not in roles:
            raise ForbiddenError("Forbidden: Insufficient permissions")
        return actor

    return role_checker


require_staff = require_roles(*STAFF_ROLES)
require_admin = require_roles(Role.ADMIN)
