# =============================================================================
# HELPDESK API - AUTH MODULE
# =============================================================================
# JWT authentication and role checks.
# =============================================================================

from .models import Actor, Role, STAFF_ROLES
from .dependencies import get_current_user, require_roles, require_staff, require_admin

__all__ = [
    "Actor",
    "Role",
    "STAFF_ROLES",
    "get_current_user",
    "require_roles",
    "require_staff",
    "require_admin",
]
