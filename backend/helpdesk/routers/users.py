# =============================================================================
# HELPDESK API - USERS ROUTER
# =============================================================================

from typing import Optional

from fastapi import APIRouter, Depends

from ..auth.dependencies import require_staff
from ..auth.models import Actor
from ..database import get_db
from ..services import users
from ..utils.response import paginated_response


router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
async def list_users(
    role: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    actor: Actor = Depends(require_staff),
    db=Depends(get_db),
):
    """User directory for staff (e.g. to pick an assignee)."""
    items, pagination = users.list_users(db, role=role, search=search, page=page, limit=limit)
    return paginated_response(items, pagination, message="Users retrieved successfully")
