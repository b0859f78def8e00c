# =============================================================================
# HELPDESK API - ADMIN ROUTER
# =============================================================================
# Admin console: dashboard counters, all tickets, users, roles, assignment.
# Every endpoint requires the admin role.
# =============================================================================

from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..auth.dependencies import require_admin
from ..auth.models import Actor
from ..database import get_db
from ..services import tickets, users
from ..services.dashboard import get_dashboard_stats
from ..utils.response import success_response, paginated_response


router = APIRouter(prefix="/admin", tags=["Admin"])


class UpdateRoleRequest(BaseModel):
    """Body of PATCH /admin/users/{id}/role"""
    role: Optional[str] = None


class AssignTicketRequest(BaseModel):
    """Body of PATCH /admin/tickets/{id}/assign (null or "" unassigns)"""
    assignedTo: Optional[Union[int, str]] = None


@router.get("/dashboard")
async def dashboard(actor: Actor = Depends(require_admin), db=Depends(get_db)):
    return success_response(data=get_dashboard_stats(db), message="Dashboard stats retrieved")


@router.get("/tickets")
async def all_tickets(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    category: Optional[str] = None,
    assignedTo: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    actor: Actor = Depends(require_admin),
    db=Depends(get_db),
):
    items, pagination = tickets.list_all_tickets(
        db,
        status=status,
        priority=priority,
        category=category,
        assigned_to=assignedTo,
        search=search,
        page=page,
        limit=limit,
    )
    return paginated_response(items, pagination, message="Tickets retrieved successfully")


@router.get("/users")
async def all_users(
    role: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    actor: Actor = Depends(require_admin),
    db=Depends(get_db),
):
    items, pagination = users.list_users(db, role=role, search=search, page=page, limit=limit)
    return paginated_response(items, pagination, message="Users retrieved successfully")


@router.patch("/users/{user_id}/role")
async def update_user_role(
    user_id: int,
    data: UpdateRoleRequest,
    actor: Actor = Depends(require_admin),
    db=Depends(get_db),
):
    user = users.update_user_role(db, user_id, data.role)
    return success_response(data=user, message=f"User role updated to {user['role']}")


@router.patch("/tickets/{ticket_id}/assign")
async def assign_ticket(
    ticket_id: int,
    data: AssignTicketRequest,
    actor: Actor = Depends(require_admin),
    db=Depends(get_db),
):
    ticket = tickets.assign_ticket(db, ticket_id, data.assignedTo)
    message = "Ticket assigned successfully" if ticket['assignedTo'] else "Ticket unassigned"
    return success_response(data=ticket, message=message)
