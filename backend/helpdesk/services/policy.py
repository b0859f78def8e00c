# =============================================================================
# HELPDESK API - AUTHORIZATION POLICY
# =============================================================================
# Single place deciding who may read, change and delete tickets.
# Every ticket handler goes through these functions before mutating.
#
# - customer: own tickets only, title/description only, no internal notes
# - team:     any ticket, triage fields, internal notes, no delete
# - admin:    unrestricted
# =============================================================================

from typing import Any, Dict, Iterable, Optional

from ..auth.models import Actor
from ..exceptions import ForbiddenError

ACCESS_DENIED = "Access denied"

# Ticket fields each side may change
CUSTOMER_FIELDS = {"title", "description"}
STAFF_FIELDS = CUSTOMER_FIELDS | {"status", "priority", "category", "tags", "assigned_to"}


def is_owner(actor: Actor, ticket: Dict[str, Any]) -> bool:
    return ticket.get("customer_id") == actor.id


def can_read(actor: Actor, ticket: Dict[str, Any]) -> bool:
    """Staff read any ticket, customers only their own."""
    return actor.is_staff or is_owner(actor, ticket)


def can_write(actor: Actor, ticket: Dict[str, Any], fields: Iterable[str]) -> bool:
    """
    Whether actor may change the given ticket fields.

    Args:
        actor: Authenticated identity
        ticket: Ticket row (customer_id is required)
        fields: Names of the fields the request tries to change
    """
    if not can_read(actor, ticket):
        return False
    allowed = STAFF_FIELDS if actor.is_staff else CUSTOMER_FIELDS
    return set(fields) <= allowed


def can_delete(actor: Actor, ticket: Dict[str, Any]) -> bool:
    return actor.is_admin


def can_view_internal(actor: Actor) -> bool:
    return actor.is_staff


def can_change_status(actor: Actor, ticket: Dict[str, Any]) -> bool:
    return can_write(actor, ticket, ["status"])


def ticket_scope(actor: Actor, requested_assignee: Optional[Any] = None) -> Dict[str, Any]:
    """
    Exact filters narrowing a ticket list for the actor.

    Customers are forced to their own tickets. Staff get the assignee filter
    only when they ask for it, so a team member without it sees every ticket.
    """
    if actor.is_customer:
        return {"customer_id": actor.id}
    if requested_assignee not in (None, ""):
        return {"assigned_to": requested_assignee}
    return {}


def stats_scope(actor: Actor) -> Dict[str, Any]:
    """Scope of the status counters: own, assigned to self, or all."""
    if actor.is_customer:
        return {"customer_id": actor.id}
    if actor.is_admin:
        return {}
    return {"assigned_to": actor.id}


# =============================================================================
# ENSURE VARIANTS
# =============================================================================

def ensure_can_read(actor: Actor, ticket: Dict[str, Any]) -> None:
    if not can_read(actor, ticket):
        raise ForbiddenError(ACCESS_DENIED)


def ensure_can_write(actor: Actor, ticket: Dict[str, Any], fields: Iterable[str]) -> None:
    if not can_write(actor, ticket, fields):
        raise ForbiddenError(ACCESS_DENIED)


def ensure_can_delete(actor: Actor, ticket: Dict[str, Any]) -> None:
    if not can_delete(actor, ticket):
        raise ForbiddenError("Only admins can delete tickets")
