"""
Ticket queries - read operations.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from ...auth.models import Actor
from ...exceptions import TicketNotFoundError
from .. import policy
from ..attachments import attachments_for_tickets, serialize_attachment
from ..pagination import Query, paginate, ref_columns, expand_ref
from .constants import TicketStatus

TICKET_SELECT = (
    f"SELECT t.*, {ref_columns('c', 'customer')}, {ref_columns('a', 'assignee')}"
)
TICKET_SOURCE = """
    tickets t
    LEFT JOIN users c ON c.id = t.customer_id
    LEFT JOIN users a ON a.id = t.assigned_to
"""
TICKET_SEARCH_COLUMNS = ['t.title', 't.description', 't.ticket_number']
TICKET_ORDER = 't.created_at DESC, t.id DESC'


def serialize_ticket(row: Dict[str, Any], attachments: List[Dict] = None) -> Dict[str, Any]:
    """Public representation with customer/assignee expanded."""
    return {
        'id': row['id'],
        'ticketNumber': row['ticket_number'],
        'title': row['title'],
        'description': row['description'],
        'status': row['status'],
        'priority': row['priority'],
        'category': row['category'],
        'customer': expand_ref(row, 'customer'),
        'assignedTo': expand_ref(row, 'assignee'),
        'tags': json.loads(row['tags'] or '[]'),
        'attachments': [serialize_attachment(a) for a in (attachments or [])],
        'aiSentiment': row.get('ai_sentiment'),
        'aiSuggestedPriority': row.get('ai_suggested_priority'),
        'aiSuggestedCategory': row.get('ai_suggested_category'),
        'aiSummary': row.get('ai_summary'),
        'resolvedAt': row.get('resolved_at'),
        'closedAt': row.get('closed_at'),
        'firstResponseAt': row.get('first_response_at'),
        'createdAt': row['created_at'],
        'updatedAt': row['updated_at'],
    }


def _serialize_rows(db, rows: List[Dict]) -> List[Dict]:
    grouped = attachments_for_tickets(db, [row['id'] for row in rows])
    return [serialize_ticket(row, grouped.get(row['id'])) for row in rows]


# =============================================================================
# SINGLE TICKET
# =============================================================================

def get_ticket_row(db, ticket_id: int) -> Optional[Dict[str, Any]]:
    """Raw ticket row (no joins), None if missing."""
    row = db.execute("SELECT * FROM tickets WHERE id = ?", (ticket_id,)).fetchone()
    return dict(row) if row else None


def find_ticket(db, ticket_id: int) -> Dict[str, Any]:
    """
    Raw ticket row.

    Raises:
        TicketNotFoundError: if the id does not exist
    """
    row = get_ticket_row(db, ticket_id)
    if not row:
        raise TicketNotFoundError()
    return row


def load_ticket(db, ticket_id: int) -> Dict[str, Any]:
    """Serialized ticket with references and attachments, no access check."""
    row = db.execute(
        f"{TICKET_SELECT} FROM {TICKET_SOURCE} WHERE t.id = ?",
        (ticket_id,)
    ).fetchone()
    if not row:
        raise TicketNotFoundError()
    return _serialize_rows(db, [dict(row)])[0]


def get_ticket(db, actor: Actor, ticket_id: int) -> Dict[str, Any]:
    """
    Ticket detail for actor.

    Raises:
        TicketNotFoundError: 404
        ForbiddenError: customer reading someone else's ticket
    """
    policy.ensure_can_read(actor, find_ticket(db, ticket_id))
    return load_ticket(db, ticket_id)


# =============================================================================
# LISTS
# =============================================================================

def _ticket_query(filters: Dict[str, Any]) -> Query:
    query = Query(TICKET_SELECT, TICKET_SOURCE)
    for column in ('customer_id', 'assigned_to', 'status', 'priority', 'category'):
        query.exact(f"t.{column}", filters.get(column))
    query.search(TICKET_SEARCH_COLUMNS, filters.get('search'))
    return query


def list_tickets(db, actor: Actor, status: Optional[str] = None,
                 priority: Optional[str] = None, category: Optional[str] = None,
                 assigned_to: Optional[int] = None, search: Optional[str] = None,
                 page: Any = None, limit: Any = None) -> Tuple[List[Dict], Dict[str, int]]:
    """
    Paginated ticket list scoped by the policy, newest first.

    Args:
        db: Database connection
        actor: Authenticated identity
        status, priority, category: Exact filters (ignored when empty)
        assigned_to: Assignee filter (customers cannot widen their scope)
        search: Substring on title, description and ticket number
        page, limit: Pagination

    Returns:
        Tuple (tickets, pagination)
    """
    filters = {
        'status': status,
        'priority': priority,
        'category': category,
        'search': search,
    }
    filters.update(policy.ticket_scope(actor, assigned_to))
    rows, pagination = paginate(db, _ticket_query(filters), page, limit, TICKET_ORDER)
    return _serialize_rows(db, rows), pagination


def list_my_tickets(db, actor: Actor, status: Optional[str] = None,
                    search: Optional[str] = None, page: Any = None,
                    limit: Any = None) -> Tuple[List[Dict], Dict[str, int]]:
    """Tickets filed by the actor."""
    filters = {'customer_id': actor.id, 'status': status, 'search': search}
    rows, pagination = paginate(db, _ticket_query(filters), page, limit, TICKET_ORDER)
    return _serialize_rows(db, rows), pagination


def list_all_tickets(db, status: Optional[str] = None, priority: Optional[str] = None,
                     category: Optional[str] = None, assigned_to: Optional[int] = None,
                     search: Optional[str] = None, page: Any = None,
                     limit: Any = None) -> Tuple[List[Dict], Dict[str, int]]:
    """Unscoped list for the admin console."""
    filters = {
        'status': status,
        'priority': priority,
        'category': category,
        'assigned_to': assigned_to,
        'search': search,
    }
    rows, pagination = paginate(db, _ticket_query(filters), page, limit, TICKET_ORDER)
    return _serialize_rows(db, rows), pagination


# =============================================================================
# COUNTERS
# =============================================================================

def count_by_status(db, scope: Dict[str, Any] = None) -> Dict[str, int]:
    """Ticket counts per status within scope (exact column filters)."""
    query = Query("SELECT t.status, COUNT(*) AS total", "tickets t")
    for column, value in (scope or {}).items():
        query.exact(f"t.{column}", value)
    rows = db.execute(
        f"{query.select} FROM {query.source} WHERE {query.where_sql} GROUP BY t.status",
        query.params
    ).fetchall()

    counts = {status: 0 for status in TicketStatus.ALL}
    for row in rows:
        counts[row['status']] = int(row['total'])
    return counts


def get_ticket_stats(db, actor: Actor) -> Dict[str, int]:
    """
    Status counters scoped by role: customers count their own tickets,
    team members the tickets assigned to them, admins everything.
    """
    counts = count_by_status(db, policy.stats_scope(actor))
    return {
        'totalTickets': sum(counts.values()),
        'openTickets': counts[TicketStatus.OPEN],
        'inProgressTickets': counts[TicketStatus.IN_PROGRESS],
        'pendingTickets': counts[TicketStatus.PENDING],
        'resolvedTickets': counts[TicketStatus.RESOLVED],
        'closedTickets': counts[TicketStatus.CLOSED],
    }
