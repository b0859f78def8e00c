"""
Admin dashboard - aggregate counters.
"""

from typing import Any, Dict

from .tickets.constants import TicketStatus
from .tickets.queries import count_by_status
from .users import count_users_by_role


def get_dashboard_stats(db) -> Dict[str, Any]:
    """
    Ticket totals by status and user totals by side.

    Returns:
        {"tickets": {total, open, inProgress, resolved},
         "users": {customers, teamMembers}}
    """
    tickets = count_by_status(db)
    users = count_users_by_role(db)

    return {
        'tickets': {
            'total': sum(tickets.values()),
            'open': tickets[TicketStatus.OPEN],
            'inProgress': tickets[TicketStatus.IN_PROGRESS],
            'resolved': tickets[TicketStatus.RESOLVED],
        },
        'users': {
            'customers': users['customer'],
            'teamMembers': users['team'] + users['admin'],
        },
    }
