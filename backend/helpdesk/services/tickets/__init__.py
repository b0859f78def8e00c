"""
Tickets - entity, lifecycle, read and write operations.

Structure:
- constants.py: statuses, priorities, categories
- lifecycle.py: ticket numbers, normalization, transitions
- queries.py: read operations
- commands.py: write operations
"""

from .constants import (
    TicketStatus,
    TicketPriority,
    TicketCategory,
    Sentiment,
    SenderRole,
)
from .lifecycle import generate_ticket_number, normalize_tags
from .queries import (
    get_ticket,
    find_ticket,
    load_ticket,
    list_tickets,
    list_my_tickets,
    list_all_tickets,
    count_by_status,
    get_ticket_stats,
)
from .commands import (
    create_ticket,
    update_ticket,
    update_ticket_status,
    assign_ticket,
    delete_ticket,
)

__all__ = [
    'TicketStatus',
    'TicketPriority',
    'TicketCategory',
    'Sentiment',
    'SenderRole',
    'generate_ticket_number',
    'normalize_tags',
    'get_ticket',
    'find_ticket',
    'load_ticket',
    'list_tickets',
    'list_my_tickets',
    'list_all_tickets',
    'count_by_status',
    'get_ticket_stats',
    'create_ticket',
    'update_ticket',
    'update_ticket_status',
    'assign_ticket',
    'delete_ticket',
]
