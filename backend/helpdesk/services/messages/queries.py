"""
Message queries - read operations.
"""

from typing import Any, Dict, List, Tuple

from ...auth.models import Actor
from ...config import config
from .. import policy
from ..attachments import attachments_for_messages, serialize_attachment
from ..pagination import Query, paginate, ref_columns, expand_ref
from ..tickets.queries import find_ticket

MESSAGE_SELECT = f"SELECT m.*, {ref_columns('s', 'sender')}"
MESSAGE_SOURCE = "ticket_messages m LEFT JOIN users s ON s.id = m.sender_id"
MESSAGE_ORDER = "m.created_at ASC, m.id ASC"


def serialize_message(row: Dict[str, Any], attachments: List[Dict] = None) -> Dict[str, Any]:
    return {
        'id': row['id'],
        'ticket': row['ticket_id'],
        'sender': expand_ref(row, 'sender'),
        'senderRole': row['sender_role'],
        'content': row['content'],
        'isInternal': bool(row['is_internal']),
        'attachments': [serialize_attachment(a) for a in (attachments or [])],
        'readAt': row.get('read_at'),
        'createdAt': row['created_at'],
    }


def serialize_messages(db, rows: List[Dict]) -> List[Dict]:
    grouped = attachments_for_messages(db, [row['id'] for row in rows])
    return [serialize_message(row, grouped.get(row['id'])) for row in rows]


def load_message(db, message_id: int) -> Dict[str, Any]:
    row = db.execute(
        f"{MESSAGE_SELECT} FROM {MESSAGE_SOURCE} WHERE m.id = ?",
        (message_id,)
    ).fetchone()
    return serialize_messages(db, [dict(row)])[0]


def list_messages(db, actor: Actor, ticket_id: int, page: Any = None,
                  limit: Any = None) -> Tuple[List[Dict], Dict[str, int]]:
    """
    Thread of a ticket, oldest first.

    Customers never receive internal messages; the pagination totals are
    computed on the filtered thread.

    Raises:
        TicketNotFoundError, ForbiddenError
    """
    ticket = find_ticket(db, ticket_id)
    policy.ensure_can_read(actor, ticket)

    query = Query(MESSAGE_SELECT, MESSAGE_SOURCE).where("m.ticket_id = ?", ticket_id)
    if not policy.can_view_internal(actor):
        query.where("m.is_internal = ?", False)

    rows, pagination = paginate(
        db, query, page, limit, MESSAGE_ORDER,
        default_limit=config.DEFAULT_MESSAGE_LIMIT
    )
    return serialize_messages(db, rows), pagination
