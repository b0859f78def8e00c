"""
Message commands - write operations.
"""

import logging
from typing import Any, Dict, Iterable

from ...auth.models import Actor
from ...database import utcnow
from ...exceptions import ValidationError
from .. import policy
from ..attachments import (
    IncomingFile,
    MESSAGES_DESTINATION,
    store_files,
    remove_files,
    insert_attachments,
)
from ..tickets.constants import SenderRole
from ..tickets.queries import find_ticket
from .queries import load_message

logger = logging.getLogger(__name__)


def sender_role_for(actor: Actor) -> str:
    """customer -> customer, team/admin -> agent."""
    return SenderRole.AGENT if actor.is_staff else SenderRole.CUSTOMER


def add_message(db, actor: Actor, ticket_id: int, content: str,
                is_internal: bool = False, files: Iterable[IncomingFile] = (),
                storage=None) -> Dict[str, Any]:
    """
    Append a message to a ticket thread.

    Args:
        db: Database connection
        actor: Author
        ticket_id: Ticket id
        content: Message text (required, trimmed)
        is_internal: Staff-only note; always False for customers
        files: Attachments
        storage: Storage collaborator

    Returns:
        Serialized message

    Raises:
        ValidationError: "Message content is required"
        TicketNotFoundError, ForbiddenError
    """
    content = (content or '').strip()
    if not content:
        raise ValidationError("Message content is required")

    ticket = find_ticket(db, ticket_id)
    policy.ensure_can_read(actor, ticket)

    internal = bool(is_internal) and policy.can_view_internal(actor)
    files = [f for f in (files or []) if f is not None]
    attachments = store_files(storage, files, MESSAGES_DESTINATION) if files else []

    now = utcnow()
    try:
        cursor = db.execute(
            """
            INSERT INTO ticket_messages
            (ticket_id, sender_id, sender_role, content, is_internal, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (ticket_id, actor.id, sender_role_for(actor), content, internal, now)
        )
        message_id = cursor.lastrowid
        insert_attachments(db, attachments, message_id=message_id)

        db.execute("UPDATE tickets SET updated_at = ? WHERE id = ?", (now, ticket_id))
        if actor.is_staff:
            db.execute(
                "UPDATE tickets SET first_response_at = ? "
                "WHERE id = ? AND first_response_at IS NULL",
                (now, ticket_id)
            )
        db.commit()
    except Exception:
        db.rollback()
        remove_files(storage, [a['stored_name'] for a in attachments])
        raise

    logger.info(
        f"Message {message_id} on ticket {ticket['ticket_number']} "
        f"by user {actor.id}{' (internal)' if internal else ''}"
    )
    return load_message(db, message_id)


def mark_thread_read(db, actor: Actor, ticket_id: int) -> int:
    """
    Stamp read_at on unread messages written by the other side.

    A customer marks agent/system/ai messages visible to them, staff mark
    customer messages.

    Returns:
        Number of messages marked
    """
    ticket = find_ticket(db, ticket_id)
    policy.ensure_can_read(actor, ticket)

    if actor.is_staff:
        cursor = db.execute(
            "UPDATE ticket_messages SET read_at = ? "
            "WHERE ticket_id = ? AND read_at IS NULL AND sender_role = ?",
            (utcnow(), ticket_id, SenderRole.CUSTOMER)
        )
    else:
        cursor = db.execute(
            "UPDATE ticket_messages SET read_at = ? "
            "WHERE ticket_id = ? AND read_at IS NULL AND sender_role != ? AND is_internal = ?",
            (utcnow(), ticket_id, SenderRole.CUSTOMER, False)
        )
    db.commit()
    return cursor.rowcount
