"""
Ticket commands - write operations.

Every command loads the ticket, runs the policy checks and the lifecycle
validation, and only then writes. Stamps (resolved_at, closed_at) are set
with COALESCE so that they are written once and never cleared.
"""

import json
import logging
from typing import Any, Dict, Iterable, Optional

from ...auth.models import Actor
from ...database import utcnow
from ...exceptions import ForbiddenError, NotFoundError, ValidationError
from .. import policy
from ..attachments import (
    IncomingFile,
    TICKETS_DESTINATION,
    store_files,
    remove_files,
    insert_attachments,
    stored_names_for_ticket,
)
from ..users import get_user_row, is_staff_user
from .constants import TicketStatus, TicketPriority, TicketCategory
from .lifecycle import (
    ensure_ticket_number,
    clean_title,
    clean_description,
    normalize_tags,
    validate_status,
    validate_priority,
    validate_category,
    stamp_column,
)
from .queries import find_ticket, load_ticket

logger = logging.getLogger(__name__)

UNASSIGNED_VALUES = (None, '', 'null', 'none')


def _resolve_assignee(db, assignee: Any) -> Optional[int]:
    """
    Validate an assignee id.

    Returns:
        The user id, or None to unassign

    Raises:
        ValidationError: not an id, or not a staff member
        NotFoundError: "Assignee not found"
    """
    if isinstance(assignee, str):
        assignee = assignee.strip()
        if assignee.lower() in UNASSIGNED_VALUES:
            return None
    if assignee is None:
        return None

    try:
        assignee_id = int(assignee)
    except (TypeError, ValueError):
        raise ValidationError("Invalid assignee id")

    user = get_user_row(db, assignee_id)
    if not user:
        raise NotFoundError("Assignee not found")
    if not is_staff_user(user):
        raise ValidationError("Can only assign to team members or admins")
    return assignee_id


def _store_or_none(storage, files: Iterable[IncomingFile]):
    files = [f for f in (files or []) if f is not None]
    if not files:
        return []
    return store_files(storage, files, TICKETS_DESTINATION)


# =============================================================================
# CREATE
# =============================================================================

def create_ticket(db, actor: Actor, data: Dict[str, Any],
                  files: Iterable[IncomingFile] = (), storage=None,
                  enrichment_queue=None) -> Dict[str, Any]:
    """
    Create a ticket owned by actor.

    Args:
        db: Database connection
        actor: Authenticated identity (becomes the customer)
        data: Dict with ticket fields:
            - title (required, <= 200 chars)
            - description (required)
            - priority (optional, default 'medium')
            - category (optional, default 'general')
            - tags (optional, list or single value)
        files: Attachments to upload
        storage: Storage collaborator
        enrichment_queue: Queue receiving the AI enrichment job after commit

    Returns:
        Serialized ticket (as committed, before enrichment)
    """
    title = clean_title(data.get('title'))
    description = clean_description(data.get('description'))
    priority = validate_priority(data.get('priority') or TicketPriority.DEFAULT)
    category = validate_category(data.get('category') or TicketCategory.DEFAULT)
    tags = normalize_tags(data.get('tags'))

    attachments = _store_or_none(storage, files)

    ticket = {'ticket_number': data.get('ticket_number')}
    ensure_ticket_number(ticket)
    now = utcnow()

    try:
        cursor = db.execute(
            """
            INSERT INTO tickets
            (ticket_number, title, description, status, priority, category,
             customer_id, tags, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (ticket['ticket_number'], title, description, TicketStatus.OPEN,
             priority, category, actor.id, json.dumps(tags), now, now)
        )
        ticket_id = cursor.lastrowid
        insert_attachments(db, attachments, ticket_id=ticket_id)
        db.commit()
    except Exception:
        db.rollback()
        remove_files(storage, [a['stored_name'] for a in attachments])
        raise

    logger.info(f"Ticket {ticket['ticket_number']} created by user {actor.id}")
    created = load_ticket(db, ticket_id)

    if enrichment_queue is not None:
        enrichment_queue.submit(ticket_id, title, description)

    return created


# =============================================================================
# UPDATE
# =============================================================================

def update_ticket(db, actor: Actor, ticket_id: int, changes: Dict[str, Any],
                  files: Iterable[IncomingFile] = (), storage=None) -> Dict[str, Any]:
    """
    Update ticket fields.

    Args:
        changes: Only the fields supplied by the caller. Customers may send
            title/description; staff also status, priority, category, tags,
            assigned_to (None or '' unassigns).
        files: New attachments, appended to the existing ones

    Raises:
        TicketNotFoundError, ForbiddenError, NotFoundError
        ValidationError: invalid values, or neither changes nor files
    """
    ticket = find_ticket(db, ticket_id)
    policy.ensure_can_write(actor, ticket, changes.keys())
    files = [f for f in (files or []) if f is not None]
    if not changes and not files:
        raise ValidationError("No fields to update")

    sets = []
    params = []

    if 'title' in changes:
        sets.append("title = ?")
        params.append(clean_title(changes['title']))
    if 'description' in changes:
        sets.append("description = ?")
        params.append(clean_description(changes['description']))
    if 'priority' in changes:
        sets.append("priority = ?")
        params.append(validate_priority(changes['priority']))
    if 'category' in changes:
        sets.append("category = ?")
        params.append(validate_category(changes['category']))
    if 'tags' in changes:
        sets.append("tags = ?")
        params.append(json.dumps(normalize_tags(changes['tags'])))
    if 'assigned_to' in changes:
        sets.append("assigned_to = ?")
        params.append(_resolve_assignee(db, changes['assigned_to']))

    now = utcnow()
    if 'status' in changes:
        status = validate_status(changes['status'])
        sets.append("status = ?")
        params.append(status)
        column = stamp_column(status)
        if column:
            sets.append(f"{column} = COALESCE({column}, ?)")
            params.append(now)

    attachments = _store_or_none(storage, files)

    sets.append("updated_at = ?")
    params.append(now)
    try:
        db.execute(f"UPDATE tickets SET {', '.join(sets)} WHERE id = ?", [*params, ticket_id])
        insert_attachments(db, attachments, ticket_id=ticket_id)
        db.commit()
    except Exception:
        db.rollback()
        remove_files(storage, [a['stored_name'] for a in attachments])
        raise

    logger.info(f"Ticket {ticket['ticket_number']} updated by user {actor.id}: {sorted(changes)}")
    return load_ticket(db, ticket_id)


def update_ticket_status(db, actor: Actor, ticket_id: int, new_status: Optional[str]) -> Dict[str, Any]:
    """
    Move a ticket to new_status (staff only, any-to-any).

    Entering resolved/closed stamps resolved_at/closed_at when unset;
    re-opening keeps the stamps.
    """
    ticket = find_ticket(db, ticket_id)
    if not policy.can_change_status(actor, ticket):
        raise ForbiddenError(policy.ACCESS_DENIED)
    if not new_status:
        raise ValidationError("Status is required")
    status = validate_status(new_status)

    now = utcnow()
    sets = ["status = ?", "updated_at = ?"]
    params = [status, now]
    column = stamp_column(status)
    if column:
        sets.append(f"{column} = COALESCE({column}, ?)")
        params.append(now)

    db.execute(f"UPDATE tickets SET {', '.join(sets)} WHERE id = ?", [*params, ticket_id])
    db.commit()

    logger.info(f"Ticket {ticket['ticket_number']}: {ticket['status']} -> {status} (user {actor.id})")
    return load_ticket(db, ticket_id)


def assign_ticket(db, ticket_id: int, assignee: Any) -> Dict[str, Any]:
    """
    Assign a ticket to a staff member, or unassign with an empty value.

    Raises:
        TicketNotFoundError: 404
        NotFoundError: "Assignee not found"
        ValidationError: "Can only assign to team members or admins"
    """
    ticket = find_ticket(db, ticket_id)
    assignee_id = _resolve_assignee(db, assignee)

    db.execute(
        "UPDATE tickets SET assigned_to = ?, updated_at = ? WHERE id = ?",
        (assignee_id, utcnow(), ticket_id)
    )
    db.commit()

    logger.info(f"Ticket {ticket['ticket_number']} assigned to {assignee_id}")
    return load_ticket(db, ticket_id)


# =============================================================================
# DELETE
# =============================================================================

def delete_ticket(db, actor: Actor, ticket_id: int, storage=None) -> None:
    """
    Delete a ticket with its messages and attachments (admin only).

    Stored files are removed after the commit, best-effort: a removal
    failure is logged and does not undo the deletion. A failed delete
    rolls back and leaves the files in place.
    """
    ticket = find_ticket(db, ticket_id)
    policy.ensure_can_delete(actor, ticket)

    stored_names = stored_names_for_ticket(db, ticket_id)

    try:
        db.execute(
            "DELETE FROM ticket_attachments WHERE message_id IN "
            "(SELECT id FROM ticket_messages WHERE ticket_id = ?)",
            (ticket_id,)
        )
        db.execute("DELETE FROM ticket_attachments WHERE ticket_id = ?", (ticket_id,))
        db.execute("DELETE FROM ticket_messages WHERE ticket_id = ?", (ticket_id,))
        db.execute("DELETE FROM tickets WHERE id = ?", (ticket_id,))
        db.commit()
    except Exception:
        db.rollback()
        raise

    if storage is not None:
        remove_files(storage, stored_names)

    logger.info(f"Ticket {ticket['ticket_number']} deleted by admin {actor.id}")
