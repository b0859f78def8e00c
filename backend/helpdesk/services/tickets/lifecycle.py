"""
Ticket lifecycle rules.

Construction-time functions called by the write path before persistence:
ticket number generation, field normalization and validation, and the
timestamps stamped on status changes. Status transitions are permissive:
staff may move a ticket from any status to any other valid status.
"""

import secrets
import string
import time
from typing import Any, Dict, Iterable, List, Optional

from ...exceptions import ValidationError
from .constants import TicketStatus, TicketPriority, TicketCategory, TITLE_MAX_LENGTH

BASE36_ALPHABET = string.digits + string.ascii_uppercase
TICKET_NUMBER_PREFIX = 'TKT'
RANDOM_SUFFIX_LENGTH = 4


def to_base36(value: int) -> str:
    """Upper-case base36 representation of a non-negative integer."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return '0'
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return ''.join(reversed(digits))


def generate_ticket_number(now_ms: Optional[int] = None) -> str:
    """
    Build a ticket number: TKT-<base36 ms timestamp>-<4 random base36 chars>.

    Args:
        now_ms: Timestamp in milliseconds (default: current time)

    Returns:
        Upper-case ticket number, e.g. 'TKT-LZ3K9Q2A-7F0B'
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = ''.join(secrets.choice(BASE36_ALPHABET) for _ in range(RANDOM_SUFFIX_LENGTH))
    return f"{TICKET_NUMBER_PREFIX}-{to_base36(now_ms)}-{suffix}"


def ensure_ticket_number(ticket: Dict[str, Any]) -> str:
    """Assign a ticket number only when the ticket has none yet."""
    if not ticket.get('ticket_number'):
        ticket['ticket_number'] = generate_ticket_number()
    return ticket['ticket_number']


# =============================================================================
# FIELD NORMALIZATION
# =============================================================================

def clean_title(title: Optional[str]) -> str:
    title = (title or '').strip()
    if not title:
        raise ValidationError("Title is required")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
    return title


def clean_description(description: Optional[str]) -> str:
    description = (description or '').strip()
    if not description:
        raise ValidationError("Description is required")
    return description


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Strip, drop empties, de-duplicate keeping the first occurrence."""
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = [tags]
    result = []
    for tag in tags:
        tag = (tag or '').strip()
        if tag and tag not in result:
            result.append(tag)
    return result


def validate_status(status: str) -> str:
    if status not in TicketStatus.ALL:
        raise ValidationError(f"Invalid status. Allowed values: {', '.join(TicketStatus.ALL)}")
    return status


def validate_priority(priority: str) -> str:
    if priority not in TicketPriority.ALL:
        raise ValidationError(f"Invalid priority. Allowed values: {', '.join(TicketPriority.ALL)}")
    return priority


def validate_category(category: str) -> str:
    if category not in TicketCategory.ALL:
        raise ValidationError(f"Invalid category. Allowed values: {', '.join(TicketCategory.ALL)}")
    return category


# =============================================================================
# TRANSITIONS
# =============================================================================

def is_valid_transition(current_status: str, new_status: str) -> bool:
    """Any valid status may follow any other."""
    return current_status in TicketStatus.ALL and new_status in TicketStatus.ALL


def stamp_column(new_status: str) -> Optional[str]:
    """Timestamp column set once when entering new_status (None if none)."""
    return TicketStatus.STAMPS.get(new_status)
