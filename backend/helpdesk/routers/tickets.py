# =============================================================================
# HELPDESK API - TICKETS ROUTER
# =============================================================================
# Tickets, their threads and AI reply suggestions.
# Access rules live in services/policy.py; handlers only wire requests.
#
# Create, update and message endpoints take either a JSON body or a
# multipart form; only multipart bodies carry attachments.
# =============================================================================

from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Request, UploadFile
from pydantic import BaseModel
from starlette.datastructures import UploadFile as StarletteUploadFile

from ..auth.dependencies import get_current_user, require_staff
from ..auth.models import Actor
from ..database import get_db
from ..exceptions import ValidationError
from ..services import messages, tickets
from ..services.attachments import IncomingFile
from ..services.enrichment import suggest_reply
from ..services.registry import get_storage_service, get_ai_service, get_enrichment_queue
from ..utils.response import success_response, paginated_response


router = APIRouter(prefix="/tickets", tags=["Tickets"])

# Form fields that may repeat
LIST_FIELDS = ('tags',)
TRUE_VALUES = ('true', '1', 'yes', 'on')


# =============================================================================
# REQUEST PARSING
# =============================================================================

class UpdateStatusRequest(BaseModel):
    """Body of PATCH /tickets/{id}/status"""
    status: Optional[str] = None


async def read_uploads(files: Optional[List[UploadFile]]) -> List[IncomingFile]:
    """Read multipart files, skipping empty parts."""
    result = []
    for upload in files or []:
        if not upload or not upload.filename:
            continue
        result.append(IncomingFile(
            filename=upload.filename,
            content_type=upload.content_type,
            data=await upload.read()
        ))
    return result


async def read_body(request: Request) -> Tuple[Dict[str, Any], List[IncomingFile]]:
    """
    Fields and files of a JSON, multipart or urlencoded body.

    Returns:
        Tuple (fields, files); JSON bodies have no files

    Raises:
        ValidationError: malformed JSON, or JSON that is not an object
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError:
            raise ValidationError("Invalid JSON body")
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return payload, []

    form = await request.form()
    fields: Dict[str, Any] = {}
    uploads = []
    for key, value in form.multi_items():
        if isinstance(value, StarletteUploadFile):
            uploads.append(value)
        elif key in LIST_FIELDS:
            fields.setdefault(key, []).append(value)
        else:
            fields[key] = value
    return fields, await read_uploads(uploads)


def text_field(fields: Dict[str, Any], name: str) -> Optional[str]:
    """String value of a body field (None when absent)."""
    value = fields.get(name)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    return value


def tags_field(fields: Dict[str, Any]) -> Optional[List[str]]:
    value = fields.get('tags')
    if value is None or isinstance(value, str):
        return value
    if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
        raise ValidationError("tags must be a list of strings")
    return value


def flag_field(fields: Dict[str, Any], name: str) -> bool:
    value = fields.get(name)
    if isinstance(value, str):
        return value.strip().lower() in TRUE_VALUES
    return bool(value)


# =============================================================================
# TICKETS
# =============================================================================

@router.post("", status_code=201)
async def create_ticket(
    request: Request,
    actor: Actor = Depends(get_current_user),
    db=Depends(get_db),
    storage=Depends(get_storage_service),
    queue=Depends(get_enrichment_queue),
):
    """
    Create a ticket (JSON, or multipart with `attachments`).
    AI enrichment runs in the background after the ticket is committed.
    """
    fields, files = await read_body(request)
    ticket = tickets.create_ticket(
        db,
        actor,
        {
            'title': text_field(fields, 'title'),
            'description': text_field(fields, 'description'),
            'priority': text_field(fields, 'priority'),
            'category': text_field(fields, 'category'),
            'tags': tags_field(fields),
        },
        files=files,
        storage=storage,
        enrichment_queue=queue,
    )
    return success_response(data=ticket, message="Ticket created successfully")


@router.get("")
async def list_tickets(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    category: Optional[str] = None,
    assignedTo: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    actor: Actor = Depends(get_current_user),
    db=Depends(get_db),
):
    """
    List tickets.
    - Customer: own tickets only
    - Team/Admin: all tickets, or those assigned to `assignedTo`
    """
    items, pagination = tickets.list_tickets(
        db, actor,
        status=status,
        priority=priority,
        category=category,
        assigned_to=assignedTo,
        search=search,
        page=page,
        limit=limit,
    )
    return paginated_response(items, pagination, message="Tickets retrieved successfully")


@router.get("/my-tickets")
async def list_my_tickets(
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    actor: Actor = Depends(get_current_user),
    db=Depends(get_db),
):
    """Tickets filed by the current user."""
    items, pagination = tickets.list_my_tickets(
        db, actor, status=status, search=search, page=page, limit=limit
    )
    return paginated_response(items, pagination, message="Tickets retrieved successfully")


@router.get("/stats")
async def ticket_stats(actor: Actor = Depends(get_current_user), db=Depends(get_db)):
    """Status counters scoped by role."""
    return success_response(data=tickets.get_ticket_stats(db, actor))


@router.get("/{ticket_id}")
async def get_ticket(ticket_id: int, actor: Actor = Depends(get_current_user), db=Depends(get_db)):
    return success_response(data=tickets.get_ticket(db, actor, ticket_id),
                            message="Ticket retrieved successfully")


@router.put("/{ticket_id}")
async def update_ticket(
    ticket_id: int,
    request: Request,
    actor: Actor = Depends(get_current_user),
    db=Depends(get_db),
    storage=Depends(get_storage_service),
):
    """
    Update a ticket (JSON, or multipart with `attachments`).

    Empty text fields are ignored; assignedTo null or empty unassigns.
    New attachments are appended. A body with nothing to change is a 400.
    """
    fields, files = await read_body(request)

    changes = {}
    for field in ('title', 'description', 'status', 'priority', 'category'):
        value = text_field(fields, field)
        if value:
            changes[field] = value
    tags = tags_field(fields)
    if tags is not None:
        changes['tags'] = tags
    if 'assignedTo' in fields:
        changes['assigned_to'] = fields['assignedTo']

    ticket = tickets.update_ticket(
        db, actor, ticket_id, changes,
        files=files,
        storage=storage,
    )
    return success_response(data=ticket, message="Ticket updated successfully")


@router.delete("/{ticket_id}")
async def delete_ticket(
    ticket_id: int,
    actor: Actor = Depends(get_current_user),
    db=Depends(get_db),
    storage=Depends(get_storage_service),
):
    """Delete a ticket with its messages and attachments (admin only)."""
    tickets.delete_ticket(db, actor, ticket_id, storage=storage)
    return success_response(message="Ticket deleted successfully")


@router.patch("/{ticket_id}/status")
async def update_ticket_status(
    ticket_id: int,
    data: UpdateStatusRequest,
    actor: Actor = Depends(require_staff),
    db=Depends(get_db),
):
    """Status transition (team/admin)."""
    ticket = tickets.update_ticket_status(db, actor, ticket_id, data.status)
    return success_response(data=ticket, message="Ticket status updated successfully")


# =============================================================================
# MESSAGES
# =============================================================================

@router.post("/{ticket_id}/messages", status_code=201)
async def add_message(
    ticket_id: int,
    request: Request,
    actor: Actor = Depends(get_current_user),
    db=Depends(get_db),
    storage=Depends(get_storage_service),
):
    """Add a message (JSON or multipart); isInternal is ignored for customers."""
    fields, files = await read_body(request)
    message = messages.add_message(
        db, actor, ticket_id, text_field(fields, 'content'),
        is_internal=flag_field(fields, 'isInternal'),
        files=files,
        storage=storage,
    )
    return success_response(data=message, message="Message added successfully")


@router.get("/{ticket_id}/messages")
async def list_messages(
    ticket_id: int,
    page: int = 1,
    limit: Optional[int] = None,
    actor: Actor = Depends(get_current_user),
    db=Depends(get_db),
):
    """Thread, oldest first (customers never see internal notes)."""
    items, pagination = messages.list_messages(db, actor, ticket_id, page=page, limit=limit)
    return paginated_response(items, pagination)


@router.patch("/{ticket_id}/messages/read")
async def mark_messages_read(
    ticket_id: int,
    actor: Actor = Depends(get_current_user),
    db=Depends(get_db),
):
    marked = messages.mark_thread_read(db, actor, ticket_id)
    return success_response(data={"marked": marked}, message="Messages marked as read")


@router.post("/{ticket_id}/suggest-response")
async def suggest_response(
    ticket_id: int,
    actor: Actor = Depends(require_staff),
    db=Depends(get_db),
    analyzer=Depends(get_ai_service),
):
    """AI draft reply for agents ("" when the AI is unavailable)."""
    suggestion = suggest_reply(db, actor, ticket_id, analyzer)
    return success_response(data={"suggestion": suggestion})
