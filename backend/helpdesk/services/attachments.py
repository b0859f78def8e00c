"""
Attachment handling for tickets and messages.

Attachments are value objects owned by exactly one ticket or one message.
Files go to the storage collaborator first; rows are written by the caller's
transaction. An upload failure aborts the request, a removal failure is
logged and ignored.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from ..config import config
from ..database import utcnow
from ..exceptions import ValidationError, AttachmentUploadError

logger = logging.getLogger(__name__)

TICKETS_DESTINATION = 'tickets'
MESSAGES_DESTINATION = 'messages'


@dataclass
class IncomingFile:
    """A file received in a multipart request."""
    filename: str
    content_type: Optional[str]
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def validate_file(file: IncomingFile) -> None:
    """
    Check extension and size.

    Raises:
        ValidationError: extension not allowed or file too large
    """
    ext = os.path.splitext(file.filename or '')[1].lower()
    allowed = config.ALLOWED_EXTENSIONS
    if ext not in allowed:
        raise ValidationError(f"File type not allowed. Allowed: {', '.join(allowed)}")
    if file.size > config.MAX_FILE_SIZE:
        raise ValidationError(f"File too large. Max {config.MAX_FILE_SIZE // (1024 * 1024)} MB")


def store_files(storage, files: Iterable[IncomingFile], destination: str,
                error_cls=AttachmentUploadError) -> List[Dict[str, Any]]:
    """
    Validate and upload files, returning attachment records (not persisted).

    If one upload fails, files already stored by this call are removed and
    error_cls is raised.
    """
    files = [f for f in files if f is not None]
    for file in files:
        validate_file(file)

    stored = []
    for file in files:
        try:
            result = storage.upload(file.data, file.filename, destination)
        except Exception as e:
            logger.error(f"Upload of {file.filename} failed: {e}")
            remove_files(storage, [a['stored_name'] for a in stored])
            raise error_cls() from e

        stored.append({
            'filename': file.filename,
            'stored_name': result['filename'],
            'url': storage.url_for(result['filename']),
            'mime_type': file.content_type or 'application/octet-stream',
            'size': file.size,
            'uploaded_at': utcnow(),
        })
    return stored


def remove_files(storage, stored_names: Iterable[str]) -> None:
    """Best-effort removal: failures are logged and ignored."""
    for name in stored_names:
        if not name:
            continue
        try:
            storage.remove(name)
        except Exception as e:
            logger.warning(f"Failed to delete attachment {name}: {e}")


# =============================================================================
# PERSISTENCE
# =============================================================================

def insert_attachments(db, attachments: List[Dict[str, Any]],
                       ticket_id: Optional[int] = None,
                       message_id: Optional[int] = None) -> None:
    """Insert attachment rows for a ticket or a message (no commit)."""
    for attachment in attachments:
        db.execute(
            """
            INSERT INTO ticket_attachments
            (ticket_id, message_id, filename, stored_name, url, mime_type, size, uploaded_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (ticket_id, message_id, attachment['filename'], attachment['stored_name'],
             attachment['url'], attachment['mime_type'], attachment['size'],
             attachment['uploaded_at'])
        )


def _group_by(db, column: str, ids: List[int]) -> Dict[int, List[Dict]]:
    grouped = {i: [] for i in ids}
    if not ids:
        return grouped
    placeholders = ", ".join("?" for _ in ids)
    rows = db.execute(
        f"SELECT * FROM ticket_attachments WHERE {column} IN ({placeholders}) "
        f"ORDER BY uploaded_at ASC, id ASC",
        ids
    ).fetchall()
    for row in rows:
        grouped[row[column]].append(dict(row))
    return grouped


def attachments_for_tickets(db, ticket_ids: List[int]) -> Dict[int, List[Dict]]:
    return _group_by(db, 'ticket_id', ticket_ids)


def attachments_for_messages(db, message_ids: List[int]) -> Dict[int, List[Dict]]:
    return _group_by(db, 'message_id', message_ids)


def stored_names_for_ticket(db, ticket_id: int) -> List[str]:
    """Storage names of the ticket's attachments and of its messages' attachments."""
    rows = db.execute(
        """
        SELECT a.stored_name FROM ticket_attachments a
        WHERE a.ticket_id = ?
           OR a.message_id IN (SELECT m.id FROM ticket_messages m WHERE m.ticket_id = ?)
        """,
        (ticket_id, ticket_id)
    ).fetchall()
    return [row['stored_name'] for row in rows]


def serialize_attachment(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'filename': row['filename'],
        'url': row['url'],
        'mimeType': row.get('mime_type'),
        'size': row.get('size'),
        'uploadedAt': row.get('uploaded_at'),
    }
