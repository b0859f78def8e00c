# =============================================================================
# HELPDESK API - DATA ENTRIES
# =============================================================================
# Simple records (title, description, numeric value, optional image) owned by
# the user who created them. Listing and reading are public; only the owner
# may update or delete.
# =============================================================================

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..auth.models import Actor
from ..database import utcnow
from ..exceptions import ValidationError, ForbiddenError, DataEntryNotFoundError, ImageUploadError
from .attachments import IncomingFile, store_files, remove_files
from .pagination import Query, paginate, ref_columns, expand_ref

logger = logging.getLogger(__name__)

IMAGES_DESTINATION = 'data-entries'

ENTRY_SELECT = f"SELECT d.*, {ref_columns('u', 'creator')}"
ENTRY_SOURCE = "data_entries d LEFT JOIN users u ON u.id = d.created_by"


def serialize_entry(row: Dict[str, Any], storage) -> Dict[str, Any]:
    image = row.get('image')
    return {
        'id': row['id'],
        'title': row['title'],
        'description': row.get('description') or '',
        'value': row['value'],
        'image': image,
        'imageUrl': storage.url_for(image) if image else None,
        'createdBy': expand_ref(row, 'creator'),
        'createdAt': row['created_at'],
        'updatedAt': row['updated_at'],
    }


def _parse_value(value: Any) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Value is required")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError("Value must be a number")


def _upload_image(storage, image: Optional[IncomingFile]) -> Optional[str]:
    if image is None:
        return None
    stored = store_files(storage, [image], IMAGES_DESTINATION, error_cls=ImageUploadError)
    return stored[0]['stored_name']


# =============================================================================
# QUERIES
# =============================================================================

def _find_row(db, entry_id: int) -> Dict[str, Any]:
    row = db.execute(
        f"{ENTRY_SELECT} FROM {ENTRY_SOURCE} WHERE d.id = ?",
        (entry_id,)
    ).fetchone()
    if not row:
        raise DataEntryNotFoundError()
    return dict(row)


def get_entry(db, entry_id: int, storage) -> Dict[str, Any]:
    return serialize_entry(_find_row(db, entry_id), storage)


def list_entries(db, storage, search: Optional[str] = None,
                 created_by: Optional[int] = None, page: Any = None,
                 limit: Any = None) -> Tuple[List[Dict], Dict[str, int]]:
    """Public list, newest first, with search on title/description."""
    query = Query(ENTRY_SELECT, ENTRY_SOURCE)
    query.exact("d.created_by", created_by).search(["d.title", "d.description"], search)
    rows, pagination = paginate(db, query, page, limit, "d.created_at DESC, d.id DESC")
    return [serialize_entry(row, storage) for row in rows], pagination


# =============================================================================
# COMMANDS
# =============================================================================

def create_entry(db, actor: Actor, data: Dict[str, Any],
                 image: Optional[IncomingFile] = None, storage=None) -> Dict[str, Any]:
    """
    Create a data entry owned by actor.

    Raises:
        ValidationError: "Title is required", "Value is required"
        ImageUploadError: "Failed to upload image"
    """
    title = (data.get('title') or '').strip()
    if not title:
        raise ValidationError("Title is required")
    value = _parse_value(data.get('value'))
    description = (data.get('description') or '').strip()

    image_name = _upload_image(storage, image)
    now = utcnow()
    cursor = db.execute(
        """
        INSERT INTO data_entries (title, description, value, image, created_by, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (title, description, value, image_name, actor.id, now, now)
    )
    db.commit()

    logger.info(f"Data entry {cursor.lastrowid} created by user {actor.id}")
    return get_entry(db, cursor.lastrowid, storage)


def _ensure_owner(actor: Actor, row: Dict[str, Any], action: str) -> None:
    if row['created_by'] != actor.id:
        raise ForbiddenError(f"Unauthorized: You can only {action} your own data entries")


def update_entry(db, actor: Actor, entry_id: int, changes: Dict[str, Any],
                 image: Optional[IncomingFile] = None, storage=None) -> Dict[str, Any]:
    """
    Update the supplied fields; a new image replaces the old one, whose
    removal is best-effort.
    """
    row = _find_row(db, entry_id)
    _ensure_owner(actor, row, "update")

    sets = []
    params = []
    if 'title' in changes:
        title = (changes['title'] or '').strip()
        if not title:
            raise ValidationError("Title is required")
        sets.append("title = ?")
        params.append(title)
    if 'description' in changes:
        sets.append("description = ?")
        params.append((changes['description'] or '').strip())
    if 'value' in changes:
        sets.append("value = ?")
        params.append(_parse_value(changes['value']))

    if image is not None:
        sets.append("image = ?")
        params.append(_upload_image(storage, image))

    sets.append("updated_at = ?")
    params.append(utcnow())
    db.execute(f"UPDATE data_entries SET {', '.join(sets)} WHERE id = ?", [*params, entry_id])
    db.commit()

    if image is not None and row.get('image'):
        remove_files(storage, [row['image']])

    return get_entry(db, entry_id, storage)


def delete_entry(db, actor: Actor, entry_id: int, storage=None) -> None:
    row = _find_row(db, entry_id)
    _ensure_owner(actor, row, "delete")

    if row.get('image'):
        remove_files(storage, [row['image']])

    db.execute("DELETE FROM data_entries WHERE id = ?", (entry_id,))
    db.commit()
    logger.info(f"Data entry {entry_id} deleted by user {actor.id}")
