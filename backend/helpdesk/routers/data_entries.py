# =============================================================================
# HELPDESK API - DATA ENTRIES ROUTER
# =============================================================================
# Reading is public; writing requires authentication and ownership.
# =============================================================================

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..auth.dependencies import get_current_user
from ..auth.models import Actor
from ..database import get_db
from ..services import data_entries
from ..services.registry import get_storage_service
from ..utils.response import success_response, paginated_response
from .tickets import read_uploads


router = APIRouter(prefix="/data-entries", tags=["Data entries"])


async def _read_image(image: Optional[UploadFile]):
    uploads = await read_uploads([image] if image else None)
    return uploads[0] if uploads else None


@router.post("", status_code=201)
async def create_entry(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    value: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_user),
    db=Depends(get_db),
    storage=Depends(get_storage_service),
):
    entry = data_entries.create_entry(
        db, actor,
        {'title': title, 'description': description, 'value': value},
        image=await _read_image(image),
        storage=storage,
    )
    return success_response(data=entry, message="Data entry created successfully")


@router.get("")
async def list_entries(
    search: Optional[str] = None,
    createdBy: Optional[int] = None,
    page: int = 1,
    limit: Optional[int] = None,
    db=Depends(get_db),
    storage=Depends(get_storage_service),
):
    items, pagination = data_entries.list_entries(
        db, storage, search=search, created_by=createdBy, page=page, limit=limit
    )
    return paginated_response(items, pagination, message="Data entries retrieved successfully")


@router.get("/{entry_id}")
async def get_entry(entry_id: int, db=Depends(get_db), storage=Depends(get_storage_service)):
    return success_response(data=data_entries.get_entry(db, entry_id, storage),
                            message="Data entry retrieved successfully")


@router.put("/{entry_id}")
async def update_entry(
    entry_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    value: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_user),
    db=Depends(get_db),
    storage=Depends(get_storage_service),
):
    """Update the supplied fields; a new image replaces the old one."""
    changes = {
        field: v for field, v in (('title', title), ('description', description), ('value', value))
        if v is not None
    }
    entry = data_entries.update_entry(
        db, actor, entry_id, changes,
        image=await _read_image(image),
        storage=storage,
    )
    return success_response(data=entry, message="Data entry updated successfully")


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: int,
    actor: Actor = Depends(get_current_user),
    db=Depends(get_db),
    storage=Depends(get_storage_service),
):
    data_entries.delete_entry(db, actor, entry_id, storage=storage)
    return success_response(message="Data entry deleted successfully")
