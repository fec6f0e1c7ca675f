from fastapi import APIRouter, Depends

from .schemas import TrashIn, ok
from ..auth import current_user
from ..db import get_conn
from ..pipeline.snapshots import spawn_refresh
from ..services import trash as trash_service
from ..utils import today_local

router = APIRouter(prefix="/trash", tags=["Trash"])

@router.get('', summary="List trashed items (expired ones are purged first)")
async def list_trash(user: dict = Depends(current_user)):
    conn = await get_conn()
    items = await trash_service.list_trash(conn, user["id"])
    return ok(items, count=len(items))

@router.post('', status_code=201, summary="Move an item to trash")
async def move_to_trash(body: TrashIn, user: dict = Depends(current_user)):
    conn = await get_conn()
    item = await trash_service.move_to_trash(conn, user["id"], body.type, body.original_id)
    spawn_refresh(user["id"], today_local(), *trash_service.affected_dates(item["type"], item["data"]))
    return ok(item, message="Item moved to trash")

@router.post('/{item_id}/restore', summary="Restore an item under its original id")
async def restore(item_id: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    item, doc = await trash_service.restore(conn, user["id"], item_id)
    spawn_refresh(user["id"], today_local(), *trash_service.affected_dates(item["type"], doc))
    return ok({"type": item["type"], "item": doc}, message="Item restored")

@router.delete('/empty', summary="Permanently delete everything in trash")
async def empty_trash(user: dict = Depends(current_user)):
    conn = await get_conn()
    deleted = await trash_service.empty_trash(conn, user["id"])
    return ok({"deleted": deleted}, message="Trash emptied")

@router.delete('/{item_id}', summary="Permanently delete one item")
async def delete_item(item_id: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    await trash_service.delete_permanently(conn, user["id"], item_id)
    return ok(message="Item permanently deleted")
