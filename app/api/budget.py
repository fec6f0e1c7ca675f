from typing import Optional

from fastapi import APIRouter, Depends

from .schemas import TransactionIn, TransactionUpdate, ok, require_text
from ..auth import current_user
from ..db import get_conn
from ..errors import ValidationFailed, require_owned
from ..pipeline.snapshots import spawn_refresh
from ..stores import ledger
from ..utils import iso_dt, now_iso, parse_datetime, range_start, round_money

router = APIRouter(prefix="/budget", tags=["Budget"])

def _since(time_range: Optional[str]) -> Optional[str]:
    try:
        return iso_dt(range_start(time_range))
    except ValueError as e:
        raise ValidationFailed(str(e))

def _tx_date(val) -> str:
    if not val:
        return now_iso()
    try:
        return iso_dt(parse_datetime(val))
    except ValueError:
        raise ValidationFailed("date must be an ISO date or datetime")

def _required_fields(body: TransactionIn) -> tuple[str, str]:
    item, category = body.item.strip(), body.category.strip()
    if not item or not category:
        raise ValidationFailed("Please provide all required fields")
    return item, category

@router.get('', summary="List transactions")
async def list_transactions(type: Optional[str] = None, time_range: Optional[str] = None,
                            user: dict = Depends(current_user)):
    if type is not None and type not in ledger.TX_TYPES:
        raise ValidationFailed(f"type must be one of {'|'.join(ledger.TX_TYPES)}")
    conn = await get_conn()
    rows = await ledger.list_transactions(conn, user["id"], type=type, since=_since(time_range))
    return ok(rows, count=len(rows))

@router.get('/stats', summary="Income, expenses and balance over a time range")
async def budget_stats(time_range: Optional[str] = None, user: dict = Depends(current_user)):
    conn = await get_conn()
    since = _since(time_range)
    totals = await ledger.totals_by_type(conn, user["id"], since=since)
    return ok({
        "total_income": round_money(totals["income"]),
        "total_expenses": round_money(totals["expense"]),
        "balance": round_money(totals["income"] - totals["expense"]),
        "transaction_count": totals["count"],
        "expenses_by_category": await ledger.expenses_by_category(conn, user["id"], since=since),
    })

@router.get('/{tx_id}', summary="Get a transaction")
async def get_transaction(tx_id: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    tx = require_owned(await ledger.get_transaction(conn, tx_id), user["id"], "Transaction")
    return ok(tx)

@router.post('', status_code=201, summary="Create a transaction")
async def create_transaction(body: TransactionIn, user: dict = Depends(current_user)):
    item, category = _required_fields(body)
    conn = await get_conn()
    tx = await ledger.create_transaction(
        conn, user["id"],
        item=item, amount=body.amount, category=category,
        date=_tx_date(body.date), type=body.type,
    )
    spawn_refresh(user["id"], tx["date"])
    return ok(tx, message="Transaction created")

@router.put('/{tx_id}', summary="Update a transaction")
async def update_transaction(tx_id: str, body: TransactionUpdate, user: dict = Depends(current_user)):
    conn = await get_conn()
    tx = require_owned(await ledger.get_transaction(conn, tx_id), user["id"], "Transaction")
    fields = body.model_dump(exclude_none=True)
    for field in ("item", "category"):
        if field in fields:
            fields[field] = require_text(fields[field], field)
    if "date" in fields:
        fields["date"] = _tx_date(fields["date"])
    updated = await ledger.update_transaction(conn, tx_id, fields)
    spawn_refresh(user["id"], updated["date"], tx["date"])
    return ok(updated, message="Transaction updated")

@router.delete('/{tx_id}', summary="Delete a transaction")
async def delete_transaction(tx_id: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    tx = require_owned(await ledger.get_transaction(conn, tx_id), user["id"], "Transaction")
    await ledger.delete_transaction(conn, tx_id)
    spawn_refresh(user["id"], tx["date"])
    return ok(message="Transaction deleted")
