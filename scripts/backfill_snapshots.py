#!/usr/bin/env python3
"""
Recompute daily snapshots for every user (or one user).

Usage:
    python scripts/backfill_snapshots.py                 # Last BACKFILL_DEFAULT_DAYS days, all users
    python scripts/backfill_snapshots.py 90              # Last 90 days, all users
    python scripts/backfill_snapshots.py 90 <user_id>    # Last 90 days, one user
"""
from pathlib import Path
import asyncio
import os
import sys

# Ensure repo root is on sys.path and is the working directory.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.chdir(ROOT)

from app.db import close_conn, get_conn
from app.config import settings
from app.logging import setup_logging
from app.pipeline.snapshots import backfill
from app.stores.users import list_user_ids

async def main(days: int, user_id: str | None):
    conn = await get_conn()
    try:
        user_ids = [user_id] if user_id else await list_user_ids(conn)
        for uid in user_ids:
            count = await backfill(conn, uid, days)
            print(f'{uid}: {count} days')
    finally:
        await close_conn()

if __name__ == '__main__':
    setup_logging()
    days = int(sys.argv[1]) if len(sys.argv) > 1 else settings.backfill_default_days
    user_id = sys.argv[2] if len(sys.argv) > 2 else None
    print(f'Backfilling {days} days...')
    asyncio.run(main(days, user_id))
    print('Done.')
