#!/usr/bin/env python3
"""
Archive a workout week for every user. Safe to re-run.

Usage:
    python scripts/archive_weeks.py               # The week that just ended
    python scripts/archive_weeks.py 2026-03-01    # A specific week (any date inside it)
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
from app.logging import setup_logging
from app.pipeline.archival import archive_all_users
from app.utils import parse_date, week_id

async def main(target: str | None):
    conn = await get_conn()
    try:
        return await archive_all_users(conn, week_id=target)
    finally:
        await close_conn()

if __name__ == '__main__':
    setup_logging()
    target = week_id(parse_date(sys.argv[1])) if len(sys.argv) > 1 else None
    print(asyncio.run(main(target)))
