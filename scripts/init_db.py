from pathlib import Path
import asyncio
import os
import sys

# Ensure repo root is on sys.path and is the working directory.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.chdir(ROOT)

from app.db import close_conn, fetch_value, get_conn, resolve_db_path
from app.config import settings

async def main():
    conn = await get_conn()
    users = await fetch_value(conn, "SELECT COUNT(*) FROM users")
    await close_conn()
    print('DB ready at', resolve_db_path(settings.database_url), '| users:', users)

if __name__ == '__main__':
    asyncio.run(main())
