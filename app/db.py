import asyncio
from pathlib import Path

import aiosqlite
import structlog

from .config import settings

log = structlog.get_logger()

# Process-wide connection, opened once on first use.
_conn: aiosqlite.Connection | None = None
_connecting: asyncio.Task | None = None

DDL = [
    """
CREATE TABLE IF NOT EXISTS users (
  id TEXT PRIMARY KEY,
  username TEXT NOT NULL,
  email TEXT NOT NULL,
  password_hash TEXT NOT NULL,
  avatar TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    "CREATE UNIQUE INDEX IF NOT EXISTS ux_users_email ON users(email);",

    # Ledger
    """
CREATE TABLE IF NOT EXISTS transactions (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  item TEXT NOT NULL,
  amount REAL NOT NULL CHECK (amount >= 0),
  category TEXT NOT NULL,
  date TEXT NOT NULL,
  type TEXT NOT NULL CHECK (type IN ('income', 'expense')),
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS ix_transactions_user_date ON transactions(user_id, date);",

    # Goals; tasks embedded as JSON
    """
CREATE TABLE IF NOT EXISTS goals (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  title TEXT NOT NULL,
  tasks_json TEXT NOT NULL,
  completed INTEGER NOT NULL DEFAULT 0,
  completed_at TEXT,
  target_date TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS ix_goals_user_completed ON goals(user_id, completed, completed_at);",
    "CREATE INDEX IF NOT EXISTS ix_goals_user_created ON goals(user_id, created_at);",

    # Workouts; week_id is the week's Sunday or 'template'
    """
CREATE TABLE IF NOT EXISTS workouts (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  week_id TEXT NOT NULL,
  is_template INTEGER NOT NULL DEFAULT 0,
  start_date TEXT,
  end_date TEXT,
  archived_at TEXT,
  days_json TEXT NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    "CREATE UNIQUE INDEX IF NOT EXISTS ux_workouts_user_week ON workouts(user_id, week_id);",

    # Journal
    """
CREATE TABLE IF NOT EXISTS journals (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  title TEXT NOT NULL,
  content TEXT NOT NULL,
  date TEXT NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS ix_journals_user_date ON journals(user_id, date);",
    "CREATE INDEX IF NOT EXISTS ix_journals_user_created ON journals(user_id, created_at);",

    # Derived per-day metrics
    """
CREATE TABLE IF NOT EXISTS daily_snapshots (
  user_id TEXT NOT NULL,
  date TEXT NOT NULL,
  income REAL NOT NULL DEFAULT 0,
  expenses REAL NOT NULL DEFAULT 0,
  savings REAL NOT NULL DEFAULT 0,
  total_balance REAL NOT NULL DEFAULT 0,
  goals_completed INTEGER NOT NULL DEFAULT 0,
  total_goals INTEGER NOT NULL DEFAULT 0,
  workout_completed INTEGER NOT NULL DEFAULT 0,
  workout_name TEXT NOT NULL DEFAULT '',
  exercises_completed INTEGER NOT NULL DEFAULT 0,
  total_exercises INTEGER NOT NULL DEFAULT 0,
  journals_written INTEGER NOT NULL DEFAULT 0,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  PRIMARY KEY (user_id, date)
);
""",

    # Soft-deleted documents
    """
CREATE TABLE IF NOT EXISTS trash (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  type TEXT NOT NULL CHECK (type IN ('goal', 'workout', 'budget', 'journal')),
  original_id TEXT NOT NULL,
  data_json TEXT NOT NULL,
  trashed_at TEXT NOT NULL,
  expires_at TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS ix_trash_user_time ON trash(user_id, trashed_at);",
    "CREATE INDEX IF NOT EXISTS ix_trash_expires ON trash(expires_at);",
]

def resolve_db_path(url: str) -> str:
    text = (url or "").strip()
    if text.startswith("sqlite:///"):
        text = text[len("sqlite:///"):]
    elif text.startswith("sqlite://"):
        text = text[len("sqlite://"):] or ":memory:"
    if not text:
        raise ValueError("DATABASE_URL is empty")
    return text

async def migrate(conn: aiosqlite.Connection):
    for stmt in DDL:
        await conn.execute(stmt)
    await conn.commit()

async def _open(path: str) -> aiosqlite.Connection:
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(path, isolation_level=None)  # autocommit
    conn.row_factory = aiosqlite.Row
    if path != ":memory:":
        await conn.execute("PRAGMA journal_mode=WAL;")
    await migrate(conn)
    log.info("db_connected", path=path)
    return conn

def is_connected() -> bool:
    return _conn is not None

async def get_conn() -> aiosqlite.Connection:
    """Return the shared connection, opening it on first use.

    Concurrent first callers all await the same opening task, so only one
    connection is ever created. A failed open is not cached.
    """
    global _conn, _connecting
    if is_connected():
        return _conn
    if _connecting is None:
        _connecting = asyncio.ensure_future(_open(resolve_db_path(settings.database_url)))
    task = _connecting
    try:
        conn = await asyncio.shield(task)
    except Exception:
        if _connecting is task:
            _connecting = None
        log.error("db_connect_failed", exc_info=True)
        raise
    _conn = conn
    return conn

async def close_conn():
    global _conn, _connecting
    conn, task = _conn, _connecting
    _conn, _connecting = None, None
    if conn is None and task is not None:
        conn = await task
    if conn is not None:
        await conn.close()
        log.info("db_closed")

async def fetch_all(conn: aiosqlite.Connection, sql: str, params=()) -> list[dict]:
    async with conn.execute(sql, params) as cur:
        rows = await cur.fetchall()
    return [dict(row) for row in rows]

async def fetch_one(conn: aiosqlite.Connection, sql: str, params=()) -> dict | None:
    async with conn.execute(sql, params) as cur:
        row = await cur.fetchone()
    return dict(row) if row else None

async def fetch_value(conn: aiosqlite.Connection, sql: str, params=()):
    async with conn.execute(sql, params) as cur:
        row = await cur.fetchone()
    return row[0] if row else None

async def execute(conn: aiosqlite.Connection, sql: str, params=()) -> int:
    async with conn.execute(sql, params) as cur:
        return cur.rowcount
