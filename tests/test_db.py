import asyncio
import unittest

from app import db
from app.stores import users as user_store

from .support import DbTestCase


class ConnectionTests(unittest.IsolatedAsyncioTestCase):
    async def asyncTearDown(self):
        await db.close_conn()

    async def test_concurrent_first_callers_share_one_connection(self):
        conns = await asyncio.gather(*(db.get_conn() for _ in range(5)))
        self.assertTrue(all(c is conns[0] for c in conns))
        self.assertTrue(db.is_connected())

    async def test_close_resets_the_guard(self):
        first = await db.get_conn()
        await db.close_conn()
        self.assertFalse(db.is_connected())
        second = await db.get_conn()
        self.assertIsNot(first, second)


class SchemaTests(DbTestCase):
    async def test_migrate_is_repeatable(self):
        await db.migrate(self.conn)
        tables = await db.fetch_all(self.conn, "SELECT name FROM sqlite_master WHERE type='table'")
        names = {t["name"] for t in tables}
        for table in ("users", "transactions", "goals", "workouts", "journals", "daily_snapshots", "trash"):
            self.assertIn(table, names)

    async def test_public_user_hides_password_hash(self):
        user_id = await self.make_user()
        user = await user_store.get_user(self.conn, user_id)
        self.assertIn("password_hash", user)
        self.assertNotIn("password_hash", user_store.public_user(user))


if __name__ == "__main__":
    unittest.main()
