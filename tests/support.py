import unittest
from datetime import datetime

from app import db
from app.pipeline.snapshots import wait_for_background
from app.stores import users as user_store
from app.utils import iso_dt


def at(year, month, day, hour=12):
    return iso_dt(datetime(year, month, day, hour))


class DbTestCase(unittest.IsolatedAsyncioTestCase):
    """Fresh in-memory database per test."""

    async def asyncSetUp(self):
        self.conn = await db.get_conn()

    async def asyncTearDown(self):
        await wait_for_background()
        await db.close_conn()

    async def make_user(self, email="ada@example.com"):
        user = await user_store.create_user(self.conn, email.split("@")[0], email, "x", "avatar.png")
        return user["id"]
