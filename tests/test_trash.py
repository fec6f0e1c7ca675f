import unittest

from app.domain.goals import new_goal
from app.errors import Conflict, Forbidden, ValidationFailed
from app.services import trash as trash_service
from app.stores import goals as goal_store
from app.stores import ledger

from .support import DbTestCase, at


class TrashServiceTests(DbTestCase):
    async def test_restore_conflicts_when_id_is_taken_again(self):
        user_id = await self.make_user()
        goal = new_goal(user_id, "Run a 10k", [{"title": "train"}], None, at(2026, 3, 2))
        await goal_store.insert_goal(self.conn, goal)
        item = await trash_service.move_to_trash(self.conn, user_id, "goal", goal["id"])
        self.assertIsNone(await goal_store.get_goal(self.conn, goal["id"]))

        await goal_store.insert_goal(self.conn, goal)
        with self.assertRaises(Conflict):
            await trash_service.restore(self.conn, user_id, item["id"])

    async def test_restore_recreates_original_id(self):
        user_id = await self.make_user()
        tx = await ledger.create_transaction(
            self.conn, user_id, item="coffee", amount=3.5, category="Food", date=at(2026, 3, 2), type="expense",
        )
        item = await trash_service.move_to_trash(self.conn, user_id, "budget", tx["id"])
        _, doc = await trash_service.restore(self.conn, user_id, item["id"])
        self.assertEqual(doc["id"], tx["id"])
        self.assertEqual((await ledger.get_transaction(self.conn, tx["id"]))["amount"], 3.5)
        self.assertEqual(await trash_service.list_trash(self.conn, user_id), [])

    async def test_cannot_trash_someone_elses_item(self):
        owner = await self.make_user("a@example.com")
        other = await self.make_user("b@example.com")
        tx = await ledger.create_transaction(
            self.conn, owner, item="rent", amount=900, category="Home", date=at(2026, 3, 2), type="expense",
        )
        with self.assertRaises(Forbidden):
            await trash_service.move_to_trash(self.conn, other, "budget", tx["id"])
        with self.assertRaises(ValidationFailed):
            await trash_service.move_to_trash(self.conn, owner, "photo", tx["id"])


if __name__ == "__main__":
    unittest.main()
