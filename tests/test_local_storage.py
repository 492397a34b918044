import asyncio
import os
import tempfile
import unittest

from db import database as db_database
from db import local_storage


class LocalStorageTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        # Point the store to a temporary file and force re-initialization
        self.temp_dir = tempfile.TemporaryDirectory()
        db_database.DB_PATH = os.path.join(self.temp_dir.name, "nested", "store.sqlite")
        db_database._initialized = False
        db_database._init_lock = asyncio.Lock()

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_set_get_remove(self):
        self.assertIsNone(await local_storage.get_item("jwt"))

        await local_storage.set_item("jwt", "abc")
        self.assertEqual(await local_storage.get_item("jwt"), "abc")
        self.assertTrue(os.path.isfile(db_database.DB_PATH))

        await local_storage.remove_item("jwt")
        self.assertIsNone(await local_storage.get_item("jwt"))

    async def test_set_item_bumps_revision(self):
        await local_storage.set_item("k", "one")
        self.assertEqual(await local_storage.get_entry("k"), ("one", 1))
        await local_storage.set_item("k", "two")
        self.assertEqual(await local_storage.get_entry("k"), ("two", 2))

    async def test_compare_and_set(self):
        # revision 0 means the key must not exist yet
        self.assertTrue(await local_storage.compare_and_set("cart", "[]", 0))
        self.assertFalse(await local_storage.compare_and_set("cart", "[1]", 0))

        value, rev = await local_storage.get_entry("cart")
        self.assertEqual((value, rev), ("[]", 1))

        # a stale revision loses, the current one wins
        self.assertTrue(await local_storage.compare_and_set("cart", "[2]", rev))
        self.assertFalse(await local_storage.compare_and_set("cart", "[3]", rev))
        self.assertEqual(await local_storage.get_entry("cart"), ("[2]", 2))

    async def test_remove_items_keeps_other_keys(self):
        for key in local_storage.AUTH_KEYS:
            await local_storage.set_item(key, "x")
        await local_storage.set_item(local_storage.CART_KEY, "[]")

        await local_storage.remove_items(local_storage.AUTH_KEYS)

        for key in local_storage.AUTH_KEYS:
            self.assertIsNone(await local_storage.get_item(key))
        self.assertEqual(await local_storage.get_item(local_storage.CART_KEY), "[]")

    async def test_json_helpers(self):
        self.assertEqual(await local_storage.get_json("user", default={}), {})
        await local_storage.set_json("user", {"fullName": "Nguyễn An", "id": 3})
        self.assertEqual(
            await local_storage.get_json("user"), {"fullName": "Nguyễn An", "id": 3}
        )

        await local_storage.set_item("user", "{not json")
        self.assertIsNone(await local_storage.get_json("user"))

    async def test_clear(self):
        await local_storage.set_item("a", "1")
        await local_storage.set_item("b", "2")
        await local_storage.clear()
        self.assertIsNone(await local_storage.get_item("a"))
        self.assertIsNone(await local_storage.get_item("b"))


if __name__ == "__main__":
    unittest.main()
