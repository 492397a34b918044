import asyncio
import os
import tempfile
import unittest
from dataclasses import replace
from datetime import date
from unittest import mock

from cart import consignment, store
from cart.errors import CartConflictError
from cart.models import CartItem, ConsignmentConfig, DateRange
from db import database as db_database
from db import local_storage


def _fish(fish_id=7, price=5_000_000):
    return CartItem(
        id=fish_id,
        name=f"Kohaku {fish_id}",
        price=price,
        images=("https://img.example/k.jpg",),
        breeds=("Kohaku",),
    )


class CartStoreTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        db_database.DB_PATH = os.path.join(self.temp_dir.name, "store.sqlite")
        db_database._initialized = False
        db_database._init_lock = asyncio.Lock()

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_empty_cart(self):
        self.assertEqual(await store.get_cart(), [])

    async def test_add_same_fish_twice_bumps_quantity(self):
        await store.add_to_cart(_fish())
        cart = await store.add_to_cart(_fish())

        self.assertEqual(len(cart), 1)
        self.assertEqual(cart[0].quantity, 2)
        self.assertEqual(await store.get_cart(), cart)

    async def test_added_line_starts_without_consignment(self):
        item = CartItem(
            id=1, name="Showa", price=100, consign=True, consignment=ConsignmentConfig(diet_id=2)
        )
        cart = await store.add_to_cart(item)
        self.assertFalse(cart[0].consign)
        self.assertIsNone(cart[0].consignment)

    async def test_remove_only_fish(self):
        await store.add_to_cart(_fish())
        await store.remove_from_cart(7)
        self.assertEqual(await store.get_cart(), [])

    async def test_remove_unknown_id_is_noop(self):
        await store.add_to_cart(_fish())
        cart = await store.remove_from_cart(99)
        self.assertEqual([i.id for i in cart], [7])

    async def test_update_quantity(self):
        await store.add_to_cart(_fish())
        cart = await store.update_cart_item_quantity(7, 4)
        self.assertEqual(cart[0].quantity, 4)
        with self.assertRaises(ValueError):
            await store.update_cart_item_quantity(7, 0)

    async def test_update_consignment_persists(self):
        await store.add_to_cart(_fish())
        config = ConsignmentConfig(diet_id=3, date_range=DateRange(date(2024, 1, 1), date(2024, 1, 5)))
        await store.update_cart_item_consignment(7, True, config)

        (item,) = await store.get_cart()
        self.assertTrue(item.consign)
        self.assertEqual(item.consignment, config)

    async def test_update_item_edits_the_stored_line(self):
        await store.add_to_cart(_fish())
        stale = (await store.get_cart())[0]
        # another writer bumps the quantity after `stale` was read
        await store.add_to_cart(_fish())

        cart = await store.update_item(stale.id, lambda i: consignment.set_diet(i, 3))

        self.assertEqual(cart[0].quantity, 2)
        self.assertEqual(cart[0].consignment.diet_id, 3)
        self.assertEqual(await store.get_cart(), cart)

    async def test_update_item_reapplies_edit_after_conflict(self):
        await store.add_to_cart(_fish(1))
        await store.add_to_cart(_fish(2))
        real_cas = local_storage.compare_and_set
        calls = []

        async def flaky(key, value, rev):
            calls.append(rev)
            if len(calls) == 1:
                # someone else bumps koi 2 first
                await local_storage.set_item(
                    key,
                    '[{"id": 1, "name": "Kohaku 1", "price": 5000000},'
                    ' {"id": 2, "name": "Kohaku 2", "price": 5000000, "quantity": 2}]',
                )
                return False
            return await real_cas(key, value, rev)

        with mock.patch.object(local_storage, "compare_and_set", flaky):
            cart = await store.update_item(1, consignment.toggle_consignment)

        self.assertEqual(len(calls), 2)
        self.assertTrue(cart[0].consign)
        self.assertEqual(cart[1].quantity, 2)

    async def test_update_items_refreshes_every_line(self):
        await store.add_to_cart(_fish(1, price=100))
        await store.add_to_cart(_fish(2, price=200))
        await store.add_to_cart(_fish(2, price=200))

        cart = await store.update_items(lambda i: replace(i, price=i.price * 2))

        self.assertEqual([i.price for i in cart], [200, 400])
        self.assertEqual([i.quantity for i in cart], [1, 2])

    async def test_malformed_content_reads_as_empty(self):
        await local_storage.set_item(local_storage.CART_KEY, "{definitely not a cart")
        self.assertEqual(await store.get_cart(), [])

        await local_storage.set_item(local_storage.CART_KEY, '{"id": 1}')
        self.assertEqual(await store.get_cart(), [])

        for nested in (
            '[{"id": 1, "consignmentConfig": "oops"}]',
            '[{"id": 1, "consignmentConfig": {"dateRange": [1, 2]}}]',
            '[{"id": 1, "koiFishImages": ["u"]}]',
            '[{"id": 1, "koiBreeds": [3]}]',
            '[{"id": 1, "koiFishImages": "u"}]',
        ):
            await local_storage.set_item(local_storage.CART_KEY, nested)
            self.assertEqual(await store.get_cart(), [], nested)

        # a write over malformed content starts from an empty cart
        cart = await store.add_to_cart(_fish())
        self.assertEqual([i.id for i in cart], [7])

    async def test_reads_web_client_layout(self):
        await local_storage.set_item(
            local_storage.CART_KEY,
            '[{"id": 5, "name": "Sanke", "price": 1200000,'
            ' "koiFishImages": [{"imageUrl": "u"}], "koiBreeds": [{"name": "Sanke"}],'
            ' "consign": true, "consignmentConfig": {"dietId": 2,'
            ' "dateRange": {"from": "2024-01-01T00:00:00.000Z", "to": "2024-01-05T00:00:00.000Z"}}}]',
        )
        (item,) = await store.get_cart()
        self.assertEqual(item.quantity, 1)
        self.assertEqual(item.images, ("u",))
        self.assertEqual(item.consignment.diet_id, 2)
        self.assertEqual(item.consignment.date_range, DateRange(date(2024, 1, 1), date(2024, 1, 5)))

    async def test_concurrent_adds_are_not_lost(self):
        await asyncio.gather(*(store.add_to_cart(_fish(i)) for i in range(1, 5)))
        self.assertEqual(sorted(i.id for i in await store.get_cart()), [1, 2, 3, 4])

    async def test_conflict_is_retried(self):
        real_cas = local_storage.compare_and_set
        calls = []

        async def flaky(key, value, rev):
            calls.append(rev)
            if len(calls) == 1:
                # someone else writes first
                await local_storage.set_item(key, '[{"id": 1, "name": "Asagi", "price": 10}]')
                return False
            return await real_cas(key, value, rev)

        with mock.patch.object(local_storage, "compare_and_set", flaky):
            cart = await store.add_to_cart(_fish())

        self.assertEqual(len(calls), 2)
        self.assertEqual([i.id for i in cart], [1, 7])

    async def test_conflict_gives_up(self):
        async def always_lose(key, value, rev):
            return False

        with mock.patch.object(local_storage, "compare_and_set", always_lose):
            with self.assertRaises(CartConflictError) as ctx:
                await store.add_to_cart(_fish())
        self.assertEqual(ctx.exception.attempts, store.MAX_ATTEMPTS)

    async def test_listeners(self):
        seen = []
        async_seen = []

        async def async_listener(items):
            async_seen.append(len(items))

        unsubscribe = store.subscribe(lambda items: seen.append([i.id for i in items]))
        unsubscribe_async = store.subscribe(async_listener)
        try:
            await store.add_to_cart(_fish())
            await store.clear_cart()
        finally:
            unsubscribe()
            unsubscribe_async()

        self.assertEqual(seen, [[7], []])
        self.assertEqual(async_seen, [1, 0])

        await store.add_to_cart(_fish())
        self.assertEqual(len(seen), 2)

    async def test_clear_cart(self):
        await store.add_to_cart(_fish())
        await store.clear_cart()
        self.assertEqual(await store.get_cart(), [])
        self.assertIsNone(await local_storage.get_item(local_storage.CART_KEY))


if __name__ == "__main__":
    unittest.main()
