import asyncio
import os
import tempfile
import unittest
from datetime import date
from unittest import mock

from api import orders
from api.client import ApiResult
from cart import checkout, store
from cart.errors import CheckoutBlockedError
from cart.models import CartItem, ConsignmentConfig, DateRange
from db import database as db_database

PLAIN = CartItem(id=1, name="Kohaku", price=5_000_000)
NURTURED = CartItem(
    id=2,
    name="Showa",
    price=3_000_000,
    consign=True,
    consignment=ConsignmentConfig(
        diet_id=4, date_range=DateRange(date(2024, 1, 1), date(2024, 1, 5)), note="daily check"
    ),
)
NO_DIET = CartItem(
    id=3,
    name="Tancho",
    price=1_000_000,
    consign=True,
    consignment=ConsignmentConfig(date_range=DateRange(date(2024, 1, 1), date(2024, 1, 5))),
)


class AssembleOrderTestCase(unittest.TestCase):
    def test_payload(self):
        order = checkout.create_order_data_from_cart([PLAIN, NURTURED], "1 Le Loi", note="call first")
        self.assertEqual(
            order.to_payload(),
            {
                "purchaseFishes": [
                    {"fishId": 1, "isNuture": False},
                    {
                        "fishId": 2,
                        "isNuture": True,
                        "dietId": 4,
                        "startDate": "2024-01-01T00:00:00.000Z",
                        "endDate": "2024-01-05T00:00:00.000Z",
                        "note": "daily check",
                    },
                ],
                "shippingAddress": "1 Le Loi",
                "note": "call first",
            },
        )

    def test_blank_note_is_omitted(self):
        payload = checkout.create_order_data_from_cart([PLAIN], "1 Le Loi", note="").to_payload()
        self.assertNotIn("note", payload)

    def test_find_invalid_items(self):
        self.assertEqual(checkout.find_invalid_items([PLAIN, NURTURED, NO_DIET]), [NO_DIET])


class SubmitOrderTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        db_database.DB_PATH = os.path.join(self.temp_dir.name, "store.sqlite")
        db_database._initialized = False
        db_database._init_lock = asyncio.Lock()

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_incomplete_consignment_blocks_submit(self):
        with mock.patch.object(orders, "create_order", mock.AsyncMock()) as create_order:
            with self.assertRaises(CheckoutBlockedError) as ctx:
                await checkout.submit_order([PLAIN, NO_DIET], "1 Le Loi")
        create_order.assert_not_called()
        self.assertIn("Tancho", ctx.exception.message)
        self.assertEqual(ctx.exception.invalid_items, [NO_DIET])

    async def test_empty_cart_or_address_blocks_submit(self):
        with mock.patch.object(orders, "create_order", mock.AsyncMock()) as create_order:
            with self.assertRaises(CheckoutBlockedError):
                await checkout.submit_order([], "1 Le Loi")
            with self.assertRaises(CheckoutBlockedError):
                await checkout.submit_order([PLAIN], "   ")
        create_order.assert_not_called()

    async def test_success_clears_cart(self):
        await store.add_to_cart(PLAIN)
        ok = ApiResult.ok({"orderId": 12}, "Order created")
        with mock.patch.object(orders, "create_order", mock.AsyncMock(return_value=ok)) as create_order:
            result = await checkout.submit_order(await store.get_cart(), " 1 Le Loi ", "note")

        self.assertTrue(result.is_success)
        sent = create_order.await_args.args[0]
        self.assertEqual(sent.shipping_address, "1 Le Loi")
        self.assertEqual(await store.get_cart(), [])

    async def test_failure_keeps_cart(self):
        await store.add_to_cart(PLAIN)
        failed = ApiResult.fail("Insufficient balance")
        with mock.patch.object(orders, "create_order", mock.AsyncMock(return_value=failed)):
            result = await checkout.submit_order(await store.get_cart(), "1 Le Loi")

        self.assertFalse(result.is_success)
        self.assertEqual(result.message, "Insufficient balance")
        self.assertEqual([i.id for i in await store.get_cart()], [1])


if __name__ == "__main__":
    unittest.main()
