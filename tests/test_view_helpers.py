import unittest
from datetime import datetime, timezone
from unittest import mock

import api.auth as auth
from api.client import ApiResult
from api.models import Order, User
from api.statuses import OrderStatus, Role
from utils.state import GlobalState
from views.scr_mgr_orders import filter_orders
from views.scr_mgr_overview import weekly_summary
from views.scr_mgr_users import search_users, user_payload


def _order(order_id, status=OrderStatus.PENDING, when="2024-06-10T08:00:00Z", user_id=1, total=100, name="An"):
    return Order(
        id=order_id,
        status=status,
        total_amount=total,
        order_date=when,
        user_id=user_id,
        user_name=name,
        shipping_address="1 Le Loi",
    )


class OrderFilterTestCase(unittest.TestCase):
    def test_filter_by_status_and_term(self):
        orders = [
            _order(1, when="2024-06-01T00:00:00Z"),
            _order(2, status=OrderStatus.COMPLETED, name="Binh"),
            _order(3, when="2024-06-12T00:00:00Z"),
        ]
        self.assertEqual([o.id for o in filter_orders(orders, None, "")], [3, 2, 1])
        self.assertEqual([o.id for o in filter_orders(orders, OrderStatus.PENDING, "")], [3, 1])
        self.assertEqual([o.id for o in filter_orders(orders, None, "binh")], [2])
        self.assertEqual([o.id for o in filter_orders(orders, None, "3")], [3])


class WeeklySummaryTestCase(unittest.TestCase):
    def test_last_seven_days_without_cancelled(self):
        now = datetime(2024, 6, 14, tzinfo=timezone.utc)
        orders = [
            _order(1, when="2024-06-10T08:00:00Z", user_id=1, total=300),
            _order(2, when="2024-06-11T08:00:00", user_id=2, total=100),
            _order(3, status=OrderStatus.CANCELLED, user_id=3, total=999),
            _order(4, when="2024-05-01T08:00:00Z", user_id=4, total=999),
            _order(5, when=None, user_id=5, total=999),
        ]
        summary = weekly_summary(orders, now)
        self.assertEqual(summary["orders"], 2)
        self.assertEqual(summary["customers"], 2)
        self.assertEqual(summary["total"], 400)
        self.assertEqual(summary["avg_per_customer"], 200)

    def test_empty(self):
        summary = weekly_summary([], datetime(2024, 6, 14, tzinfo=timezone.utc))
        self.assertEqual(summary["avg_per_customer"], 0)


class UserHelpersTestCase(unittest.TestCase):
    def test_user_payload(self):
        payload = user_payload(
            {"full_name": "An", "email": "a@b.vn", "phone_number": None, "role": "STAFF", "is_active": False}
        )
        self.assertEqual(
            payload, {"fullName": "An", "email": "a@b.vn", "isActive": False, "role": "staff"}
        )

    def test_search_users(self):
        users = [
            User(id=1, email="an@koi.vn", full_name="Nguyen An", phone_number="0901"),
            User(id=2, email="binh@koi.vn", full_name="Tran Binh"),
        ]
        self.assertEqual([u.id for u in search_users(users, "")], [1, 2])
        self.assertEqual([u.id for u in search_users(users, "TRAN")], [2])
        self.assertEqual([u.id for u in search_users(users, "0901")], [1])


class GlobalStateTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_restore_without_token(self):
        state = GlobalState()
        with mock.patch.object(auth, "is_logged_in", mock.AsyncMock(return_value=False)):
            self.assertFalse(await state.restore())
        self.assertIsNone(state.uid)

    async def test_restore_refreshes_expired_token(self):
        me = User(id=4, email="m@koi.vn", role=Role.MANAGER)
        get_me = mock.AsyncMock(side_effect=[ApiResult.fail("401"), ApiResult.ok(me)])
        with mock.patch.object(auth, "is_logged_in", mock.AsyncMock(return_value=True)), \
                mock.patch.object(auth, "get_me", get_me), \
                mock.patch.object(auth, "refresh", mock.AsyncMock(return_value=ApiResult.ok(None))):
            self.assertTrue(await GlobalState().restore())

    async def test_restore_gives_up_and_logs_out(self):
        logout = mock.AsyncMock()
        with mock.patch.object(auth, "is_logged_in", mock.AsyncMock(return_value=True)), \
                mock.patch.object(auth, "get_me", mock.AsyncMock(return_value=ApiResult.fail("401"))), \
                mock.patch.object(auth, "refresh", mock.AsyncMock(return_value=ApiResult.fail("expired"))), \
                mock.patch.object(auth, "logout", logout):
            self.assertFalse(await GlobalState().restore())
        logout.assert_awaited_once()

    async def test_login_defaults_role_to_customer(self):
        state = GlobalState()
        with mock.patch.object(auth, "login", mock.AsyncMock(return_value=ApiResult.ok(None))), \
                mock.patch.object(auth, "get_me", mock.AsyncMock(return_value=ApiResult.ok(User(id=2, email="c")))):
            result = await state.login("c", "pw")
        self.assertTrue(result.is_success)
        self.assertEqual((state.uid, state.role), (2, Role.CUSTOMER))

        with mock.patch.object(auth, "logout", mock.AsyncMock()):
            await state.logout()
        self.assertIsNone(state.role)


if __name__ == "__main__":
    unittest.main()
