import asyncio
import json
import os
import tempfile
import unittest
from datetime import date

from aiohttp import web
from aiohttp.test_utils import TestServer

import api.auth as auth
import api.breeds as breeds_api
import api.client as client
import api.consignments as consignments_api
import api.fish as fish_api
import api.images as images_api
import api.orders as orders_api
import api.users as users_api
import api.wallets as wallets_api
import api.withdrawals as withdrawals_api
from api.fish import FishSearch
from api.statuses import Role
from db import database as db_database
from db import local_storage


def envelope(data=None, message="", is_success=True):
    return {"data": data, "message": message, "isSuccess": is_success}


class FakeBackend:
    """Answers canned responses per (method, path) and records what it received."""

    def __init__(self):
        self.responses = {}
        self.requests = []

    def on(self, method, path, payload, status=200):
        self.responses[(method, path)] = (status, payload)

    async def handle(self, request: web.Request) -> web.StreamResponse:
        path = request.path.removeprefix("/api/v1/")
        if request.content_type.startswith("multipart/"):
            form = await request.post()
            body = {k: getattr(v, "filename", v) for k, v in form.items()}
        else:
            text = await request.text()
            body = json.loads(text) if text else None
        self.requests.append(
            {
                "method": request.method,
                "path": path,
                "query": dict(request.query),
                "auth": request.headers.get("Authorization"),
                "body": body,
            }
        )
        status, payload = self.responses.get((request.method, path), (404, {"message": "Not found"}))
        if isinstance(payload, str):
            return web.Response(status=status, text=payload)
        return web.json_response(payload, status=status)

    def last(self):
        return self.requests[-1]


class ApiClientTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        db_database.DB_PATH = os.path.join(self.temp_dir.name, "store.sqlite")
        db_database._initialized = False
        db_database._init_lock = asyncio.Lock()
        self._saved = (client.BASE_URL, images_api.UPLOAD_URL, images_api.UPLOAD_KEY)

    async def asyncSetUp(self):
        self.backend = FakeBackend()
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self.backend.handle)
        self.server = TestServer(app)
        await self.server.start_server()
        client.BASE_URL = str(self.server.make_url("/api/v1/"))

    async def asyncTearDown(self):
        await self.server.close()

    def tearDown(self):
        client.BASE_URL, images_api.UPLOAD_URL, images_api.UPLOAD_KEY = self._saved
        self.temp_dir.cleanup()

    # ---------- transport ----------

    async def test_envelope_success_and_failure(self):
        self.backend.on("GET", "users/me/wallets", envelope({"userId": 1, "balance": 250000}, "ok"))
        result = await wallets_api.get_current_user_wallet()
        self.assertTrue(result.is_success)
        self.assertEqual(result.data.balance, 250000)
        self.assertEqual(result.message, "ok")

        self.backend.on("GET", "users/me/wallets", envelope(None, "Wallet locked", is_success=False))
        result = await wallets_api.get_current_user_wallet()
        self.assertFalse(result.is_success)
        self.assertEqual(result.message, "Wallet locked")

    async def test_http_error_uses_server_message(self):
        self.backend.on("PUT", "orders/4/cancel", {"message": "Order already shipped"}, status=400)
        result = await orders_api.cancel_pending_order(4)
        self.assertFalse(result.is_success)
        self.assertEqual(result.message, "Order already shipped")

        self.backend.on("PUT", "orders/5/cancel", "", status=500)
        result = await orders_api.cancel_pending_order(5)
        self.assertEqual(result.message, "Failed to cancel order.")

    async def test_unknown_status_fails_the_call(self):
        self.backend.on("GET", "orders", envelope([{"id": 1, "orderStatus": "TELEPORTED"}]))
        result = await orders_api.list_orders()
        self.assertFalse(result.is_success)
        self.assertEqual(result.message, "Failed to load orders.")

    async def test_unreachable_backend(self):
        await self.server.close()
        result = await users_api.list_users()
        self.assertFalse(result.is_success)
        self.assertEqual(result.message, "Failed to load users.")

    # ---------- auth ----------

    async def test_login_stores_tokens_and_sends_bearer(self):
        self.backend.on(
            "POST", "users/login", envelope({"accessToken": "t0k", "refreshToken": "r3f", "userId": 9})
        )
        self.backend.on(
            "GET", "users/me", envelope({"id": 9, "email": "an@koi.vn", "fullName": "An", "roleName": "Customer"})
        )
        await local_storage.set_item(local_storage.CART_KEY, "[]")

        result = await auth.login("an@koi.vn", "secret")
        self.assertTrue(result.is_success)
        self.assertEqual(self.backend.last()["body"], {"email": "an@koi.vn", "password": "secret"})
        self.assertTrue(await auth.is_logged_in())

        me = await auth.get_me()
        self.assertEqual(me.data.role, Role.CUSTOMER)
        self.assertEqual(self.backend.last()["auth"], "Bearer t0k")
        self.assertEqual((await auth.cached_user()).full_name, "An")

        await auth.logout()
        self.assertFalse(await auth.is_logged_in())
        self.assertIsNone(await auth.cached_user())
        self.assertEqual(await local_storage.get_item(local_storage.CART_KEY), "[]")

    async def test_failed_login_stores_nothing(self):
        self.backend.on("POST", "users/login", {"message": "Wrong password"}, status=401)
        result = await auth.login("an@koi.vn", "nope")
        self.assertFalse(result.is_success)
        self.assertEqual(result.message, "Wrong password")
        self.assertFalse(await auth.is_logged_in())

    async def test_refresh(self):
        self.assertFalse((await auth.refresh()).is_success)
        self.assertEqual(self.backend.requests, [])

        await local_storage.set_item(local_storage.REFRESH_TOKEN_KEY, "old")
        self.backend.on("POST", "users/refresh", envelope({"accessToken": "new", "refreshToken": "newer"}))
        self.assertTrue((await auth.refresh()).is_success)
        self.assertEqual(self.backend.last()["body"], {"refreshToken": "old"})
        self.assertEqual(await local_storage.get_item(local_storage.JWT_KEY), "new")

    # ---------- OData ----------

    async def test_fish_search(self):
        self.backend.on(
            "GET",
            "odata/koi-fishes",
            {
                "@odata.count": 12,
                "value": [{"Id": 7, "Name": "Kohaku", "Price": 5000000, "ImageUrl": "u"}],
            },
        )
        page = await fish_api.list_available(FishSearch(page_number=2, page_size=5, search_term="koh"))
        self.assertEqual(page.total, 12)
        self.assertEqual(page.value[0].name, "Kohaku")

        query = self.backend.last()["query"]
        self.assertEqual(query["$skip"], "5")
        self.assertEqual(query["$top"], "5")
        self.assertIn("contains(Name, 'koh')", query["$filter"])

    async def test_odata_bare_list_and_errors(self):
        self.backend.on("GET", "odata/koi-fishes", [{"Id": 1, "Name": "A", "Price": 1}])
        page = await fish_api.list_available(FishSearch())
        self.assertEqual((page.total, page.count), (1, None))

        self.backend.on("GET", "odata/koi-fishes", {"message": "bad filter"}, status=400)
        with self.assertRaises(client.ApiError) as ctx:
            await fish_api.list_available(FishSearch())
        self.assertEqual(ctx.exception.status, 400)

        result = await fish_api.search_or_fail(FishSearch())
        self.assertFalse(result.is_success)
        self.assertEqual(result.message, "bad filter")

    async def test_get_many_keeps_found_fish(self):
        self.backend.on("GET", "KoiFish/1", envelope({"id": 1, "name": "A", "price": 10}))
        self.backend.on("GET", "KoiFish/2", {"message": "gone"}, status=404)
        found = await fish_api.get_many([1, 2, 1])
        self.assertEqual(list(found), [1])
        self.assertEqual(found[1].price, 10)

    async def test_owned_koi(self):
        self.backend.on(
            "GET", "users/me/koi-fishes/3", envelope({"id": 3, "name": "Mine", "price": 0})
        )
        result = await fish_api.get_mine(3)
        self.assertEqual(result.data.name, "Mine")

    async def test_breed_list_search_term(self):
        self.backend.on("GET", "koi-breeds", envelope([{"id": 2, "name": "Kohaku"}]))
        result = await breeds_api.get_list("koh")
        self.assertEqual(result.data[0].name, "Kohaku")
        self.assertEqual(self.backend.last()["query"], {"SearchTerm": "koh"})

        await breeds_api.get_list()
        self.assertEqual(self.backend.last()["query"], {})

    # ---------- request bodies ----------

    async def test_assign_staff_sends_bare_id(self):
        self.backend.on("PUT", "order-detail/8/assign", envelope(None, "Assigned"))
        result = await orders_api.assign_staff(8, 21)
        self.assertTrue(result.is_success)
        self.assertEqual(self.backend.last()["body"], 21)

    async def test_staff_action_is_checked_locally(self):
        result = await orders_api.run_staff_action(8, "teleport")
        self.assertFalse(result.is_success)
        self.assertEqual(self.backend.requests, [])

        self.backend.on("PUT", "order-details/8/get-fish", envelope(None))
        self.assertTrue((await orders_api.run_staff_action(8, "get-fish")).is_success)

    async def test_consignment_dates(self):
        self.backend.on("POST", "nurture-consignments", envelope({"id": 1}))
        await consignments_api.create(4, 2, date(2024, 1, 1), date(2024, 1, 5))
        self.assertEqual(
            self.backend.last()["body"],
            {
                "koiFishId": 4,
                "dietId": 2,
                "startDate": "2024-01-01T00:00:00.000Z",
                "endDate": "2024-01-05T00:00:00.000Z",
            },
        )

    async def test_deposit(self):
        self.assertFalse((await wallets_api.deposit(0)).is_success)
        self.backend.on("POST", "wallets/deposit", envelope({"payUrl": "https://pay/1"}))
        result = await wallets_api.deposit(50000)
        self.assertEqual(result.data.pay_url, "https://pay/1")
        self.assertEqual(self.backend.last()["query"], {"amount": "50000"})

    async def test_withdrawals(self):
        self.assertFalse((await withdrawals_api.create("  ", 1000)).is_success)
        self.assertEqual(self.backend.requests, [])

        self.backend.on("POST", "WithdrawnRequest/CreateRequest", envelope(None))
        await withdrawals_api.create("VCB 0123", 1000)
        self.assertEqual(self.backend.last()["body"], {"bankNote": "VCB 0123", "amount": "1000"})

        self.backend.on("POST", "WithdrawnRequest/ApproveRequest/3", envelope(None))
        await withdrawals_api.approve(3, "https://img/receipt.png")
        self.assertEqual(self.backend.last()["body"], "https://img/receipt.png")

    async def test_list_staff(self):
        self.backend.on(
            "GET",
            "users",
            envelope(
                [
                    {"id": 1, "email": "a", "roleName": "Staff"},
                    {"id": 2, "email": "b", "roleName": "Customer"},
                ]
            ),
        )
        result = await users_api.list_staff()
        self.assertEqual([u.id for u in result.data], [1])

    # ---------- image upload ----------

    async def test_upload_image(self):
        images_api.UPLOAD_URL = str(self.server.make_url("/upload"))
        images_api.UPLOAD_KEY = "k3y"
        self.backend.on("POST", "/upload", {"data": {"url": "https://img/1.png"}})
        path = os.path.join(self.temp_dir.name, "koi.png")
        with open(path, "wb") as fh:
            fh.write(b"\x89PNG")

        result = await images_api.upload_image(path)
        self.assertTrue(result.is_success)
        self.assertEqual(result.data, "https://img/1.png")
        self.assertEqual(self.backend.last()["body"], {"image": "koi.png"})
        self.assertEqual(self.backend.last()["query"], {"key": "k3y"})

    async def test_upload_image_errors(self):
        images_api.UPLOAD_URL = None
        self.assertFalse((await images_api.upload_image("/nope.png")).is_success)

        images_api.UPLOAD_URL = str(self.server.make_url("/upload"))
        self.assertFalse((await images_api.upload_image("/definitely/missing.png")).is_success)
        self.assertEqual(self.backend.requests, [])


if __name__ == "__main__":
    unittest.main()
