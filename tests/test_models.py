import unittest

from api.models import (
    KoiFish,
    LoginTokens,
    Order,
    RequestForSale,
    User,
    camelize,
)
from api.statuses import (
    ConsignmentStatus,
    OrderDetailStatus,
    OrderStatus,
    Role,
    SaleRequestStatus,
    UnknownStatusError,
    WithdrawalStatus,
)
from cart.models import CartItem


class StatusTestCase(unittest.TestCase):
    def test_decode_is_case_insensitive(self):
        self.assertIs(OrderStatus.decode("pending"), OrderStatus.PENDING)
        self.assertIs(OrderDetailStatus.decode(" IsShipping "), OrderDetailStatus.ISSHIPPING)
        self.assertIs(Role.decode("Manager"), Role.MANAGER)

    def test_aliases(self):
        self.assertIs(OrderStatus.decode("Canceled"), OrderStatus.CANCELLED)
        self.assertIs(SaleRequestStatus.decode("CANCELLED"), SaleRequestStatus.CANCELED)
        self.assertIs(ConsignmentStatus.decode("in progress"), ConsignmentStatus.IN_PROGRESS)
        self.assertIs(WithdrawalStatus.decode("reject"), WithdrawalStatus.REJECTED)

    def test_unknown_values_are_rejected(self):
        with self.assertRaises(UnknownStatusError) as ctx:
            OrderStatus.decode("SHIPPED_TO_MARS")
        self.assertEqual(ctx.exception.kind, "OrderStatus")
        with self.assertRaises(UnknownStatusError):
            OrderStatus.decode(None)
        self.assertIsNone(Role.decode_optional(""))

    def test_staff_actions(self):
        self.assertEqual(OrderDetailStatus.PENDING.next_staff_action, "get-fish")
        self.assertEqual(OrderDetailStatus.GETTINGFISH.next_staff_action, "ship")
        self.assertEqual(OrderDetailStatus.ISSHIPPING.next_staff_action, "nurture")
        self.assertEqual(OrderDetailStatus.ISNUTURING.next_staff_action, "complete")
        self.assertIsNone(OrderDetailStatus.COMPLETED.next_staff_action)
        self.assertIsNone(OrderDetailStatus.CANCELED.next_staff_action)

    def test_flags_and_labels(self):
        self.assertTrue(ConsignmentStatus.ACTIVE.is_open)
        self.assertFalse(ConsignmentStatus.COMPLETED.is_open)
        self.assertTrue(Role.ADMIN.is_back_office)
        self.assertFalse(Role.STAFF.is_back_office)
        self.assertEqual(ConsignmentStatus.IN_PROGRESS.label, "In Progress")
        self.assertEqual(str(OrderStatus.PENDING), "PENDING")


class ModelParsingTestCase(unittest.TestCase):
    def test_camelize(self):
        raw = {
            "@odata.context": "x",
            "Id": 1,
            "KoiFish": {"Name": "Kohaku", "KoiBreeds": [{"Id": 2}]},
        }
        self.assertEqual(
            camelize(raw), {"id": 1, "koiFish": {"name": "Kohaku", "koiBreeds": [{"id": 2}]}}
        )

    def test_user(self):
        user = User.from_api({"id": "5", "email": "a@b.vn", "fullName": "An", "roleName": "Staff"})
        self.assertEqual(user.id, 5)
        self.assertIs(user.role, Role.STAFF)

    def test_login_tokens(self):
        tokens = LoginTokens.from_api({"accessToken": "jwt", "refreshToken": "r", "userId": 4})
        self.assertEqual((tokens.access_token, tokens.refresh_token, tokens.user_id), ("jwt", "r", 4))
        with self.assertRaises(ValueError):
            LoginTokens.from_api({})

    def test_koi_from_odata(self):
        koi = KoiFish.from_odata(
            {
                "Id": 9,
                "Name": "Showa",
                "Price": 1500000,
                "Gender": False,
                "ImageUrl": "https://img/1.jpg",
                "KoiBreeds": [{"Id": 1, "Name": "Showa Sanshoku"}],
            }
        )
        self.assertEqual(koi.gender, "Female")
        self.assertEqual(koi.image_url, "https://img/1.jpg")
        self.assertEqual(koi.breed_names, ["Showa Sanshoku"])

        item = CartItem.from_fish(koi)
        self.assertEqual((item.id, item.price, item.quantity), (9, 1500000, 1))
        self.assertEqual(item.images, ("https://img/1.jpg",))

    def test_open_consignment(self):
        koi = KoiFish.from_api(
            {
                "id": 1,
                "name": "Asagi",
                "price": 10,
                "consignmentForNurtures": [
                    {"id": 1, "koiFishId": 1, "consignmentStatus": "COMPLETED"},
                    {"id": 2, "koiFishId": 1, "consignmentStatus": "PENDING"},
                ],
            }
        )
        self.assertEqual(koi.open_consignment.id, 2)

    def test_order(self):
        order = Order.from_api(
            {
                "id": 3,
                "orderStatus": "Pending",
                "totalAmount": 5100000,
                "orderDetails": [
                    {"id": 8, "koiFishId": 7, "price": 5000000, "status": "GettingFish",
                     "consignmentForNurtureId": 2}
                ],
            }
        )
        self.assertTrue(order.status.is_pending)
        self.assertIs(order.details[0].status, OrderDetailStatus.GETTINGFISH)
        self.assertEqual(order.details[0].consignment_id, 2)

    def test_order_with_unknown_status_fails(self):
        with self.assertRaises(UnknownStatusError):
            Order.from_api({"id": 1, "orderStatus": "LOST"})

    def test_sale_request_from_odata(self):
        request = RequestForSale.from_odata(
            {"Id": 2, "KoiFishId": 5, "PriceDealed": 900, "RequestStatus": "Pending",
             "KoiFish": {"Id": 5, "Name": "Tancho", "Price": 1000}}
        )
        self.assertTrue(request.status.is_pending)
        self.assertEqual(request.koi_fish.name, "Tancho")


if __name__ == "__main__":
    unittest.main()
