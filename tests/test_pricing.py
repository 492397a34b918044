import unittest
from datetime import date

from api.models import Diet
from cart.models import CartItem, ConsignmentConfig, DateRange
from cart.pricing import consignment_price, days_between, duration, subtotal

DIETS = [Diet(id=1, name="Growth", diet_cost=20_000), Diet(id=2, name="Color", diet_cost=35_000)]


def _item(consign=False, diet_id=1, start=date(2024, 1, 1), end=date(2024, 1, 5), price=5_000_000):
    config = ConsignmentConfig(diet_id=diet_id, date_range=DateRange(start, end)) if consign else None
    return CartItem(id=7, name="Kohaku", price=price, consign=consign, consignment=config)


class PricingTestCase(unittest.TestCase):
    def test_plain_fish_subtotal(self):
        self.assertEqual(subtotal([_item()], DIETS), 5_000_000)

    def test_consigned_fish_subtotal(self):
        item = _item(consign=True)
        self.assertEqual(consignment_price(item, DIETS), 100_000)
        self.assertEqual(subtotal([item], DIETS), 5_100_000)

    def test_subtotal_accepts_mapping_and_iterator(self):
        items = [_item(consign=True), _item(consign=True, diet_id=2, price=1_000_000)]
        expected = 5_100_000 + 1_000_000 + 35_000 * 5
        self.assertEqual(subtotal(items, {d.id: d for d in DIETS}), expected)
        self.assertEqual(subtotal(items, iter(DIETS)), expected)

    def test_subtotal_ignores_quantity(self):
        item = CartItem(id=1, name="Showa", price=300, quantity=3)
        self.assertEqual(subtotal([item], DIETS), 300)

    def test_consignment_ignored_when_not_consigned(self):
        item = CartItem(
            id=1,
            name="Showa",
            price=300,
            consign=False,
            consignment=ConsignmentConfig(diet_id=1, date_range=DateRange(date(2024, 1, 1), date(2024, 1, 2))),
        )
        self.assertEqual(subtotal([item], DIETS), 300)

    def test_unknown_or_unset_diet_costs_nothing(self):
        self.assertEqual(consignment_price(_item(consign=True, diet_id=99), DIETS), 0)
        self.assertEqual(consignment_price(_item(consign=True, diet_id=0), DIETS), 0)
        self.assertEqual(consignment_price(_item(), DIETS), 0)

    def test_duration(self):
        self.assertEqual(duration(DateRange(date(2024, 1, 1), date(2024, 1, 5))), 5)
        self.assertEqual(duration(DateRange(date(2024, 1, 1), date(2024, 1, 1))), 1)
        # across a month and a leap day
        self.assertEqual(duration(DateRange(date(2024, 2, 28), date(2024, 3, 1))), 3)

    def test_duration_incomplete_or_reversed(self):
        self.assertEqual(duration(None), 0)
        self.assertEqual(duration(DateRange(date(2024, 1, 1), None)), 0)
        self.assertEqual(duration(DateRange(None, date(2024, 1, 1))), 0)
        self.assertEqual(duration(DateRange(date(2024, 1, 5), date(2024, 1, 1))), 0)

    def test_days_between(self):
        self.assertEqual(days_between(date(2024, 1, 1), date(2024, 1, 5)), 4)
        self.assertEqual(days_between(date(2024, 1, 5), date(2024, 1, 1)), -4)


if __name__ == "__main__":
    unittest.main()
