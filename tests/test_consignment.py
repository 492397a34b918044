import unittest
from datetime import date

from cart import consignment
from cart.errors import IncompleteConsignmentError
from cart.models import CartItem, ConsignmentConfig, DateRange


class ConsignmentTestCase(unittest.TestCase):
    def setUp(self):
        self.item = CartItem(id=3, name="Asagi", price=2_000_000)

    def test_toggle_on_and_off(self):
        on = consignment.toggle_consignment(self.item)
        self.assertTrue(on.consign)
        self.assertEqual(on.consignment, ConsignmentConfig())

        off = consignment.toggle_consignment(on)
        self.assertFalse(off.consign)
        self.assertIsNone(off.consignment)
        # the original is untouched
        self.assertFalse(self.item.consign)

    def test_toggle_on_with_default_range(self):
        on = consignment.toggle_consignment(self.item, date(2024, 5, 31))
        self.assertEqual(on.consignment.date_range, DateRange(date(2024, 6, 1), date(2024, 6, 3)))
        self.assertEqual(consignment.missing_fields(on.consignment), ["diet"])

    def test_clamp_range_pins_start_to_tomorrow(self):
        today = date(2024, 1, 31)
        clamped = consignment.clamp_range(DateRange(date(2023, 12, 1), date(2024, 2, 10)), today)
        self.assertEqual(clamped, DateRange(date(2024, 2, 1), date(2024, 2, 10)))

    def test_clamp_range_end_bounds(self):
        today = date(2024, 1, 31)
        tomorrow = date(2024, 2, 1)
        last = date(2024, 3, 2)  # tomorrow + 30 days
        cases = [
            (date(2024, 1, 15), tomorrow),
            (today, tomorrow),
            (tomorrow, tomorrow),
            (date(2024, 3, 1), date(2024, 3, 1)),
            (last, last),
            (date(2024, 3, 3), last),
            (date(2025, 1, 1), last),
        ]
        for end, expected in cases:
            with self.subTest(end=end):
                clamped = consignment.clamp_range(DateRange(None, end), today)
                self.assertEqual(clamped, DateRange(tomorrow, expected))

    def test_clamp_range_keeps_missing_parts(self):
        today = date(2024, 1, 31)
        self.assertIsNone(consignment.clamp_range(None, today))
        self.assertEqual(
            consignment.clamp_range(DateRange(None, None), today), DateRange(date(2024, 2, 1), None)
        )

    def test_set_end_date(self):
        item = consignment.set_end_date(self.item, date(2024, 12, 31), date(2024, 1, 31))
        self.assertEqual(item.consignment.date_range, DateRange(date(2024, 2, 1), date(2024, 3, 2)))
        self.assertEqual(consignment.finalize(consignment.set_diet(item, 1).consignment).duration, 31)

    def test_setters_build_a_draft(self):
        item = consignment.set_diet(self.item, 4)
        item = consignment.set_date_range(item, DateRange(date(2024, 3, 1), date(2024, 3, 10)))
        item = consignment.set_note(item, "  ")
        self.assertEqual(item.consignment.diet_id, 4)
        self.assertEqual(item.consignment.date_range.end, date(2024, 3, 10))
        self.assertEqual(item.consignment.note, "  ")

        item = consignment.set_note(item, "")
        self.assertIsNone(item.consignment.note)

    def test_missing_fields(self):
        self.assertEqual(consignment.missing_fields(None), ["diet", "date range"])
        self.assertEqual(consignment.missing_fields(ConsignmentConfig()), ["diet", "date range"])
        self.assertEqual(
            consignment.missing_fields(
                ConsignmentConfig(diet_id=1, date_range=DateRange(date(2024, 1, 1), None))
            ),
            ["date range"],
        )
        self.assertEqual(
            consignment.missing_fields(
                ConsignmentConfig(diet_id=1, date_range=DateRange(date(2024, 1, 5), date(2024, 1, 1)))
            ),
            ["end date on or after start date"],
        )

    def test_finalize_complete(self):
        config = ConsignmentConfig(
            diet_id=2, date_range=DateRange(date(2024, 1, 1), date(2024, 1, 5)), note="gentle"
        )
        self.assertTrue(consignment.is_config_complete(config))
        done = consignment.finalize(config)
        self.assertEqual(done.diet_id, 2)
        self.assertEqual(done.duration, 5)
        self.assertEqual(done.note, "gentle")

    def test_finalize_incomplete(self):
        with self.assertRaises(IncompleteConsignmentError) as ctx:
            consignment.finalize(ConsignmentConfig(diet_id=2))
        self.assertEqual(ctx.exception.missing, ["date range"])
        self.assertIsInstance(ctx.exception, ValueError)


if __name__ == "__main__":
    unittest.main()
