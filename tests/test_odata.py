import unittest
from datetime import date

from api.fish import FishSearch
from api.odata import ODataQuery, and_, any_eq, contains, eq, ge, le, literal, ne, or_
from api.sale_requests import build_query
from api.statuses import SaleRequestStatus


class LiteralTestCase(unittest.TestCase):
    def test_literals(self):
        self.assertEqual(literal(None), "null")
        self.assertEqual(literal(True), "true")
        self.assertEqual(literal(False), "false")
        self.assertEqual(literal(42), "42")
        self.assertEqual(literal(date(2024, 1, 5)), "2024-01-05")
        self.assertEqual(literal("O'Brien"), "'O''Brien'")

    def test_comparisons(self):
        self.assertEqual(eq("Id", 3), "Id eq 3")
        self.assertEqual(ne("Name", "x"), "Name ne 'x'")
        self.assertEqual(ge("Price", 100), "Price ge 100")
        self.assertEqual(le("Price", 200), "Price le 200")
        self.assertEqual(contains("Name", "koi"), "contains(Name, 'koi')")
        self.assertEqual(any_eq("KoiBreeds", "Id", 3), "KoiBreeds/any(x: x/Id eq 3)")

    def test_and_or(self):
        self.assertIsNone(and_(None, ""))
        self.assertEqual(and_("A eq 1", None), "A eq 1")
        self.assertEqual(and_("A eq 1", "B eq 2"), "A eq 1 and B eq 2")
        self.assertEqual(or_("A eq 1", "B eq 2"), "(A eq 1 or B eq 2)")
        # an ungrouped `or` gets parenthesised under `and`
        self.assertEqual(and_("A eq 1 or B eq 2", "C eq 3"), "(A eq 1 or B eq 2) and C eq 3")


class ODataQueryTestCase(unittest.TestCase):
    def test_empty(self):
        self.assertEqual(ODataQuery().to_params(), {})
        self.assertEqual(ODataQuery().to_query_string(), "")

    def test_builder_is_immutable(self):
        base = ODataQuery()
        filtered = base.where(eq("Id", 1))
        self.assertIsNone(base.filter)
        self.assertEqual(filtered.filter, "Id eq 1")

    def test_where_accumulates(self):
        q = ODataQuery().where(eq("A", 1)).where(None, eq("B", 2))
        self.assertEqual(q.filter, "A eq 1 and B eq 2")

    def test_expand_deduplicates(self):
        q = ODataQuery().expand_with("KoiBreeds").expand_with("KoiBreeds", "KoiFishImages")
        self.assertEqual(q.to_params()["$expand"], "KoiBreeds,KoiFishImages")

    def test_paging(self):
        q = ODataQuery().page(3, 10)
        self.assertEqual((q.skip, q.top), (20, 10))
        with self.assertRaises(ValueError):
            ODataQuery().page(0, 10)
        with self.assertRaises(ValueError):
            ODataQuery().page(1, 0)

    def test_params_order_and_query_string(self):
        q = (
            ODataQuery()
            .with_count()
            .page(2, 8)
            .order_by("Price desc")
            .selecting("Id", "Name")
            .expand_with("KoiBreeds")
            .where(contains("Name", "kohaku"))
        )
        self.assertEqual(
            list(q.to_params()),
            ["$filter", "$expand", "$select", "$orderby", "$skip", "$top", "$count"],
        )
        self.assertEqual(
            q.to_query_string(),
            "$filter=contains(Name,%20'kohaku')&$expand=KoiBreeds&$select=Id%2CName"
            "&$orderby=Price%20desc&$skip=8&$top=8&$count=true",
        )


class SearchQueryTestCase(unittest.TestCase):
    def test_default_fish_search(self):
        params = FishSearch().to_query().to_params()
        self.assertEqual(params["$filter"], "IsAvailableForSale eq true and IsDeleted eq false")
        self.assertEqual(params["$expand"], "KoiBreeds,KoiFishImages")
        self.assertEqual((params["$skip"], params["$top"], params["$count"]), ("0", "8", "true"))
        self.assertNotIn("$orderby", params)

    def test_full_fish_search(self):
        search = FishSearch(
            page_number=2,
            page_size=5,
            search_term="  kohaku ",
            koi_breed_id=3,
            min_price=100,
            max_price=900,
            sort_by="Price asc",
            only_available=False,
        )
        params = search.to_query().to_params()
        self.assertEqual(
            params["$filter"],
            "IsDeleted eq false and contains(Name, 'kohaku') and KoiBreeds/any(x: x/Id eq 3)"
            " and Price ge 100 and Price le 900",
        )
        self.assertEqual(params["$orderby"], "Price asc")
        self.assertEqual(params["$skip"], "5")

    def test_sale_request_query(self):
        params = build_query(
            page_number=1, page_size=8, status=SaleRequestStatus.PENDING, search_term="tancho"
        ).to_params()
        self.assertEqual(
            params["$filter"], "RequestStatus eq 'PENDING' and contains(KoiFish/Name, 'tancho')"
        )
        self.assertEqual(params["$expand"], "KoiFish")
        self.assertEqual(params["$orderby"], "ModifiedAt desc")


if __name__ == "__main__":
    unittest.main()
