import pytest

from shopgraphql._builders.search.formatting import sanitize
from shopgraphql.exceptions import UsageError
from shopgraphql.search import SearchQuery


class TestSearchQuery:
    @pytest.mark.parametrize(
        ("conditions", "expected"),
        [
            ({"status": "open"}, "status:'open'"),
            ({"status": "open", "financial_status": "paid"}, "status:'open' AND financial_status:'paid'"),
            ({"quantity": 3, "gift_card": False}, "quantity:3 AND gift_card:false"),
            ({"tag": ["vip", "wholesale"]}, "(tag:'vip' OR tag:'wholesale')"),
            ({"tag": ["vip"]}, "tag:'vip'"),
            ({"tag": [], "status": "open"}, "status:'open'"),
            ({"total": {"gt": 10, "<=": 50}}, "total:>10 total:<=50"),
            ({"created_at": {"gte": "2024-01-01"}}, "created_at:>=2024-01-01"),
            ({}, ""),
        ],
    )
    def test_mapping_conditions(self, conditions, expected):
        assert str(SearchQuery(conditions)) == expected

    def test_unsupported_range_operator(self):
        with pytest.raises(UsageError, match="between"):
            str(SearchQuery({"total": {"between": 5}}))

    def test_raw_string_is_passed_through(self):
        assert str(SearchQuery("title:snow* AND -status:archived")) == (
            "title:snow* AND -status:archived"
        )

    def test_positional_binding(self):
        query = SearchQuery("email:? AND orders_count:? AND verified:?", "a@b.com", 3, True)
        assert str(query) == "email:'a@b.com' AND orders_count:3 AND verified:true"

    def test_named_binding(self):
        query = SearchQuery("email::email AND state::state", {"email": "a@b.com", "state": None})
        assert str(query) == "email:'a@b.com' AND state:null"

    def test_list_form(self):
        assert str(SearchQuery(["sku:?", "A-1"])) == "sku:'A-1'"

    def test_values_cannot_break_out_of_quotes(self):
        query = SearchQuery({"title": "x' OR status:'archived"})
        assert str(query) == "title:'x\\' OR status:\\'archived'"

    def test_bound_values_are_escaped(self):
        assert str(SearchQuery("title:?", 'say "hi" \\ it')) == "title:'say \"hi\" \\\\ it'"

    def test_none_renders_empty_value(self):
        assert str(SearchQuery({"status": None})) == "status:"
        assert str(SearchQuery({"status": None, "sku": "A"})) == "status: AND sku:'A'"

    def test_truthiness(self):
        assert not SearchQuery()
        assert not SearchQuery({})
        assert SearchQuery({"status": "open"})


class TestSanitize:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("plain", "plain"),
            ('a"b', 'a"b'),
            ("a'b", "a\\'b"),
            ("a\\b", "a\\\\b"),
            ("\\'", "\\\\\\'"),
        ],
    )
    def test_sanitize(self, value, expected):
        assert sanitize(value) == expected
