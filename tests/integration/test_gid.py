import pytest

from shopgraphql.gid import ParsedGid, build_gid, is_valid_gid, normalize_gid, parse_gid


class TestGlobalIds:
    def test_parse(self):
        assert parse_gid("gid://shopify/Customer/123") == ParsedGid("shopify", "Customer", "123")

    @pytest.mark.parametrize(
        "value",
        ["123", "gid://shopify/Customer", "gid://shopify/Customer/1/2", "gid://shop ify/A/1", 123, None],
    )
    def test_invalid(self, value):
        assert parse_gid(value) is None
        assert not is_valid_gid(value)

    def test_build(self):
        assert build_gid("Order", 5) == "gid://shopify/Order/5"
        assert build_gid("Thing", "x", app="my-app") == "gid://my-app/Thing/x"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (42, "gid://shopify/Customer/42"),
            ("42", "gid://shopify/Customer/42"),
            ("gid://shopify/Customer/42", "gid://shopify/Customer/42"),
            ("gid://shopify/CompanyContact/7", "gid://shopify/CompanyContact/7"),
        ],
    )
    def test_normalize(self, value, expected):
        assert normalize_gid(value, "Customer") == expected
