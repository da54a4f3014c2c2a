from collections.abc import Mapping
from typing import Any

import pytest

from shopgraphql.attributes import Attribute
from shopgraphql.connections import HasOne, resolve_target
from shopgraphql.exceptions import ConfigurationError
from shopgraphql.loaders import AdminApiLoader, CustomerAccountApiLoader, Loader
from shopgraphql.model import Model
from tests.integration.conftest import Customer, LineItem, Order, Variant, page


class Location(Model):
    id = Attribute()
    name = Attribute()


Location.for_loader(
    CustomerAccountApiLoader,
    graphql_type="CompanyLocation",
    city=Attribute("shippingAddress.city"),
)


class VipCustomer(Customer, graphql_type="Customer"):
    tier = Attribute("vipTier")


class Untyped(Model):
    broken = HasOne("DoesNotExist")


class RecordingLoader(Loader):
    responses: list[Mapping[str, Any]] = []
    executed: list[str] = []

    def perform_graphql_query(self, query: str, variables: Mapping[str, Any]) -> Mapping[str, Any]:
        RecordingLoader.executed.append(query)
        return RecordingLoader.responses.pop(0)


class TestModelDefinition:
    def test_attribute_table(self):
        assert list(Order.__attributes__) == ["id", "name", "total"]
        assert Order.__attributes__["total"].path == "totalPriceSet.shopMoney.amount"
        assert Order.__attributes__["name"].null is False

    def test_connection_table(self):
        assert list(Order.__connections__) == ["customer", "line_items"]
        line_items = Order.__connections__["line_items"]
        assert line_items.query_name == "lineItems"
        assert line_items.target_class is LineItem
        assert Order.__connections__["customer"].target_class is Customer
        assert LineItem.__connections__["variant"].target_class is Variant

    def test_unknown_target(self):
        with pytest.raises(ConfigurationError, match="DoesNotExist"):
            Untyped.__connections__["broken"].target_class

    def test_resolve_target(self):
        assert resolve_target("Variant") is Variant
        assert resolve_target(Order) is Order

    def test_inheritance_copies_tables(self):
        assert "tier" in VipCustomer.__attributes__
        assert "tier" not in Customer.__attributes__
        assert "orders" in VipCustomer.__connections__
        assert VipCustomer.graphql_type_for_loader(AdminApiLoader) == "Customer"
        assert VipCustomer.attributes_for_loader(CustomerAccountApiLoader)["email"].path == (
            "emailAddress.emailAddress"
        )

    def test_instance(self):
        order = Order(id="gid://shopify/Order/1", name="#1001")
        assert order.name == "#1001"
        assert order.total is None
        assert repr(order) == "Order(id='gid://shopify/Order/1', name='#1001', total=None)"
        assert not order.is_connection_loaded("line_items")

    def test_connection_cache_is_read_only(self):
        order = Order(id="gid://shopify/Order/1")
        with pytest.raises(TypeError):
            order.connection_cache["customer"] = None


class TestLoaderOverrides:
    def test_default_loader_definition(self):
        assert Location.graphql_type_for_loader(AdminApiLoader) == "Location"
        assert list(Location.attributes_for_loader(AdminApiLoader)) == ["id", "name"]

    def test_override_definition(self):
        assert Location.graphql_type_for_loader(CustomerAccountApiLoader) == "CompanyLocation"
        attributes = Location.attributes_for_loader(CustomerAccountApiLoader)
        assert list(attributes) == ["id", "name", "city"]
        assert attributes["city"].path == "shippingAddress.city"

    def test_override_applies_to_loader_subclasses(self):
        class BusinessLoader(CustomerAccountApiLoader):
            pass

        assert Location.graphql_type_for_loader(BusinessLoader) == "CompanyLocation"

    def test_definitions_are_cached(self):
        first = Location.attributes_for_loader(CustomerAccountApiLoader)
        assert Location.attributes_for_loader(CustomerAccountApiLoader) is first

    def test_override_is_used_for_queries(self, customer_client, account_tokens):
        customer_client.queue(
            {
                "data": {
                    "companyLocation": {
                        "id": "gid://shopify/CompanyLocation/1",
                        "name": "HQ",
                        "shippingAddress": {"city": "Ljubljana"},
                    }
                }
            }
        )
        location = Location.with_customer_account_api("token-1").find(1)
        assert location.city == "Ljubljana"
        assert account_tokens == ["token-1"]
        assert customer_client.executed_queries_with_args == [
            (
                "fragment CompanyLocationFragment on CompanyLocation "
                "{ shippingAddress { city } id name } "
                "query getCompanyLocation($id: ID!) { companyLocation(id: $id) "
                "{ ...CompanyLocationFragment } }",
                {"id": "gid://shopify/CompanyLocation/1"},
            )
        ]


class TestCustomerAccountApi:
    def test_current_customer(self, client, customer_client, account_tokens):
        customer_client.queue(
            {
                "data": {
                    "customer": {
                        "id": "gid://shopify/Customer/5",
                        "emailAddress": {"emailAddress": "ana@example.com"},
                    }
                }
            }
        )
        customer = Customer.with_customer_account_api("token-5").find()
        assert customer.id == "gid://shopify/Customer/5"
        assert customer.email == "ana@example.com"
        assert account_tokens == ["token-5"]
        assert client.executed_queries == []
        assert customer_client.executed_queries_with_args == [
            (
                "fragment CustomerFragment on Customer { emailAddress { emailAddress } id "
                "display_name: displayName created_at: createdAt "
                'loyaltyPointsMetafield: metafield(namespace: "loyalty", key: "points") { value } } '
                "query getCurrentCustomer { customer { ...CustomerFragment } }",
                {},
            )
        ]

    def test_records_by_id(self, customer_client):
        customer_client.queue({"data": {"order": {"id": "gid://shopify/Order/3", "name": "#1003"}}})
        order = Order.with_customer_account_api("token").find(3)
        assert order.name == "#1003"
        assert customer_client.executed_queries_with_args[0][1] == {"id": "gid://shopify/Order/3"}

    def test_admin_api_is_default(self, client, customer_client):
        client.queue({"data": {"order": {"id": "gid://shopify/Order/3", "name": "#1003"}}})
        Order.with_admin_api().find(3)
        assert len(client.executed_queries) == 1
        assert customer_client.executed_queries == []


class TestInjectedLoader:
    @pytest.fixture(autouse=True)
    def reset_loader(self):
        RecordingLoader.responses = []
        RecordingLoader.executed = []

    def test_with_loader_class(self):
        RecordingLoader.responses = [{"data": {"productVariants": page([{"id": "1", "sku": "A"}])}}]
        assert [variant.sku for variant in Variant.with_loader(RecordingLoader)] == ["A"]
        assert len(RecordingLoader.executed) == 1

    def test_with_loader_instance(self):
        RecordingLoader.responses = [{"data": {"productVariant": {"id": "1", "sku": "A"}}}]
        variant = Variant.with_loader(RecordingLoader(Variant)).find(1)
        assert variant.sku == "A"

    def test_connections_use_parent_loader(self):
        RecordingLoader.responses = [
            {"data": {"productVariant": {"id": "gid://shopify/ProductVariant/1"}}},
            {"data": {"productVariant": {"lineItems": page([{"id": "gid://shopify/LineItem/1"}])}}},
        ]
        variant = Variant.with_loader(RecordingLoader).find(1)
        assert [line_item.id for line_item in variant.line_items] == ["gid://shopify/LineItem/1"]
        assert "productVariant(id: $id) { lineItems" in RecordingLoader.executed[1]
