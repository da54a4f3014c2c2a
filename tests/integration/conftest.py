from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

import pytest

from shopgraphql.attributes import Attribute, MetafieldAttribute
from shopgraphql.config import scoped_configuration
from shopgraphql.connections import HasMany, HasOne, HasOneMetaobject
from shopgraphql.loaders import CustomerAccountApiLoader
from shopgraphql.metaobject import Field, Metaobject
from shopgraphql.model import Model


class Customer(Model, graphql_type="Customer"):
    id = Attribute()
    display_name = Attribute()
    email = Attribute("defaultEmailAddress.emailAddress")
    created_at = Attribute(type="datetime")
    orders = HasMany("Order", default_arguments={"first": 10}, inverse_of="customer")
    default_address = HasOne("Address")
    provider = HasOneMetaobject("Provider", key="preferred_provider")
    loyalty_points = MetafieldAttribute("loyalty", "points", type="integer", default=0)


Customer.for_loader(CustomerAccountApiLoader, email=Attribute("emailAddress.emailAddress"))


class Order(Model):
    id = Attribute()
    name = Attribute(null=False)
    total = Attribute("totalPriceSet.shopMoney.amount", type="float")
    customer = HasOne()
    line_items = HasMany(default_arguments={"first": 5})


class LineItem(Model):
    id = Attribute()
    title = Attribute()
    quantity = Attribute(type="integer")
    variant = HasOne(inverse_of="line_items")


class Variant(Model, graphql_type="ProductVariant"):
    id = Attribute()
    sku = Attribute()
    line_items = HasMany("LineItem")


class Address(Model, graphql_type="MailingAddress"):
    id = Attribute()
    city = Attribute()


class Provider(Metaobject):
    description = Field()
    rating = Field(type="integer", default=0)
    settings = Field("provider_settings", type="json")


def page(
    nodes: Sequence[Mapping[str, Any]],
    *,
    has_next_page: bool = False,
    has_previous_page: bool = False,
    start_cursor: str | None = None,
    end_cursor: str | None = None,
) -> dict[str, Any]:
    return {
        "pageInfo": {
            "hasNextPage": has_next_page,
            "hasPreviousPage": has_previous_page,
            "startCursor": start_cursor,
            "endCursor": end_cursor,
        },
        "nodes": list(nodes),
    }


class FakeClient:
    def __init__(self):
        self._responses: list[Mapping[str, Any]] = []
        self._executed: list[tuple[str, dict[str, Any]]] = []

    def queue(self, *responses: Mapping[str, Any]) -> None:
        self._responses.extend(responses)

    def execute(self, query: str, variables: Mapping[str, Any]) -> Mapping[str, Any]:
        self._executed.append((re.sub(r"\s+", " ", query).strip(), dict(variables)))
        if not self._responses:
            raise AssertionError(f"Unexpected query: {query}")
        return self._responses.pop(0)

    @property
    def executed_queries(self) -> Sequence[str]:
        return [query for query, _ in self._executed]

    @property
    def executed_queries_with_args(self) -> Sequence[tuple[str, dict[str, Any]]]:
        return self._executed


@pytest.fixture()
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture()
def customer_client() -> FakeClient:
    return FakeClient()


@pytest.fixture()
def account_tokens() -> list[str | None]:
    return []


@pytest.fixture(autouse=True)
def configuration(client, customer_client, account_tokens):
    def customer_account_client(token: str | None) -> FakeClient:
        account_tokens.append(token)
        return customer_client

    with scoped_configuration(
        admin_api_client=client,
        customer_account_client_factory=customer_account_client,
        log_queries=False,
        max_objects_per_paginated_query=250,
    ) as scoped:
        yield scoped
