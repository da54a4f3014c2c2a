import pytest
from graphql import StringValueNode, parse

from shopgraphql._ast import (
    PAGE_INFO_FIELDS,
    Collection,
    Connection,
    CurrentCustomer,
    Field,
    Fragment,
    InlineFragment,
    NestedConnection,
    Raw,
    RootConnection,
    SingleRecord,
    Singular,
    format_arguments,
)


class TestArgumentFormatting:
    @pytest.mark.parametrize(
        ("arguments", "expected"),
        [
            ({"first": 10}, "(first: 10)"),
            ({"reverse": True, "sort_key": "CREATED_AT"}, "(reverse: true, sortKey: CREATED_AT)"),
            ({"after": "abc", "before": None}, '(after: "abc")'),
            ({"query": "title:'x'"}, "(query: \"title:'x'\")"),
            ({"key": StringValueNode(value="points")}, '(key: "points")'),
            ({"after": None}, ""),
            ({}, ""),
        ],
    )
    def test_format_arguments(self, arguments, expected):
        assert format_arguments(arguments) == expected

    def test_quoted_argument_is_escaped_as_graphql_string(self):
        rendered = format_arguments({"query": 'title:\'He said \\"hi\\"\''})
        document = parse(f"query {{ orders{rendered} {{ id }} }}")
        argument = document.definitions[0].selection_set.selections[0].arguments[0]
        assert argument.value.value == 'title:\'He said \\"hi\\"\''


class TestFieldNodes:
    def test_field_without_children(self):
        assert Field(name="createdAt", alias="created_at").render() == "created_at: createdAt"

    def test_alias_is_omitted_when_same_as_name(self):
        assert Field(name="id", alias="id").render() == "id"

    def test_field_with_children_and_arguments(self):
        node = Field(
            name="metafield",
            alias="points",
            arguments={"namespace": StringValueNode(value="loyalty")},
        )
        node.add_child(Field(name="value"))
        assert node.render() == 'points: metafield(namespace: "loyalty") { value }'

    def test_singular(self):
        node = Singular(name="variant", children=[Field(name="id"), Field(name="sku")])
        assert node.render() == "variant { id sku }"

    def test_connection(self):
        node = Connection(
            name="lineItems",
            alias="line_items",
            arguments={"first": 5},
            children=[Field(name="id")],
        )
        assert node.render() == "line_items: lineItems(first: 5) { nodes { id } }"

    def test_connection_with_page_info(self):
        node = Connection(name="orders", children=[Field(name="id")], include_page_info=True)
        assert node.render() == f"orders {{ {PAGE_INFO_FIELDS} nodes {{ id }} }}"

    def test_inline_fragment_and_raw(self):
        node = InlineFragment(on="Metaobject", children=[Field(name="id"), Raw("handle")])
        assert node.render() == "... on Metaobject { id handle }"

    def test_fragment(self):
        fragment = Fragment(name="OrderFragment", on="Order")
        fragment.add_child(Field(name="id"))
        assert str(fragment) == "fragment OrderFragment on Order { id }"


class TestDocuments:
    @pytest.fixture()
    def fragment(self):
        return Fragment(name="OrderFragment", on="Order", children=[Field(name="id")])

    def test_single_record(self, fragment):
        query = SingleRecord(
            model_type="Order", query_name="order", fragment_name="OrderFragment", fragments=[fragment]
        ).render()
        assert query == (
            "fragment OrderFragment on Order { id } "
            "query getOrder($id: ID!) { order(id: $id) { ...OrderFragment } }"
        )
        parse(query)

    def test_current_customer(self):
        fragment = Fragment(name="CustomerFragment", on="Customer", children=[Field(name="id")])
        query = CurrentCustomer(
            model_type="Customer",
            query_name="customer",
            fragment_name="CustomerFragment",
            fragments=[fragment],
        ).render()
        assert query.endswith("query getCurrentCustomer { customer { ...CustomerFragment } }")
        parse(query)

    def test_collection(self, fragment):
        query = Collection(
            model_type="Order",
            query_name="orders",
            fragment_name="OrderFragment",
            fragments=[fragment],
            variables={"first": 2, "after": None, "query": "name:'#1001'"},
            include_page_info=True,
        ).render()
        assert query == (
            "fragment OrderFragment on Order { id } "
            "query getOrders { orders(first: 2, query: \"name:'#1001'\") "
            f"{{ {PAGE_INFO_FIELDS} nodes {{ ...OrderFragment }} }} }}"
        )
        parse(query)

    def test_fragments_are_deduplicated(self, fragment):
        query = SingleRecord(
            model_type="Order",
            query_name="order",
            fragment_name="OrderFragment",
            fragments=[fragment, Fragment(name="OrderFragment", on="Order")],
        ).render()
        assert query.count("fragment OrderFragment") == 1

    def test_nested_connection(self, fragment):
        query = NestedConnection(
            query_name="orders",
            fragment_name="OrderFragment",
            fragments=[fragment],
            variables={"first": 10},
            parent_query="customer(id: $id)",
        ).render()
        assert query == (
            "fragment OrderFragment on Order { id } query($id: ID!) { customer(id: $id) { "
            f"orders(first: 10) {{ {PAGE_INFO_FIELDS} nodes {{ ...OrderFragment }} }} }} }}"
        )
        parse(query)

    def test_singular_nested_connection(self, fragment):
        query = NestedConnection(
            query_name="order",
            fragment_name="OrderFragment",
            fragments=[fragment],
            parent_query="lineItem(id: $id)",
            singular=True,
        ).render()
        assert query.endswith("query($id: ID!) { lineItem(id: $id) { order { ...OrderFragment } } }")
        parse(query)

    def test_root_connection(self, fragment):
        query = RootConnection(
            query_name="orders",
            fragment_name="OrderFragment",
            fragments=[fragment],
            variables={"first": 3},
        ).render()
        assert query.endswith(
            f"query {{ orders(first: 3) {{ {PAGE_INFO_FIELDS} nodes {{ ...OrderFragment }} }} }}"
        )
        parse(query)
