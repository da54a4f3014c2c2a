from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from shopgraphql._ast import (
    Collection,
    Connection,
    CurrentCustomer,
    Field,
    Fragment,
    InlineFragment,
    NestedConnection,
    QueryNode,
    Raw,
    RootConnection,
    SingleRecord,
    Singular,
    collection_query_name,
    string_value,
)
from shopgraphql._context import Include, LoaderContext
from shopgraphql._utils import alias_key
from shopgraphql.attributes import AttributeConfig
from shopgraphql.connections import ConnectionConfig
from shopgraphql.exceptions import ConfigurationError

if TYPE_CHECKING:
    from shopgraphql.metaobject import Metaobject

METAOBJECT_IDENTITY_FIELDS = ("id", "handle", "type", "displayName")

PathTree = dict[str, "PathTree | None"]


def normalize_includes(includes: Include | Iterable[Include]) -> dict[str, list[Include]]:
    """
    Normalizes includes into a mapping of connection name to its nested includes.

    ``["orders", {"line_items": "variant"}]`` becomes
    ``{"orders": [], "line_items": ["variant"]}``.
    """
    if isinstance(includes, (str, Mapping)):
        includes = [includes]

    normalized: dict[str, list[Include]] = {}
    for include in includes:
        if isinstance(include, Mapping):
            for name, nested in include.items():
                bucket = normalized.setdefault(str(name), [])
                if isinstance(nested, (list, tuple)):
                    bucket.extend(nested)
                else:
                    bucket.append(nested)
        else:
            normalized.setdefault(str(include), [])
    return normalized


def metaobject_field_nodes(metaobject: type[Metaobject]) -> list[QueryNode]:
    nodes: list[QueryNode] = [Field(name=name) for name in METAOBJECT_IDENTITY_FIELDS]
    if not metaobject.__fields__:
        nodes.append(
            Field(name="fields", children=[Field(name="key"), Field(name="value"), Field(name="jsonValue")])
        )
        return nodes

    for config in metaobject.__fields__.values():
        nodes.append(
            Field(
                name="field",
                alias=alias_key(config.key),
                arguments={"key": string_value(config.key)},
                children=[Field(name="key"), Field(name="value"), Field(name="jsonValue")],
            )
        )
    return nodes


def metaobject_reference_node(config: ConnectionConfig) -> Field:
    inline = InlineFragment(on="Metaobject", children=metaobject_field_nodes(config.target_class))
    return Field(
        name="metafield",
        alias=config.name,
        arguments={
            "namespace": string_value(config.metafield_namespace),
            "key": string_value(config.metafield_key),
        },
        children=[Field(name="reference", children=[inline])],
    )


class QueryBuilder:
    def __init__(self, context: LoaderContext):
        self._context = context

    def build_fragment(self) -> Fragment:
        if not self._context.attributes:
            raise ConfigurationError(
                f"{self._context.model.__name__} does not define any attributes "
                f"for {type(self._context.loader).__name__}"
            )

        fragment = Fragment(name=self._context.fragment_name, on=self._context.graphql_type)
        for node in self.build_field_nodes():
            fragment.add_child(node)
        for node in self.build_connection_nodes():
            fragment.add_child(node)
        return fragment

    def build_field_nodes(self) -> list[QueryNode]:
        path_tree: PathTree = {}
        aliased: list[QueryNode] = []
        metafields: dict[str, QueryNode] = {}
        raw: list[QueryNode] = []

        for name, config in self._context.attributes.items():
            if config.raw_graphql:
                raw.append(Raw(f"{name}: {config.raw_graphql}"))
            elif config.metafield is not None:
                metafields[config.metafield.alias] = self._metafield_node(config)
            elif "." in config.path:
                self._add_to_tree(path_tree, config.path_parts)
            else:
                aliased.append(Field(name=config.path, alias=name))

        return [*self._nodes_from_tree(path_tree), *aliased, *metafields.values(), *raw]

    def build_connection_nodes(self) -> list[QueryNode]:
        if not self._context.included_connections:
            return []

        connections = self._context.connections
        nodes: list[QueryNode] = []
        for name, nested in normalize_includes(self._context.included_connections).items():
            config = connections.get(name)
            if config is None:
                continue
            nodes.append(self._connection_node(config, nested))
        return nodes

    @staticmethod
    def _metafield_node(config: AttributeConfig) -> QueryNode:
        assert config.metafield is not None
        return Field(
            name="metafield",
            alias=config.metafield.alias,
            arguments={
                "namespace": string_value(config.metafield.namespace),
                "key": string_value(config.metafield.key),
            },
            children=[Field(name=config.value_field)],
        )

    @staticmethod
    def _add_to_tree(tree: PathTree, parts: Sequence[str]) -> None:
        current = tree
        for part in parts[:-1]:
            child = current.get(part)
            if child is None:
                child = current[part] = {}
            current = child
        current.setdefault(parts[-1], None)

    @classmethod
    def _nodes_from_tree(cls, tree: PathTree) -> list[QueryNode]:
        return [
            Field(name=key) if subtree is None else Field(name=key, children=cls._nodes_from_tree(subtree))
            for key, subtree in tree.items()
        ]

    def _connection_node(self, config: ConnectionConfig, nested: Sequence[Include]) -> QueryNode:
        if config.kind == "metaobject_reference":
            return metaobject_reference_node(config)

        target_context = self._context.for_model(config.target_class, included_connections=nested)
        children = self._target_field_nodes(target_context)
        node_class = Singular if config.kind == "singular" else Connection
        return node_class(
            name=config.query_name,
            alias=config.name,
            arguments=dict(config.default_arguments),
            children=children,
        )

    @staticmethod
    def _target_field_nodes(target_context: LoaderContext) -> list[QueryNode]:
        builder = QueryBuilder(target_context)
        if target_context.attributes:
            nodes = builder.build_field_nodes()
        else:
            nodes = [Field(name="id")]
        return [*nodes, *builder.build_connection_nodes()]


def _fragments(context: LoaderContext) -> list[Fragment]:
    return [QueryBuilder(context).build_fragment()]


def build_single_record_query(context: LoaderContext) -> str:
    return SingleRecord(
        model_type=context.graphql_type,
        query_name=context.query_name,
        fragment_name=context.fragment_name,
        fragments=_fragments(context),
    ).render()


def build_current_customer_query(context: LoaderContext, query_name: str | None = None) -> str:
    return CurrentCustomer(
        model_type=context.graphql_type,
        query_name=query_name or context.query_name,
        fragment_name=context.fragment_name,
        fragments=_fragments(context),
    ).render()


def build_collection_query(
    context: LoaderContext,
    *,
    variables: Mapping[str, Any],
    query_name: str | None = None,
    include_page_info: bool = False,
) -> str:
    return Collection(
        model_type=context.graphql_type,
        query_name=query_name or collection_query_name(context.graphql_type),
        fragment_name=context.fragment_name,
        fragments=_fragments(context),
        variables=variables,
        include_page_info=include_page_info,
    ).render()


def build_paginated_collection_query(
    context: LoaderContext, *, variables: Mapping[str, Any], query_name: str | None = None
) -> str:
    return build_collection_query(
        context, variables=variables, query_name=query_name, include_page_info=True
    )


def build_connection_query(
    context: LoaderContext,
    *,
    query_name: str,
    variables: Mapping[str, Any],
    parent_query: str | None = None,
    singular: bool = False,
) -> str:
    node: QueryNode
    if parent_query is not None:
        node = NestedConnection(
            query_name=query_name,
            fragment_name=context.fragment_name,
            fragments=_fragments(context),
            variables=variables,
            parent_query=parent_query,
            singular=singular,
        )
    else:
        node = RootConnection(
            query_name=query_name,
            fragment_name=context.fragment_name,
            fragments=_fragments(context),
            variables=variables,
            singular=singular,
        )
    return node.render()


def build_metafield_reference_query(parent_query_name: str, config: ConnectionConfig) -> str:
    parent = Field(
        name=parent_query_name, arguments={"id": "$id"}, children=[metaobject_reference_node(config)]
    )
    return f"query getMetafieldReference($id: ID!) {{ {parent.render()} }}"
