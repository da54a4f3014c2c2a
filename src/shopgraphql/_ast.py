from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from graphql import StringValueNode, ValueNode, print_ast

from shopgraphql._utils import lower_camel, pluralize

PAGE_INFO_FIELDS = "pageInfo { hasNextPage hasPreviousPage startCursor endCursor }"
QUOTED_ARGUMENTS = frozenset(("query", "after", "before"))


def string_value(value: Any) -> StringValueNode:
    return StringValueNode(value=str(value))


def format_argument_value(key: str, value: Any) -> str:
    match value:
        case bool():
            return "true" if value else "false"
        case int():
            return str(value)
        case ValueNode():
            return print_ast(value)
        case _ if key in QUOTED_ARGUMENTS:
            return print_ast(string_value(value))
        case _:
            return str(value)


def format_arguments(arguments: Mapping[str, Any]) -> str:
    rendered = [
        f"{lower_camel(key)}: {format_argument_value(key, value)}"
        for key, value in arguments.items()
        if value is not None
    ]
    if not rendered:
        return ""
    return f"({', '.join(rendered)})"


def render_fragments(fragments: Iterable[Fragment]) -> str:
    seen: dict[str, Fragment] = {}
    for fragment in fragments:
        seen.setdefault(fragment.name, fragment)
    return " ".join(fragment.render() for fragment in seen.values())


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part)


class QueryNode(ABC):
    __slots__ = ()

    @abstractmethod
    def render(self) -> str:
        raise NotImplementedError()

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True, slots=True, kw_only=True)
class _SelectionNode(QueryNode):
    name: str
    alias: str | None = None
    arguments: Mapping[str, Any] = field(default_factory=dict)
    children: list[QueryNode] = field(default_factory=list)

    def add_child(self, node: QueryNode) -> QueryNode:
        self.children.append(node)
        return node

    def _head(self) -> str:
        if self.alias and self.alias != self.name:
            head = f"{self.alias}: {self.name}"
        else:
            head = self.name
        return head + format_arguments(self.arguments)

    def _body(self) -> str:
        return " ".join(child.render() for child in self.children)


@dataclass(frozen=True, slots=True, kw_only=True)
class Field(_SelectionNode):
    def render(self) -> str:
        if not self.children:
            return self._head()
        return f"{self._head()} {{ {self._body()} }}"


@dataclass(frozen=True, slots=True, kw_only=True)
class Singular(_SelectionNode):
    def render(self) -> str:
        return f"{self._head()} {{ {self._body()} }}"


@dataclass(frozen=True, slots=True, kw_only=True)
class Connection(_SelectionNode):
    include_page_info: bool = False

    def render(self) -> str:
        page_info = PAGE_INFO_FIELDS if self.include_page_info else ""
        return f"{self._head()} {{ {_join(page_info, f'nodes {{ {self._body()} }}')} }}"


@dataclass(frozen=True, slots=True, kw_only=True)
class Fragment(QueryNode):
    name: str
    on: str
    children: list[QueryNode] = field(default_factory=list)

    def add_child(self, node: QueryNode) -> QueryNode:
        self.children.append(node)
        return node

    def render(self) -> str:
        fields = " ".join(child.render() for child in self.children)
        return f"fragment {self.name} on {self.on} {{ {fields} }}"


@dataclass(frozen=True, slots=True, kw_only=True)
class InlineFragment(QueryNode):
    on: str
    children: list[QueryNode] = field(default_factory=list)

    def add_child(self, node: QueryNode) -> QueryNode:
        self.children.append(node)
        return node

    def render(self) -> str:
        fields = " ".join(child.render() for child in self.children)
        return f"... on {self.on} {{ {fields} }}"


@dataclass(frozen=True, slots=True)
class Raw(QueryNode):
    graphql: str

    def render(self) -> str:
        return self.graphql


@dataclass(frozen=True, slots=True, kw_only=True)
class _DocumentNode(QueryNode):
    query_name: str
    fragment_name: str
    fragments: Sequence[Fragment] = ()

    def _document(self, operation: str) -> str:
        return _join(render_fragments(self.fragments), operation)


@dataclass(frozen=True, slots=True, kw_only=True)
class SingleRecord(_DocumentNode):
    model_type: str

    def render(self) -> str:
        return self._document(
            f"query get{self.model_type}($id: ID!) {{ "
            f"{self.query_name}(id: $id) {{ ...{self.fragment_name} }} }}"
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class CurrentCustomer(_DocumentNode):
    model_type: str

    def render(self) -> str:
        return self._document(
            f"query getCurrent{self.model_type} {{ {self.query_name} {{ ...{self.fragment_name} }} }}"
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class Collection(_DocumentNode):
    model_type: str
    variables: Mapping[str, Any] = field(default_factory=dict)
    include_page_info: bool = False

    def render(self) -> str:
        page_info = PAGE_INFO_FIELDS if self.include_page_info else ""
        selection = _join(page_info, f"nodes {{ ...{self.fragment_name} }}")
        return self._document(
            f"query get{pluralize(self.model_type)} {{ "
            f"{self.query_name}{format_arguments(self.variables)} {{ {selection} }} }}"
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class _ConnectionDocumentNode(_DocumentNode):
    variables: Mapping[str, Any] = field(default_factory=dict)
    singular: bool = False

    def _connection(self) -> str:
        if self.singular:
            selection = f"...{self.fragment_name}"
        else:
            selection = f"{PAGE_INFO_FIELDS} nodes {{ ...{self.fragment_name} }}"
        return f"{self.query_name}{format_arguments(self.variables)} {{ {selection} }}"


@dataclass(frozen=True, slots=True, kw_only=True)
class NestedConnection(_ConnectionDocumentNode):
    parent_query: str

    def render(self) -> str:
        return self._document(f"query($id: ID!) {{ {self.parent_query} {{ {self._connection()} }} }}")


@dataclass(frozen=True, slots=True, kw_only=True)
class RootConnection(_ConnectionDocumentNode):
    def render(self) -> str:
        return self._document(f"query {{ {self._connection()} }}")


def collection_query_name(graphql_type: str) -> str:
    return pluralize(lower_camel(graphql_type))
