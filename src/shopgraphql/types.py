from collections.abc import Callable, Mapping
from typing import Any, Literal, Protocol, TypeAlias

JsonMap: TypeAlias = Mapping[str, Any]

AttributeType = Literal["string", "integer", "float", "boolean", "datetime", "json"]
ConnectionKind = Literal["connection", "singular", "metaobject_reference"]

Transform = Callable[[Any], Any]


class GraphQLClient(Protocol):
    def execute(self, query: str, variables: Mapping[str, Any]) -> JsonMap:
        ...


ClientFactory = Callable[[str | None], GraphQLClient]
