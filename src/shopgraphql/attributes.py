from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, overload

from shopgraphql._utils import lower_camel
from shopgraphql.types import AttributeType, Transform

T = TypeVar("T")


@dataclass(frozen=True, slots=True, kw_only=True)
class MetafieldRef:
    namespace: str
    key: str
    alias: str


@dataclass(frozen=True, slots=True, kw_only=True)
class AttributeConfig:
    name: str
    path: str
    type: AttributeType = "string"
    null: bool = True
    default: Any = None
    transform: Transform | None = None
    raw_graphql: str | None = None
    metafield: MetafieldRef | None = None

    @property
    def path_parts(self) -> list[str]:
        return self.path.split(".")

    @property
    def value_field(self) -> str:
        return "jsonValue" if self.type == "json" else "value"


class Attribute(Generic[T]):
    """
    Model attribute backed by a field of the GraphQL type.

    ``path`` defaults to the attribute name in lowerCamelCase. Dotted paths select nested
    objects; ``raw_graphql`` is inserted in the fragment verbatim under the attribute name
    and the remaining path segments (if any) are read from the aliased value.
    """

    __slots__ = ("_path", "_options", "name", "config")

    name: str
    config: AttributeConfig

    def __init__(
        self,
        path: str | None = None,
        *,
        type: AttributeType = "string",
        null: bool = True,
        default: Any = None,
        transform: Transform | None = None,
        raw_graphql: str | None = None,
    ):
        self._path = path
        self._options = dict(
            type=type, null=null, default=default, transform=transform, raw_graphql=raw_graphql
        )

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        self.config = self._build_config(name)

    def _build_config(self, name: str) -> AttributeConfig:
        return AttributeConfig(name=name, path=self._path or lower_camel(name), **self._options)

    @overload
    def __get__(self, instance: None, owner: type) -> Attribute[T]:
        ...

    @overload
    def __get__(self, instance: object, owner: type) -> T | None:
        ...

    def __get__(self, instance: object | None, owner: type) -> Attribute[T] | T | None:
        if instance is None:
            return self
        return instance.__dict__.get(self.name)

    def __set__(self, instance: object, value: T | None) -> None:
        instance.__dict__[self.name] = value


class MetafieldAttribute(Attribute[T]):
    __slots__ = ("_namespace", "_key")

    def __init__(
        self,
        namespace: str,
        key: str,
        *,
        type: AttributeType = "string",
        null: bool = True,
        default: Any = None,
        transform: Transform | None = None,
    ):
        super().__init__(type=type, null=null, default=default, transform=transform)
        self._namespace = namespace
        self._key = key

    def _build_config(self, name: str) -> AttributeConfig:
        alias = f"{lower_camel(name)}Metafield"
        value_field = "jsonValue" if self._options["type"] == "json" else "value"
        return AttributeConfig(
            name=name,
            path=f"{alias}.{value_field}",
            metafield=MetafieldRef(namespace=self._namespace, key=self._key, alias=alias),
            **self._options,
        )
