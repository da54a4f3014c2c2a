from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import cached_property
from typing import Any, ClassVar, Generic, TypeVar, overload

from shopgraphql._ast import Field as FieldNode
from shopgraphql._ast import PAGE_INFO_FIELDS, QueryNode, Raw, string_value
from shopgraphql._builders.query import metaobject_field_nodes
from shopgraphql._mapper import build_metaobject, map_metaobject_node
from shopgraphql._utils import dig, underscore
from shopgraphql.config import Configuration
from shopgraphql.connections import register_target
from shopgraphql.exceptions import NotFoundError
from shopgraphql.gid import normalize_gid
from shopgraphql.loaders import Executor, pagination_variables, search_variable
from shopgraphql.pagination import MetaobjectPaginatedResult, PageInfo
from shopgraphql.relation import BaseRelation
from shopgraphql.types import AttributeType, GraphQLClient, JsonMap, Transform

logger = logging.getLogger(__name__)

T = TypeVar("T")

METAOBJECT_GRAPHQL_TYPE = "Metaobject"


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldConfig:
    name: str
    key: str
    type: AttributeType = "string"
    default: Any = None
    transform: Transform | None = None

    @property
    def value_field(self) -> str:
        return "jsonValue" if self.type == "json" else "value"


class Field(Generic[T]):
    """
    Metaobject field, read from ``field(key: ...)`` of the metaobject.

    ``key`` defaults to the attribute name.
    """

    __slots__ = ("_key", "_options", "name", "config")

    name: str
    config: FieldConfig

    def __init__(
        self,
        key: str | None = None,
        *,
        type: AttributeType = "string",
        default: Any = None,
        transform: Transform | None = None,
    ):
        self._key = key
        self._options = dict(type=type, default=default, transform=transform)

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        self.config = FieldConfig(name=name, key=self._key or name, **self._options)

    @overload
    def __get__(self, instance: None, owner: type) -> Field[T]:
        ...

    @overload
    def __get__(self, instance: object, owner: type) -> T | None:
        ...

    def __get__(self, instance: object | None, owner: type) -> Field[T] | T | None:
        if instance is None:
            return self
        return instance.__dict__.get(self.name)

    def __set__(self, instance: object, value: T | None) -> None:
        instance.__dict__[self.name] = value


class Metaobject:
    """
    Base class for metaobject definitions.

    The metaobject type defaults to the snake_case class name::

        class Provider(Metaobject):
            description = Field()
            rating = Field(type="integer", default=0)
    """

    __metaobject_type__: ClassVar[str] = ""
    __fields__: ClassVar[Mapping[str, FieldConfig]] = {}

    def __init_subclass__(cls, metaobject_type: str | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.__metaobject_type__ = metaobject_type or underscore(cls.__name__)
        fields = dict(cls.__fields__)
        for name, value in vars(cls).items():
            if isinstance(value, Field):
                fields[name] = value.config
        cls.__fields__ = fields
        register_target(cls)

    def __init__(
        self,
        *,
        id: str | None = None,
        handle: str | None = None,
        type: str | None = None,
        display_name: str | None = None,
        **fields: Any,
    ):
        self.id = id
        self.handle = handle
        self.type = type
        self.display_name = display_name
        for name, value in fields.items():
            setattr(self, name, value)

    def __repr__(self) -> str:
        values = ", ".join(
            f"{name}={getattr(self, name)!r}"
            for name in ("id", "handle", *type(self).__fields__)
        )
        return f"{type(self).__name__}({values})"

    @classmethod
    def all(cls, configuration: Configuration | None = None) -> MetaobjectRelation:
        return MetaobjectRelation(model=cls, loader=MetaobjectLoader(cls, configuration=configuration))

    @classmethod
    def find(cls, id: Any) -> Metaobject:
        return cls.all().find(id)

    @classmethod
    def find_by(cls, conditions: Any = None, **options: Any) -> Metaobject | None:
        return cls.all().find_by(conditions, **options)

    @classmethod
    def where(cls, conditions: Any = None, *args: Any, **options: Any) -> MetaobjectRelation:
        return cls.all().where(conditions, *args, **options)

    @classmethod
    def limit(cls, count: int) -> MetaobjectRelation:
        return cls.all().limit(count)

    @classmethod
    def first(cls, count: int | None = None) -> Any:
        return cls.all().first(count)


class MetaobjectLoader(Executor):
    def __init__(self, metaobject: type[Metaobject], *, configuration: Configuration | None = None):
        super().__init__(configuration=configuration)
        self.metaobject = metaobject

    @cached_property
    def client(self) -> GraphQLClient:
        return self.configuration.require_admin_api_client()

    def perform_graphql_query(self, query: str, variables: Mapping[str, Any]) -> JsonMap:
        return self.client.execute(query, variables)

    def build_single_query(self) -> str:
        metaobject = FieldNode(name="metaobject", arguments={"id": "$id"}, children=self._fields())
        return f"query getMetaobject($id: ID!) {{ {metaobject.render()} }}"

    def build_collection_query(
        self,
        *,
        conditions: Any,
        per_page: int,
        after: str | None = None,
        before: str | None = None,
    ) -> str:
        arguments = {
            "type": string_value(self.metaobject.__metaobject_type__),
            **pagination_variables(per_page, after, before),
            "query": search_variable(conditions),
        }
        metaobjects = FieldNode(
            name="metaobjects",
            arguments=arguments,
            children=[Raw(PAGE_INFO_FIELDS), FieldNode(name="nodes", children=self._fields())],
        )
        return f"query getMetaobjects {{ {metaobjects.render()} }}"

    def _fields(self) -> list[QueryNode]:
        return metaobject_field_nodes(self.metaobject)

    def load_single(self, id: str) -> dict[str, Any] | None:
        response = self.execute(self.build_single_query(), {"id": id})
        node = dig(response, "data", "metaobject")
        if not node:
            return None
        return map_metaobject_node(node, self.metaobject)

    def load_collection(
        self,
        *,
        conditions: Any,
        per_page: int,
        relation: MetaobjectRelation,
        after: str | None = None,
        before: str | None = None,
    ) -> MetaobjectPaginatedResult[Metaobject]:
        query = self.build_collection_query(
            conditions=conditions, per_page=per_page, after=after, before=before
        )
        connection = dig(self.execute(query), "data", "metaobjects") or {}
        nodes: Sequence[Any] = connection.get("nodes") or ()
        logger.debug("Fetched %s metaobjects page of %s records", self.metaobject.__metaobject_type__, len(nodes))
        return MetaobjectPaginatedResult(
            page_info=PageInfo.from_response(connection.get("pageInfo")),
            relation=relation,
            nodes=nodes,
            build_record=lambda node: build_metaobject(node, self.metaobject),
        )


@dataclass(frozen=True, kw_only=True, eq=False, repr=False)
class MetaobjectRelation(BaseRelation[Metaobject]):
    loader: MetaobjectLoader

    @property
    def configuration(self) -> Configuration:
        return self.loader.configuration

    def find(self, id: Any = None) -> Metaobject:
        attributes = self.loader.load_single(normalize_gid(id, METAOBJECT_GRAPHQL_TYPE))
        if attributes is None:
            raise NotFoundError(f"Couldn't find {self.model.__name__} with id={id}")
        return self.model(**attributes)

    def _load_page(self, *, after: str | None, before: str | None) -> MetaobjectPaginatedResult[Metaobject]:
        return self.loader.load_collection(
            conditions=self.conditions,
            per_page=self.effective_per_page,
            after=after,
            before=before,
            relation=self,
        )
