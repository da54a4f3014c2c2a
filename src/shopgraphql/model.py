from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar

from shopgraphql._context import Include
from shopgraphql._utils import CacheDict
from shopgraphql.attributes import Attribute, AttributeConfig
from shopgraphql.connections import ConnectionConfig, ConnectionDescriptor, register_target
from shopgraphql.loaders import AdminApiLoader, CustomerAccountApiLoader, Loader
from shopgraphql.relation import Relation


@dataclass(frozen=True, slots=True, kw_only=True)
class LoaderOverride:
    graphql_type: str | None = None
    attributes: Mapping[str, AttributeConfig] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class LoaderDefinition:
    graphql_type: str
    attributes: Mapping[str, AttributeConfig]


class Model:
    """
    Base class for records backed by a GraphQL type.

    Subclasses declare their attributes and connections as class attributes::

        class Customer(Model, graphql_type="Customer"):
            id = Attribute()
            email = Attribute("defaultEmailAddress.emailAddress")
            orders = HasMany("Order", inverse_of="customer")

    The attribute and connection tables are built once at class creation and copied
    (not shared) into subclasses.
    """

    __graphql_type__: ClassVar[str] = ""
    __attributes__: ClassVar[Mapping[str, AttributeConfig]] = {}
    __connections__: ClassVar[Mapping[str, ConnectionConfig]] = {}
    __loader_overrides__: ClassVar[dict[type[Loader], LoaderOverride]] = {}
    __default_loader__: ClassVar[type[Loader]] = AdminApiLoader
    __definitions__: ClassVar[CacheDict[type[Loader], LoaderDefinition]]

    id: Any = None

    def __init_subclass__(
        cls,
        graphql_type: str | None = None,
        default_loader: type[Loader] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        cls.__graphql_type__ = graphql_type or cls.__name__
        if default_loader is not None:
            cls.__default_loader__ = default_loader

        attributes = dict(cls.__attributes__)
        connections = dict(cls.__connections__)
        for name, value in vars(cls).items():
            if isinstance(value, Attribute):
                attributes[name] = value.config
            elif isinstance(value, ConnectionDescriptor):
                connections[name] = value.config
        cls.__attributes__ = attributes
        cls.__connections__ = connections
        cls.__loader_overrides__ = dict(cls.__loader_overrides__)
        cls.__definitions__ = CacheDict(cls._define_for_loader)
        register_target(cls)

    def __init__(self, **attributes: Any):
        self._connection_cache: dict[str, Any] = {}
        self._connection_proxies: dict[str, Any] = {}
        self._loader: Loader | None = None
        for name, value in attributes.items():
            setattr(self, name, value)

    def __repr__(self) -> str:
        values = ", ".join(
            f"{name}={getattr(self, name, None)!r}" for name in type(self).__attributes__
        )
        return f"{type(self).__name__}({values})"

    @classmethod
    def for_loader(
        cls, loader_class: type[Loader], graphql_type: str | None = None, **attributes: Attribute
    ) -> None:
        """
        Overrides the GraphQL type and attributes used when the model is loaded through
        ``loader_class`` (or one of its subclasses).

        Overridden attributes replace the base ones with the same name, new ones are added.
        """
        previous = cls.__loader_overrides__.get(loader_class, LoaderOverride())
        overrides = dict(previous.attributes)
        for name, attribute in attributes.items():
            attribute.__set_name__(cls, name)
            overrides[name] = attribute.config
            if name not in cls.__attributes__ and not hasattr(cls, name):
                setattr(cls, name, attribute)

        cls.__loader_overrides__[loader_class] = LoaderOverride(
            graphql_type=graphql_type or previous.graphql_type, attributes=overrides
        )
        cls.__definitions__.clear()

    @classmethod
    def _define_for_loader(cls, loader_class: type[Loader]) -> LoaderDefinition:
        override = next(
            (
                cls.__loader_overrides__[klass]
                for klass in loader_class.__mro__
                if klass in cls.__loader_overrides__
            ),
            LoaderOverride(),
        )
        return LoaderDefinition(
            graphql_type=override.graphql_type or cls.__graphql_type__,
            attributes=MappingProxyType({**cls.__attributes__, **override.attributes}),
        )

    @classmethod
    def attributes_for_loader(cls, loader_class: type[Loader]) -> Mapping[str, AttributeConfig]:
        return cls.__definitions__[loader_class].attributes

    @classmethod
    def graphql_type_for_loader(cls, loader_class: type[Loader]) -> str:
        return cls.__definitions__[loader_class].graphql_type

    @classmethod
    def _eager_connections(cls) -> tuple[Include, ...]:
        return tuple(name for name, config in cls.__connections__.items() if config.eager_load)

    @classmethod
    def with_loader(cls, loader: Loader | type[Loader]) -> Relation:
        if isinstance(loader, type):
            loader = loader(cls)
        return Relation(model=cls, loader=loader, included_connections=cls._eager_connections())

    @classmethod
    def with_admin_api(cls) -> Relation:
        return cls.with_loader(AdminApiLoader(cls))

    @classmethod
    def with_customer_account_api(cls, token: str | None = None) -> Relation:
        return cls.with_loader(CustomerAccountApiLoader(cls, token))

    @classmethod
    def all(cls) -> Relation:
        return cls.with_loader(cls.__default_loader__)

    @classmethod
    def find(cls, id: Any = None) -> Model:
        return cls.all().find(id)

    @classmethod
    def find_by(cls, conditions: Any = None, **options: Any) -> Model | None:
        return cls.all().find_by(conditions, **options)

    @classmethod
    def where(cls, conditions: Any = None, *args: Any, **options: Any) -> Relation:
        return cls.all().where(conditions, *args, **options)

    @classmethod
    def includes(cls, *names: Include) -> Relation:
        return cls.all().includes(*names)

    @classmethod
    def select(cls, *names: str) -> Relation:
        return cls.all().select(*names)

    @classmethod
    def limit(cls, count: int) -> Relation:
        return cls.all().limit(count)

    @classmethod
    def first(cls, count: int | None = None) -> Any:
        return cls.all().first(count)

    @property
    def connection_cache(self) -> Mapping[str, Any]:
        return MappingProxyType(self._connection_cache)

    def is_connection_loaded(self, name: str) -> bool:
        return name in self._connection_cache

    def _cache_connection(self, name: str, value: Any) -> None:
        self._connection_cache[name] = value

    def _bind_loader(self, loader: Loader) -> None:
        self._loader = loader

    def _loader_for(self, config: ConnectionConfig) -> Loader:
        loader = self._loader or type(self).__default_loader__(type(self))
        if config.kind == "metaobject_reference":
            return loader
        if config.loader_class is not None:
            return config.loader_class(config.target_class, configuration=loader.configuration)
        return loader.derive(config.target_class)
