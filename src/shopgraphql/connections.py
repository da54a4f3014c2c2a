from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, overload

from shopgraphql._utils import classify, lower_camel
from shopgraphql.exceptions import ConfigurationError
from shopgraphql.types import ConnectionKind

if TYPE_CHECKING:
    from shopgraphql.loaders import Loader
    from shopgraphql.model import Model

logger = logging.getLogger(__name__)

_TARGETS: dict[str, type] = {}


def register_target(cls: type, name: str | None = None) -> None:
    _TARGETS[name or cls.__name__] = cls


def resolve_target(target: str | type) -> type:
    if isinstance(target, type):
        return target
    try:
        return _TARGETS[target]
    except KeyError:
        raise ConfigurationError(f"Unknown connection target: {target}") from None


@dataclass(frozen=True, slots=True, kw_only=True)
class ConnectionConfig:
    name: str
    target: str | type
    query_name: str
    kind: ConnectionKind = "connection"
    default_arguments: Mapping[str, Any] = field(default_factory=dict)
    nested: bool = True
    inverse_of: str | None = None
    loader_class: type[Loader] | None = None
    eager_load: bool = False
    metafield_namespace: str | None = None
    metafield_key: str | None = None

    @property
    def target_class(self) -> type:
        return resolve_target(self.target)

    @property
    def is_singular(self) -> bool:
        return self.kind != "connection"


class ConnectionDescriptor:
    __slots__ = ("_target", "_options", "name", "config")

    kind: ConnectionKind
    name: str
    config: ConnectionConfig

    def __init__(self, target: str | type | None = None, **options: Any):
        self._target = target
        self._options = options

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        self.config = self._build_config(name)

    def _build_config(self, name: str) -> ConnectionConfig:
        options = dict(self._options)
        query_name = options.pop("query_name", None) or lower_camel(name)
        return ConnectionConfig(
            name=name,
            target=self._target or classify(name),
            query_name=query_name,
            kind=self.kind,
            **options,
        )

    def __get__(self, instance: Model | None, owner: type) -> Any:
        if instance is None:
            return self
        cache = instance._connection_cache
        if self.name in cache:
            return self._from_cache(instance, cache[self.name])
        return self._load(instance)

    def __set__(self, instance: Model, value: Any) -> None:
        raise AttributeError(f"Connection {self.name} is read only")

    def _from_cache(self, instance: Model, value: Any) -> Any:
        return value

    def _load(self, instance: Model) -> Any:
        loader = instance._loader_for(self.config)
        logger.debug("Loading connection %s of %s", self.name, type(instance).__name__)
        records = loader.load_connection_records(
            self.config.query_name, dict(self.config.default_arguments), instance, self.config
        )
        instance._cache_connection(self.name, records)
        return records


class HasOne(ConnectionDescriptor):
    kind = "singular"

    def __init__(
        self,
        target: str | type | None = None,
        *,
        query_name: str | None = None,
        default_arguments: Mapping[str, Any] | None = None,
        inverse_of: str | None = None,
        loader_class: type[Loader] | None = None,
        eager_load: bool = False,
        nested: bool = True,
    ):
        super().__init__(
            target,
            query_name=query_name,
            default_arguments=default_arguments or {},
            nested=nested,
            inverse_of=inverse_of,
            loader_class=loader_class,
            eager_load=eager_load,
        )


class HasMany(HasOne):
    kind = "connection"

    def _from_cache(self, instance: Model, value: Any) -> ConnectionProxy:
        return ConnectionProxy(instance, self.config, records=value)

    def _load(self, instance: Model) -> ConnectionProxy:
        proxies = instance._connection_proxies
        if self.name not in proxies:
            proxies[self.name] = ConnectionProxy(instance, self.config)
        return proxies[self.name]


class HasOneMetaobject(ConnectionDescriptor):
    kind = "metaobject_reference"

    def __init__(
        self,
        target: str | type | None = None,
        *,
        namespace: str = "custom",
        key: str | None = None,
        inverse_of: str | None = None,
        eager_load: bool = False,
    ):
        super().__init__(
            target,
            metafield_namespace=namespace,
            metafield_key=key,
            inverse_of=inverse_of,
            eager_load=eager_load,
        )

    def _build_config(self, name: str) -> ConnectionConfig:
        config = super()._build_config(name)
        if config.metafield_key is None:
            config = dataclasses.replace(config, metafield_key=name)
        return config

    def _load(self, instance: Model) -> Any:
        loader = instance._loader_for(self.config)
        record = loader.load_metaobject_reference(instance, self.config)
        instance._cache_connection(self.name, record)
        return record


class ConnectionProxy(Sequence):
    """
    Lazily loaded records of a plural connection.

    Records are fetched on first access and kept until :meth:`reload`. Calling the proxy
    with arguments returns a new proxy whose query uses them on top of the connection's
    default arguments.
    """

    def __init__(
        self,
        parent: Model,
        config: ConnectionConfig,
        options: Mapping[str, Any] | None = None,
        records: Sequence[Any] | None = None,
    ):
        self._parent = parent
        self._config = config
        self._options = dict(options or {})
        self._records: list[Any] | None = list(records) if records is not None else None

    def __call__(self, **options: Any) -> ConnectionProxy:
        return ConnectionProxy(self._parent, self._config, options)

    @property
    def loaded(self) -> bool:
        return self._records is not None

    @property
    def records(self) -> list[Any]:
        if self._records is None:
            loader = self._parent._loader_for(self._config)
            variables = {
                key: value
                for key, value in {**self._config.default_arguments, **self._options}.items()
                if value is not None
            }
            logger.debug(
                "Loading connection %s of %s", self._config.name, type(self._parent).__name__
            )
            self._records = list(
                loader.load_connection_records(
                    self._config.query_name, variables, self._parent, self._config
                )
                or ()
            )
        return self._records

    def reload(self) -> ConnectionProxy:
        self._records = None
        return self

    @overload
    def __getitem__(self, index: int) -> Any:
        ...

    @overload
    def __getitem__(self, index: slice) -> list[Any]:
        ...

    def __getitem__(self, index: int | slice) -> Any:
        return self.records[index]

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.records)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ConnectionProxy):
            return self.records == other.records
        if isinstance(other, list):
            return self.records == other
        return NotImplemented

    def __repr__(self) -> str:
        state = repr(self._records) if self._records is not None else "not loaded"
        return f"<ConnectionProxy {self._config.name}: {state}>"
