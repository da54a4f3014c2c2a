from __future__ import annotations

import datetime
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from shopgraphql._builders.query import normalize_includes
from shopgraphql._context import Include, LoaderContext
from shopgraphql._utils import alias_key, dig, lower_camel
from shopgraphql.attributes import AttributeConfig
from shopgraphql.connections import ConnectionConfig
from shopgraphql.exceptions import MappingError
from shopgraphql.types import AttributeType, JsonMap

if TYPE_CHECKING:
    from shopgraphql.metaobject import FieldConfig, Metaobject
    from shopgraphql.model import Model


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(float(value))


def _to_datetime(value: Any) -> datetime.datetime | Any:
    if isinstance(value, datetime.datetime):
        return value
    try:
        return datetime.datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return value


_COERCERS = {
    "string": str,
    "integer": _to_int,
    "float": float,
    "boolean": lambda value: value is True or value == "true",
    "datetime": _to_datetime,
}


def coerce(value: Any, type_: AttributeType, *, attribute: str, path: str | None = None) -> Any:
    if value is None or isinstance(value, list):
        return value
    coercer = _COERCERS.get(type_)
    if coercer is None:
        return value
    try:
        return coercer(value)
    except (TypeError, ValueError) as e:
        raise MappingError(
            f"Type conversion failed for attribute '{attribute}' (GraphQL path: '{path}') "
            f"to {type_}: {e}",
            attribute=attribute,
            path=path,
        ) from e


def _metaobject_field_data(node: JsonMap, config: FieldConfig) -> Any:
    aliased = node.get(alias_key(config.key))
    if aliased is not None:
        return aliased
    fields = node.get("fields")
    if isinstance(fields, list):
        for field_data in fields:
            if isinstance(field_data, Mapping) and field_data.get("key") == config.key:
                return field_data
    return None


def map_metaobject_node(node: JsonMap, metaobject: type[Metaobject]) -> dict[str, Any]:
    attributes: dict[str, Any] = {
        "id": node.get("id"),
        "handle": node.get("handle"),
        "type": node.get("type"),
        "display_name": node.get("displayName"),
    }
    for name, config in metaobject.__fields__.items():
        field_data = _metaobject_field_data(node, config)
        raw_value = None
        if isinstance(field_data, Mapping):
            raw_value = field_data.get(config.value_field)
        if raw_value is None:
            attributes[name] = config.default
            continue
        value = coerce(raw_value, config.type, attribute=name, path=config.key)
        attributes[name] = config.transform(value) if config.transform else value
    return attributes


def build_metaobject(node: JsonMap | None, metaobject: type[Metaobject]) -> Metaobject | None:
    if not node:
        return None
    return metaobject(**map_metaobject_node(node, metaobject))


def assign_inverse(instance: Any, config: ConnectionConfig, parent: Model | None) -> Any:
    if instance is None or parent is None or config.inverse_of is None:
        return instance
    inverse = getattr(type(instance), "__connections__", {}).get(config.inverse_of)
    if inverse is not None:
        instance._cache_connection(config.inverse_of, parent if inverse.is_singular else [parent])
    return instance


class ResponseMapper:
    def __init__(self, context: LoaderContext):
        self._context = context

    @property
    def context(self) -> LoaderContext:
        return self._context

    def map_response(self, response: JsonMap, root_path: Sequence[str] | None = None) -> dict[str, Any]:
        root = dig(response, *(root_path or ("data", self._context.query_name)))
        if not root:
            return {}
        return self.map_node(root)

    def map_node(self, node: JsonMap | None) -> dict[str, Any]:
        if not node:
            return {}
        return {
            name: self._extract_value(node, name, config)
            for name, config in self._context.attributes.items()
        }

    def build_instance(self, node: JsonMap | None) -> Model | None:
        if not node:
            return None
        instance = self._context.model(**self.map_node(node))
        instance._bind_loader(self._context.loader)
        for name, records in self.extract_connections(node, instance).items():
            instance._cache_connection(name, records)
        return instance

    def extract_connections(self, node: JsonMap, parent: Model | None = None) -> dict[str, Any]:
        if not self._context.included_connections:
            return {}

        connections = self._context.connections
        cache: dict[str, Any] = {}
        for name, nested in normalize_includes(self._context.included_connections).items():
            config = connections.get(name)
            if config is None or config.name not in node:
                continue
            cache[name] = self._extract_connection(node, config, nested, parent)
        return cache

    def map_nested_connection_response(
        self, response: JsonMap, field_name: str, parent: Model, config: ConnectionConfig | None = None
    ) -> Model | list[Model] | None:
        parent_type = type(parent).graphql_type_for_loader(type(self._context.loader))
        return self._map_connection(
            response, ("data", lower_camel(parent_type), field_name), config, parent
        )

    def map_connection_response(
        self, response: JsonMap, query_name: str, config: ConnectionConfig | None = None
    ) -> Model | list[Model] | None:
        return self._map_connection(response, ("data", query_name), config)

    def _map_connection(
        self,
        response: JsonMap,
        path: Sequence[str],
        config: ConnectionConfig | None,
        parent: Model | None = None,
    ) -> Model | list[Model] | None:
        if config is not None and config.is_singular:
            instance = self.build_instance(dig(response, *path))
            return assign_inverse(instance, config, parent)

        nodes = dig(response, *path, "nodes")
        if not nodes:
            return []
        instances = [instance for instance in map(self.build_instance, nodes) if instance is not None]
        if config is not None:
            for instance in instances:
                assign_inverse(instance, config, parent)
        return instances

    def _extract_value(self, node: JsonMap, name: str, config: AttributeConfig) -> Any:
        if config.raw_graphql:
            value = node.get(name)
            if len(config.path_parts) > 1:
                value = dig(value, *config.path_parts[1:])
        elif "." in config.path:
            value = dig(node, *config.path_parts)
        else:
            value = node.get(name)

        if value is None:
            if config.default is not None:
                value = config.default
            elif config.transform is not None:
                value = config.transform(None)
        elif config.transform is not None:
            value = config.transform(value)

        if value is None and not config.null:
            raise MappingError(
                f"Attribute '{name}' (GraphQL path: '{config.path}') cannot be null but received None",
                attribute=name,
                path=config.path,
            )
        return coerce(value, config.type, attribute=name, path=config.path)

    def _extract_connection(
        self,
        node: JsonMap,
        config: ConnectionConfig,
        nested: Sequence[Include],
        parent: Model | None,
    ) -> Any:
        match config.kind:
            case "metaobject_reference":
                return assign_inverse(
                    build_metaobject(dig(node, config.name, "reference"), config.target_class),
                    config,
                    parent,
                )
            case "singular":
                return self._build_nested(node.get(config.name), config, nested, parent)
            case _:
                nodes = dig(node, config.name, "nodes") or ()
                return [
                    record
                    for record in (self._build_nested(item, config, nested, parent) for item in nodes)
                    if record is not None
                ]

    def _build_nested(
        self,
        node: JsonMap | None,
        config: ConnectionConfig,
        nested: Sequence[Include],
        parent: Model | None,
    ) -> Model | None:
        if not node:
            return None
        mapper = ResponseMapper(self._context.for_model(config.target_class, included_connections=nested))
        instance = mapper._context.model(**mapper.map_node(node))
        instance._bind_loader(self._context.loader)
        assign_inverse(instance, config, parent)
        for name, records in mapper.extract_connections(node, instance).items():
            instance._cache_connection(name, records)
        return instance

