from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from functools import cached_property
from typing import TYPE_CHECKING, Any, TypeVar

from shopgraphql import config as _config
from shopgraphql._ast import collection_query_name
from shopgraphql._builders.query import (
    build_connection_query,
    build_current_customer_query,
    build_metafield_reference_query,
    build_paginated_collection_query,
    build_single_record_query,
)
from shopgraphql._context import Include, LoaderContext
from shopgraphql._mapper import ResponseMapper, assign_inverse, build_metaobject
from shopgraphql._utils import dig, lower_camel
from shopgraphql.config import Configuration
from shopgraphql.connections import ConnectionConfig
from shopgraphql.exceptions import QueryError
from shopgraphql.gid import normalize_gid
from shopgraphql.pagination import PageInfo, PaginatedResult
from shopgraphql.search import SearchQuery
from shopgraphql.types import GraphQLClient, JsonMap

if TYPE_CHECKING:
    from shopgraphql.metaobject import Metaobject
    from shopgraphql.model import Model
    from shopgraphql.relation import Relation

logger = logging.getLogger(__name__)

L = TypeVar("L", bound="Loader")


def pagination_variables(
    per_page: int, after: str | None = None, before: str | None = None
) -> dict[str, Any]:
    if before is not None:
        return {"last": per_page, "before": before}
    return {"first": per_page, "after": after}


def search_variable(conditions: Any) -> str | None:
    if not conditions:
        return None
    return str(SearchQuery(conditions)) or None


def check_response(response: JsonMap) -> JsonMap:
    errors = response.get("errors")
    if errors:
        messages = ", ".join(str(error.get("message", error)) for error in errors)
        raise QueryError(f"GraphQL query failed: {messages}", errors)

    search = dig(response, "extensions", "search") or ()
    warnings = [warning for entry in search for warning in entry.get("warnings") or ()]
    if warnings:
        messages = ", ".join(f"{w.get('field')}: {w.get('message')}" for w in warnings)
        raise QueryError(f"Shopify query validation failed: {messages}", warnings)
    return response


class Executor(ABC):
    """
    Runs rendered queries against a GraphQL client.
    """

    def __init__(self, *, configuration: Configuration | None = None):
        self.configuration = configuration or _config.current()

    @abstractmethod
    def perform_graphql_query(self, query: str, variables: Mapping[str, Any]) -> JsonMap:
        raise NotImplementedError()

    def execute(self, query: str, variables: Mapping[str, Any] | None = None) -> JsonMap:
        variables = dict(variables or {})
        if self.configuration.log_queries:
            logger.info("%s query:\n%s", type(self).__name__, query)
            logger.info("%s variables: %s", type(self).__name__, variables)
        return check_response(self.perform_graphql_query(query, variables))


class Loader(Executor, ABC):
    def __init__(
        self,
        model: type[Model],
        *,
        configuration: Configuration | None = None,
        selected_attributes: Sequence[str] | None = None,
        included_connections: Sequence[Include] = (),
    ):
        super().__init__(configuration=configuration)
        self.model = model
        self.selected_attributes = selected_attributes
        self.included_connections = tuple(included_connections)

    def _options(self) -> dict[str, Any]:
        return {}

    def derive(
        self: L,
        model: type[Model] | None = None,
        *,
        selected_attributes: Sequence[str] | None = None,
        included_connections: Sequence[Include] = (),
    ) -> L:
        return type(self)(
            model or self.model,
            configuration=self.configuration,
            selected_attributes=selected_attributes,
            included_connections=included_connections,
            **self._options(),
        )

    @cached_property
    def context(self) -> LoaderContext:
        return LoaderContext.build(
            self.model,
            self,
            selected_attributes=self.selected_attributes,
            included_connections=self.included_connections,
        )

    @property
    def graphql_type(self) -> str:
        return self.context.graphql_type

    @property
    def loads_current_record(self) -> bool:
        return False

    def graphql_query(self) -> str:
        return build_single_record_query(self.context)

    def load_response(self, id: str | None) -> JsonMap | None:
        response = self.execute(self.graphql_query(), {"id": id})
        if dig(response, "data", self.context.query_name) is None:
            return None
        return response

    def load_attributes(self, id: str | None = None) -> dict[str, Any] | None:
        response = self.load_response(id)
        if response is None:
            return None
        return ResponseMapper(self.context).map_response(response)

    def load_record(self, id: str | None = None) -> Model | None:
        response = self.load_response(id)
        if response is None:
            return None
        return ResponseMapper(self.context).build_instance(
            dig(response, "data", self.context.query_name)
        )

    def load_paginated_collection(
        self,
        *,
        conditions: Any,
        per_page: int,
        relation: Relation,
        after: str | None = None,
        before: str | None = None,
    ) -> PaginatedResult[Model]:
        variables = {
            **pagination_variables(per_page, after, before),
            "query": search_variable(conditions),
        }
        query = build_paginated_collection_query(self.context, variables=variables)
        response = self.execute(query)

        connection = dig(response, "data", collection_query_name(self.context.graphql_type)) or {}
        logger.debug(
            "Fetched %s page of %s records",
            self.context.graphql_type,
            len(connection.get("nodes") or ()),
        )
        return PaginatedResult(
            page_info=PageInfo.from_response(connection.get("pageInfo")),
            relation=relation,
            nodes=connection.get("nodes") or (),
            build_record=ResponseMapper(self.context).build_instance,
        )

    def load_connection_records(
        self,
        query_name: str,
        variables: Mapping[str, Any],
        parent: Model | None = None,
        config: ConnectionConfig | None = None,
    ) -> Model | list[Model] | None:
        """
        Loads the records of a connection, either through the parent record or through a root
        field when there is no parent.
        """
        singular = config is not None and config.is_singular
        mapper = ResponseMapper(self.context)

        if parent is not None and (config is None or config.nested):
            parent_type = type(parent).graphql_type_for_loader(type(self))
            query = build_connection_query(
                self.context,
                query_name=query_name,
                variables=variables,
                parent_query=f"{lower_camel(parent_type)}(id: $id)",
                singular=singular,
            )
            response = self.execute(query, {"id": normalize_gid(parent.id, parent_type)})
            return mapper.map_nested_connection_response(response, query_name, parent, config)

        query = build_connection_query(
            self.context, query_name=query_name, variables=variables, singular=singular
        )
        return mapper.map_connection_response(self.execute(query), query_name, config)

    def load_metaobject_reference(self, parent: Model, config: ConnectionConfig) -> Metaobject | None:
        parent_type = type(parent).graphql_type_for_loader(type(self))
        parent_query_name = lower_camel(parent_type)
        query = build_metafield_reference_query(parent_query_name, config)
        response = self.execute(query, {"id": normalize_gid(parent.id, parent_type)})
        record = build_metaobject(
            dig(response, "data", parent_query_name, config.name, "reference"), config.target_class
        )
        return assign_inverse(record, config, parent)


class AdminApiLoader(Loader):
    @cached_property
    def client(self) -> GraphQLClient:
        return self.configuration.require_admin_api_client()

    def perform_graphql_query(self, query: str, variables: Mapping[str, Any]) -> JsonMap:
        return self.client.execute(query, variables)


class CustomerAccountApiLoader(Loader):
    def __init__(
        self,
        model: type[Model],
        token: str | None = None,
        *,
        configuration: Configuration | None = None,
        selected_attributes: Sequence[str] | None = None,
        included_connections: Sequence[Include] = (),
    ):
        super().__init__(
            model,
            configuration=configuration,
            selected_attributes=selected_attributes,
            included_connections=included_connections,
        )
        self.token = token

    def _options(self) -> dict[str, Any]:
        return {"token": self.token}

    @cached_property
    def client(self) -> GraphQLClient:
        return self.configuration.require_customer_account_client(self.token)

    @property
    def loads_current_record(self) -> bool:
        return self.graphql_type == "Customer"

    def graphql_query(self) -> str:
        if self.loads_current_record:
            return build_current_customer_query(self.context)
        return super().graphql_query()

    def load_response(self, id: str | None) -> JsonMap | None:
        if not self.loads_current_record:
            return super().load_response(id)
        response = self.execute(self.graphql_query(), {})
        if dig(response, "data", self.context.query_name) is None:
            return None
        return response

    def perform_graphql_query(self, query: str, variables: Mapping[str, Any]) -> JsonMap:
        return self.client.execute(query, variables)
