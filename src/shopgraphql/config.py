from __future__ import annotations

import dataclasses
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from shopgraphql.exceptions import ConfigurationError, UsageError
from shopgraphql.types import ClientFactory, GraphQLClient

DEFAULT_MAX_OBJECTS_PER_PAGINATED_QUERY = 250


@dataclass(frozen=True, kw_only=True)
class Configuration:
    admin_api_client: GraphQLClient | None = None
    customer_account_client_factory: ClientFactory | None = None
    log_queries: bool = False
    max_objects_per_paginated_query: int = DEFAULT_MAX_OBJECTS_PER_PAGINATED_QUERY

    def __post_init__(self) -> None:
        if self.max_objects_per_paginated_query <= 0:
            raise UsageError("max_objects_per_paginated_query should be at least 1")

    def require_admin_api_client(self) -> GraphQLClient:
        if self.admin_api_client is None:
            raise ConfigurationError(
                "Admin API client not configured. Configure it using shopgraphql.config.configure"
            )
        return self.admin_api_client

    def require_customer_account_client(self, token: str | None) -> GraphQLClient:
        if self.customer_account_client_factory is None:
            raise ConfigurationError("Customer Account API client factory not configured")
        return self.customer_account_client_factory(token)

    def clamp_page_size(self, page_size: int) -> int:
        return min(page_size, self.max_objects_per_paginated_query)


_CONFIGURATION = ContextVar("_CONFIGURATION", default=Configuration())


def current() -> Configuration:
    return _CONFIGURATION.get()


def configure(**changes: Any) -> Configuration:
    configuration = dataclasses.replace(current(), **changes)
    _CONFIGURATION.set(configuration)
    return configuration


@contextmanager
def scoped_configuration(
    configuration: Configuration | None = None, **changes: Any
) -> Iterator[Configuration]:
    scoped = dataclasses.replace(configuration or current(), **changes)
    token = _CONFIGURATION.set(scoped)
    try:
        yield scoped
    finally:
        _CONFIGURATION.reset(token)
