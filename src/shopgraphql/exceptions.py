from collections.abc import Sequence
from typing import Any


class ShopifyGraphQLError(Exception):
    """
    Base class for all errors raised by this package
    """


class ConfigurationError(ShopifyGraphQLError):
    """
    Client, loader or model is not configured well enough to perform the query
    """


class NotFoundError(ShopifyGraphQLError):
    """
    Record requested by ID does not exist
    """


class UsageError(ShopifyGraphQLError, ValueError):
    """
    Relation or loader was used in a way that is not supported
    """


class MappingError(ShopifyGraphQLError):
    """
    Response data cannot be mapped to declared attributes
    """

    def __init__(self, message: str, *, attribute: str, path: str | None = None):
        super().__init__(message)
        self.attribute = attribute
        self.path = path


class QueryError(ShopifyGraphQLError):
    """
    Server reported errors for the executed query
    """

    def __init__(self, message: str, errors: Sequence[Any]):
        super().__init__(message)
        self.errors = errors
