from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from shopgraphql._builders.search.formatting import bind_parameters, format_conditions

Conditions = Mapping[str, Any] | str | list | tuple


class SearchQuery:
    """
    Shopify search query built from conditions.

    Conditions can be a mapping (values are escaped), a raw string (passed through
    as is), a string with ``?``/``:name`` placeholders followed by binding arguments,
    or a list of the form ``[query, *args]``.
    """

    __slots__ = ("_conditions", "_args")

    def __init__(self, conditions: Conditions | None = None, *args: Any):
        self._conditions = conditions if conditions is not None else {}
        self._args = args

    def __str__(self) -> str:
        match self._conditions:
            case Mapping():
                return format_conditions(self._conditions)
            case str():
                return bind_parameters(self._conditions, *self._args)
            case [str() as query, *binding_args]:
                return bind_parameters(query, *binding_args)
            case _:
                return ""

    def __repr__(self) -> str:
        return f"SearchQuery({str(self)!r})"

    def __bool__(self) -> bool:
        return bool(str(self))
