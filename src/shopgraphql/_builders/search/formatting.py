"""
Rendering of structured conditions into Shopify search syntax.

Values are single-quoted and escaped so that the produced string can only
ever express the conditions it was given. The result is later embedded as a
GraphQL string literal, so no GraphQL level escaping happens here.
"""
from collections.abc import Mapping, Sequence
from typing import Any

from shopgraphql._builders.search.operators import RangeOp


def sanitize(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _is_bare(value: Any) -> bool:
    return isinstance(value, (bool, int, float))


def _bare(value: bool | int | float) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _format_single(key: str, value: Any) -> str:
    if value is None:
        return f"{key}:"
    if isinstance(value, str):
        return f"{key}:'{sanitize(value)}'"
    if _is_bare(value):
        return f"{key}:{_bare(value)}"
    return f"{key}:{value}"


def _format_condition(key: str, value: Any) -> str:
    match value:
        case Mapping():
            return " ".join(
                RangeOp.for_operator(str(operator)).render(key, range_value)
                for operator, range_value in value.items()
            )
        case str():
            return _format_single(key, value)
        case Sequence():
            if not value:
                return ""
            if len(value) == 1:
                return _format_condition(key, value[0])
            return "(" + " OR ".join(_format_single(key, item) for item in value) + ")"
        case _:
            return _format_single(key, value)


def format_conditions(conditions: Mapping[str, Any]) -> str:
    parts = (_format_condition(str(key), value) for key, value in conditions.items())
    return " AND ".join(part for part in parts if part)


def format_parameter(value: Any) -> str:
    if value is None:
        return "null"
    if _is_bare(value):
        return _bare(value)
    return f"'{sanitize(str(value))}'"


def bind_parameters(query: str, *args: Any) -> str:
    if not args:
        return query

    if isinstance(args[0], Mapping):
        for name, value in args[0].items():
            query = query.replace(f":{name}", format_parameter(value))
        return query

    for value in args:
        query = query.replace("?", format_parameter(value), 1)
    return query
