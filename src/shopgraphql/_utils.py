import re
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from graphql.pyutils import camel_to_snake, snake_to_camel

K = TypeVar("K")
V = TypeVar("V")


class CacheDict(dict[K, V]):
    def __init__(self, default_factory: Callable[[K], V]):
        super().__init__()
        self._default_factory = default_factory

    def __missing__(self, key: K) -> V:
        ret = self[key] = self._default_factory(key)
        return ret


def dig(data: Any, *keys: str) -> Any:
    current = data
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def lower_camel(value: str) -> str:
    if "_" not in value:
        return value[:1].lower() + value[1:]
    return snake_to_camel(value, upper=False)


def underscore(value: str) -> str:
    return camel_to_snake(value)


_SIBILANT_ENDING = re.compile(r"(s|x|z|ch|sh)$")
_CONSONANT_Y_ENDING = re.compile(r"[^aeiou]y$")


def pluralize(value: str) -> str:
    if _CONSONANT_Y_ENDING.search(value):
        return value[:-1] + "ies"
    if _SIBILANT_ENDING.search(value):
        return value + "es"
    return value + "s"


def singularize(value: str) -> str:
    if value.endswith("ies"):
        return value[:-3] + "y"
    if _SIBILANT_ENDING.search(value[:-2]) and value.endswith("es"):
        return value[:-2]
    if value.endswith("s") and not value.endswith("ss"):
        return value[:-1]
    return value


def classify(value: str) -> str:
    return snake_to_camel(singularize(value))


_NON_ALIAS_CHARACTERS = re.compile(r"[^a-zA-Z0-9_]")


def alias_key(value: str) -> str:
    return _NON_ALIAS_CHARACTERS.sub("_", value)
