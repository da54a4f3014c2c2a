"""
Helpers for Shopify global IDs (``gid://<app>/<Type>/<id>``).
"""
import re
from typing import Any, NamedTuple

_GID_PATTERN = re.compile(r"^gid://(?P<app>[^/\s]+)/(?P<model_name>[^/\s]+)/(?P<model_id>[^/\s]+)$")

DEFAULT_APP = "shopify"


class ParsedGid(NamedTuple):
    app: str
    model_name: str
    model_id: str


def parse_gid(value: Any) -> ParsedGid | None:
    if not isinstance(value, str):
        return None
    match = _GID_PATTERN.match(value)
    if match is None:
        return None
    return ParsedGid(match["app"], match["model_name"], match["model_id"])


def is_valid_gid(value: Any) -> bool:
    return parse_gid(value) is not None


def build_gid(model_name: str, model_id: Any, app: str = DEFAULT_APP) -> str:
    return f"gid://{app}/{model_name}/{model_id}"


def normalize_gid(value: Any, model_name: str) -> str:
    if is_valid_gid(value):
        return value
    return build_gid(model_name, value)
