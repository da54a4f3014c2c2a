from abc import ABC
from dataclasses import dataclass
from typing import Any, ClassVar

from shopgraphql.exceptions import UsageError


@dataclass(frozen=True, kw_only=True, slots=True)
class RangeOpMeta:
    op: str
    symbol: str


class RangeOp(ABC):
    __slots__ = ()

    meta: ClassVar[RangeOpMeta]
    _registry: ClassVar[dict[str, type["RangeOp"]]] = {}

    def __init_subclass__(cls, op: str | None = None, symbol: str | None = None, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        if ABC in cls.__bases__:
            return

        if op is None or symbol is None:
            raise TypeError("Op and symbol must be defined")
        cls.meta = RangeOpMeta(op=op, symbol=symbol)
        RangeOp._registry[op] = cls
        RangeOp._registry[symbol] = cls

    @classmethod
    def for_operator(cls, operator: str) -> type["RangeOp"]:
        try:
            return cls._registry[operator]
        except KeyError:
            raise UsageError(f"Unsupported range operator: {operator}") from None

    @classmethod
    def render(cls, key: str, value: Any) -> str:
        return f"{key}:{cls.meta.symbol}{value}"


class GtOp(RangeOp, op="gt", symbol=">"):
    pass


class GteOp(RangeOp, op="gte", symbol=">="):
    pass


class LtOp(RangeOp, op="lt", symbol="<"):
    pass


class LteOp(RangeOp, op="lte", symbol="<="):
    pass
