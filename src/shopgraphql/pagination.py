from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from shopgraphql.metaobject import MetaobjectRelation
    from shopgraphql.relation import BaseRelation

T = TypeVar("T")


@dataclass(frozen=True, slots=True, kw_only=True)
class PageInfo:
    has_next_page: bool = False
    has_previous_page: bool = False
    start_cursor: str | None = None
    end_cursor: str | None = None

    @classmethod
    def from_response(cls, data: Mapping[str, Any] | None) -> PageInfo:
        data = data or {}
        return cls(
            has_next_page=bool(data.get("hasNextPage")),
            has_previous_page=bool(data.get("hasPreviousPage")),
            start_cursor=data.get("startCursor"),
            end_cursor=data.get("endCursor"),
        )

    @property
    def empty(self) -> bool:
        return self.start_cursor is None and self.end_cursor is None


class PaginatedResult(Sequence[T], Generic[T]):
    """
    Single fetched page of a relation.

    Records are built from the raw response nodes on first access and kept for the lifetime
    of this page.
    """

    def __init__(
        self,
        *,
        page_info: PageInfo,
        relation: BaseRelation[T],
        nodes: Sequence[Any] = (),
        build_record: Callable[[Any], T | None] | None = None,
        records: Sequence[T] | None = None,
    ):
        self.page_info = page_info
        self.relation = relation
        self._nodes = nodes
        self._build_record = build_record
        self._records: list[T] | None = list(records) if records is not None else None

    @property
    def records(self) -> list[T]:
        if self._records is None:
            built = (self._build_record(node) for node in self._nodes) if self._build_record else ()
            self._records = [record for record in built if record is not None]
        return self._records

    def __getitem__(self, index: Any) -> Any:
        return self.records[index]

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[T]:
        return iter(self.records)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} records={len(self)} page_info={self.page_info!r}>"

    @property
    def has_next_page(self) -> bool:
        return self.page_info.has_next_page

    @property
    def has_previous_page(self) -> bool:
        return self.page_info.has_previous_page

    @property
    def start_cursor(self) -> str | None:
        return self.page_info.start_cursor

    @property
    def end_cursor(self) -> str | None:
        return self.page_info.end_cursor

    def next_page(self) -> PaginatedResult[T] | None:
        if not self.has_next_page:
            return None
        return self.relation.fetch_page(after=self.end_cursor)

    def previous_page(self) -> PaginatedResult[T] | None:
        if not self.has_previous_page:
            return None
        return self.relation.fetch_page(before=self.start_cursor)

    def to_list(self) -> list[T]:
        return list(self.records)

    def all_records(self) -> list[T]:
        records = self.to_list()
        current: PaginatedResult[T] | None = self
        while current is not None and current.has_next_page:
            current = current.next_page()
            if current is not None:
                records.extend(current.records)
        return records


class MetaobjectPaginatedResult(PaginatedResult[T]):
    relation: MetaobjectRelation
