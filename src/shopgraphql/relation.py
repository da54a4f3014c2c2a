from __future__ import annotations

import dataclasses
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from shopgraphql._builders.query import normalize_includes
from shopgraphql._context import Include
from shopgraphql.config import Configuration
from shopgraphql.exceptions import NotFoundError, UsageError
from shopgraphql.gid import normalize_gid
from shopgraphql.loaders import Loader
from shopgraphql.pagination import PageInfo, PaginatedResult

if TYPE_CHECKING:
    from shopgraphql.model import Model

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 250

T = TypeVar("T")
R = TypeVar("R", bound="BaseRelation")


def build_conditions(conditions: Any, args: Sequence[Any], options: Mapping[str, Any]) -> Any:
    match conditions:
        case str() if args:
            return [conditions, *args]
        case str() if options:
            return [conditions, dict(options)]
        case str():
            return conditions
        case Mapping() if conditions:
            return dict(conditions)
        case [str(), *_]:
            return list(conditions)
        case _:
            return dict(options)


@dataclass(frozen=True, kw_only=True, eq=False, repr=False)
class BaseRelation(ABC, Generic[T]):
    """
    Immutable, chainable description of a paginated query.

    Every chaining method returns a new relation. Only the records materialized by
    :meth:`to_list` are cached on the instance.
    """

    model: type
    conditions: Any = field(default_factory=dict)
    total_limit: int | None = None
    per_page: int = DEFAULT_PER_PAGE
    _records: list[T] | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.per_page <= 0:
            raise UsageError("Page size should be at least 1")
        object.__setattr__(self, "per_page", self.configuration.clamp_page_size(self.per_page))

    @property
    @abstractmethod
    def configuration(self) -> Configuration:
        raise NotImplementedError()

    @abstractmethod
    def _load_page(self, *, after: str | None, before: str | None) -> PaginatedResult[T]:
        raise NotImplementedError()

    @abstractmethod
    def find(self, id: Any = None) -> T:
        raise NotImplementedError()

    def _spawn(self: R, **changes: Any) -> R:
        return dataclasses.replace(self, **changes)

    @property
    def has_conditions(self) -> bool:
        return bool(self.conditions)

    @property
    def effective_per_page(self) -> int:
        if self.total_limit is not None and self.total_limit < self.per_page:
            return self.total_limit
        return self.per_page

    def all(self: R) -> R:
        return self

    def where(self: R, conditions: Any = None, *args: Any, **options: Any) -> R:
        new_conditions = build_conditions(conditions, args, options)
        if not new_conditions:
            return self
        if self.has_conditions:
            raise UsageError(
                "Chaining multiple where clauses is not supported. "
                "Combine conditions in a single where call instead."
            )
        return self._spawn(conditions=new_conditions)

    def find_by(self, conditions: Any = None, **options: Any) -> T | None:
        return self.where(conditions, **options).first()

    def limit(self: R, count: int) -> R:
        return self._spawn(total_limit=count)

    def first(self, count: int | None = None) -> Any:
        if count is not None:
            return self._spawn(
                total_limit=count, per_page=self.configuration.clamp_page_size(max(count, 1))
            ).to_list()
        records = self._spawn(total_limit=1, per_page=1).to_list()
        return records[0] if records else None

    def fetch_page(self, *, after: str | None = None, before: str | None = None) -> PaginatedResult[T]:
        if after is not None and before is not None:
            raise UsageError("Cannot paginate forward and backward at once, pass either after or before")
        return self._load_page(after=after, before=before)

    def each_page(self) -> Iterator[PaginatedResult[T]]:
        if self.total_limit is not None and self.total_limit <= 0:
            return

        page: PaginatedResult[T] | None = self.fetch_page()
        yielded = 0
        while page is not None and len(page) > 0:
            if self.total_limit is not None:
                remaining = self.total_limit - yielded
                if len(page) > remaining:
                    page = type(page)(
                        records=page.records[:remaining], page_info=PageInfo(), relation=self
                    )

            yield page
            yielded += len(page)

            if not page.has_next_page:
                break
            if self.total_limit is not None and yielded >= self.total_limit:
                break
            logger.debug("Fetching next page after %s records", yielded)
            page = page.next_page()

    def in_pages(
        self,
        of: int = DEFAULT_PER_PAGE,
        callback: Callable[[PaginatedResult[T]], Any] | None = None,
    ) -> Any:
        scoped = self._spawn(per_page=self.configuration.clamp_page_size(of))
        if callback is None:
            return scoped.fetch_page()
        for page in scoped.each_page():
            callback(page)
        return self

    def to_list(self) -> list[T]:
        if self._records is None:
            records: list[T] = []
            for page in self.each_page():
                records.extend(page.records)
            object.__setattr__(self, "_records", records)
        assert self._records is not None
        return self._records

    def __iter__(self) -> Iterator[T]:
        for page in self.each_page():
            yield from page

    def __len__(self) -> int:
        return len(self.to_list())

    def __getitem__(self, index: Any) -> Any:
        return self.to_list()[index]

    def count(self) -> int:
        return len(self.to_list())

    def exists(self) -> bool:
        return bool(self.first(1))

    def is_empty(self) -> bool:
        return not self.exists()

    def _describe(self) -> list[str]:
        parts = [self.model.__name__]
        if self.conditions:
            parts.append(f"where({self.conditions!r})")
        if self.total_limit is not None:
            parts.append(f"limit({self.total_limit})")
        return parts

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {'.'.join(self._describe())}>"


@dataclass(frozen=True, kw_only=True, eq=False, repr=False)
class Relation(BaseRelation["Model"]):
    loader: Loader
    included_connections: tuple[Include, ...] = ()
    selected_attributes: tuple[str, ...] | None = None
    _active_loader: Loader | None = field(default=None, init=False, repr=False)

    @property
    def configuration(self) -> Configuration:
        return self.loader.configuration

    @property
    def active_loader(self) -> Loader:
        if self._active_loader is None:
            object.__setattr__(
                self,
                "_active_loader",
                self.loader.derive(
                    self.model,
                    selected_attributes=self.selected_attributes,
                    included_connections=self.included_connections,
                ),
            )
        assert self._active_loader is not None
        return self._active_loader

    def find(self, id: Any = None) -> Model:
        loader = self.active_loader
        if id is None:
            if not loader.loads_current_record:
                raise UsageError(f"Finding {self.model.__name__} requires an id")
            record = loader.load_record()
        else:
            record = loader.load_record(normalize_gid(id, loader.graphql_type))
        if record is None:
            raise NotFoundError(f"Couldn't find {self.model.__name__} with id={id}")
        return record

    def includes(self, *names: Include) -> Relation:
        self._validate_includes(self.model, names)
        eager = [name for name, config in self.model.__connections__.items() if config.eager_load]

        combined: list[Include] = []
        for include in (*self.included_connections, *names, *eager):
            if isinstance(include, str) and include in combined:
                continue
            combined.append(include)
        return self._spawn(included_connections=tuple(combined))

    def select(self, *names: str | Sequence[str]) -> Relation:
        flattened = [
            name for item in names for name in ([item] if isinstance(item, str) else item)
        ]
        available = self.model.attributes_for_loader(type(self.loader))
        invalid = [name for name in flattened if name not in available]
        if invalid:
            raise UsageError(
                f"Invalid attributes for {self.model.__name__}: {', '.join(invalid)}. "
                f"Available attributes are: {', '.join(sorted(available))}"
            )
        return self._spawn(selected_attributes=tuple(flattened))

    def _load_page(self, *, after: str | None, before: str | None) -> PaginatedResult[Model]:
        return self.active_loader.load_paginated_collection(
            conditions=self.conditions,
            per_page=self.effective_per_page,
            after=after,
            before=before,
            relation=self,
        )

    @classmethod
    def _validate_includes(cls, model: type, includes: Sequence[Include]) -> None:
        connections = getattr(model, "__connections__", None)
        if connections is None:
            return
        for name, nested in normalize_includes(includes).items():
            if name not in connections:
                raise UsageError(
                    f"Invalid connection for {model.__name__}: {name}. "
                    f"Available connections: {', '.join(connections)}"
                )
            if nested:
                cls._validate_includes(connections[name].target_class, nested)

    def _describe(self) -> list[str]:
        parts = super()._describe()
        if self.included_connections:
            parts.insert(1, f"includes({', '.join(map(str, self.included_connections))})")
        if self.selected_attributes is not None:
            parts.insert(1, f"select({', '.join(self.selected_attributes)})")
        return parts
