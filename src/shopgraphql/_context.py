from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from shopgraphql._utils import lower_camel
from shopgraphql.attributes import AttributeConfig
from shopgraphql.connections import ConnectionConfig

if TYPE_CHECKING:
    from shopgraphql.loaders import Loader
    from shopgraphql.model import Model

Include = str | Mapping[str, Any]


@dataclass(frozen=True, slots=True, kw_only=True)
class LoaderContext:
    model: type[Model]
    loader: Loader
    graphql_type: str
    attributes: Mapping[str, AttributeConfig]
    included_connections: Sequence[Include] = ()

    @classmethod
    def build(
        cls,
        model: type[Model],
        loader: Loader,
        *,
        selected_attributes: Sequence[str] | None = None,
        included_connections: Sequence[Include] = (),
    ) -> LoaderContext:
        loader_class = type(loader)
        attributes = model.attributes_for_loader(loader_class)
        if selected_attributes is not None:
            attributes = {
                name: config
                for name, config in attributes.items()
                if name in selected_attributes or name == "id"
            }
        return cls(
            model=model,
            loader=loader,
            graphql_type=model.graphql_type_for_loader(loader_class),
            attributes=attributes,
            included_connections=tuple(included_connections),
        )

    @property
    def query_name(self) -> str:
        return lower_camel(self.graphql_type)

    @property
    def fragment_name(self) -> str:
        return f"{self.graphql_type}Fragment"

    @property
    def connections(self) -> Mapping[str, ConnectionConfig]:
        return self.model.__connections__

    def for_model(
        self, model: type[Model], included_connections: Sequence[Include] = ()
    ) -> LoaderContext:
        return LoaderContext.build(model, self.loader, included_connections=included_connections)
