"""Declarative definition records consumed by ``Registry.define``.

A definition binds one qualified element ``{namespace}element`` to a set of
field converters and to one or more dotted paths in the registry tree.
"""
from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from stanzamap.config import RegistryConfig

FieldImporter = Callable[..., Any]
FieldExporter = Callable[..., None]


class FieldDefinition(BaseModel):
    """Converter pair for a single data field.

    Either side may be missing: an import-only field is never emitted and an
    export-only field is never read back.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    importer: FieldImporter | None = None
    exporter: FieldExporter | None = None
    import_order: int | None = None
    export_order: int | None = None
    order: int | None = None

    def resolved_import_order(self) -> int:
        return _first_set(self.import_order, self.order)

    def resolved_export_order(self) -> int:
        return _first_set(self.export_order, self.order)


class Alias(BaseModel):
    """Additional dotted path at which a definition is reachable."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str = Field(min_length=1)
    multiple: bool = False
    selector: str | None = None
    context_field: str | None = None
    implied_type: bool = False

    @property
    def depth(self) -> int:
        return len(self.path.split(RegistryConfig.PATH_SEPARATOR))

    def segments(self) -> list[str]:
        return [key for key in self.path.split(RegistryConfig.PATH_SEPARATOR) if key]


class Definition(BaseModel):
    """Binding of a qualified element to field converters and tree paths."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    namespace: str
    element: str
    path: str | None = None
    aliases: list[str | Alias] = Field(default_factory=list)
    fields: dict[str, FieldDefinition] = Field(default_factory=dict)
    children_export_order: dict[str, int | None] = Field(default_factory=dict)
    optional_namespaces: dict[str, str] = Field(default_factory=dict)
    type_field: str | None = None
    default_type: str | None = None
    version_field: str | None = None
    default_version: str | None = None
    language_field: str | None = None
    type: str | None = None
    version: str | None = None
    type_order: int | None = None

    @property
    def qualified_id(self) -> str:
        return qualified_id(self.namespace, self.element)

    def normalized_aliases(self) -> list[Alias]:
        """Return aliases with ``path`` included, deepest paths first.

        Bare string aliases become ``Alias`` records. The sort is stable, so
        aliases of equal depth keep their declaration order.
        """
        raw: list[str | Alias] = list(self.aliases)
        declared = {a if isinstance(a, str) else a.path for a in raw}
        if self.path and self.path not in declared:
            raw.append(self.path)

        aliases = [Alias(path=a) if isinstance(a, str) else a for a in raw]
        return sorted(aliases, key=lambda a: a.depth, reverse=True)


def qualified_id(namespace: str | None, element: str) -> str:
    """Build the ``{namespace}element`` key used by every index."""
    return f"{{{namespace or ''}}}{element}"


def _first_set(*values: int | None) -> int:
    for value in values:
        if value is not None:
            return value
    return 0
