"""Converter nodes: the unit of dispatch in the registry tree.

A ``Translator`` sits in two indices at once. The registry maps qualified
element identities to translators, and translators link to each other by
field name to form the dotted path tree. One translator may import several
qualified elements (one ``ImporterEntry`` per identity) and export several
logical types (one ``ExporterEntry`` per version/type pair).
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from stanzamap.config import RegistryConfig, TranslatorConfig
from stanzamap.core.context import TranslationContext
from stanzamap.models.definition import FieldExporter, FieldImporter, qualified_id
from stanzamap.models.element import XMLElement, create_element

logger = logging.getLogger(__name__)


@dataclass
class ImporterEntry:
    """Field importers for one qualified element."""

    namespace: str
    element: str
    type: str | None = None
    version: str | None = None
    field_importers: dict[str, FieldImporter] = field(default_factory=dict)
    field_orders: dict[str, int] = field(default_factory=dict)


@dataclass
class ExporterEntry:
    """Field exporters for one logical type (and version)."""

    namespace: str
    element: str
    type: str | None = None
    version: str | None = None
    field_exporters: dict[str, FieldExporter] = field(default_factory=dict)
    field_orders: dict[str, int] = field(default_factory=dict)
    optional_namespaces: dict[str, str] = field(default_factory=dict)


@dataclass
class TypeContext:
    """How the logical type of a node is carried at one tree path."""

    type_field: str | None = None
    type_values: dict[str, str] = field(default_factory=dict)  # qualified id -> type
    implied_type: str | None = None
    selector: str | None = None

    def merge(self, other: TypeContext) -> None:
        if other.type_field:
            self.type_field = other.type_field
        if other.implied_type:
            self.implied_type = other.implied_type
        if other.selector and self.selector and other.selector != self.selector:
            self.selector = None
        else:
            self.selector = self.selector or other.selector
        self.type_values.update(other.type_values)


@dataclass
class ChildEdge:
    """Link from a parent field name to a child translator."""

    name: str
    translator: Translator
    multiple: bool = False
    selector: str | None = None
    import_key: str | None = None

    def accepts(self, xid: str) -> bool:
        """Whether an element with this identity may be imported through the edge."""
        if self.selector is None:
            return True
        importer = self.translator.importers.get(xid)
        return importer is not None and importer.type == self.selector


@dataclass
class DefinitionRecord:
    """Assembled definition handed to ``Translator.update_definition``."""

    namespace: str
    element: str
    type: str | None = None
    version: str | None = None
    type_order: int | None = None
    importers: dict[str, FieldImporter | None] = field(default_factory=dict)
    exporters: dict[str, FieldExporter | None] = field(default_factory=dict)
    importer_ordering: dict[str, int] = field(default_factory=dict)
    exporter_ordering: dict[str, int] = field(default_factory=dict)
    optional_namespaces: dict[str, str] = field(default_factory=dict)
    contexts: dict[str, TypeContext] = field(default_factory=dict)


def exporter_key(type_: str | None, version: str | None) -> str:
    return f"{version}-{type_ or ''}" if version else (type_ or "")


def join_path(path: str, name: str) -> str:
    return f"{path}{RegistryConfig.PATH_SEPARATOR}{name}" if path else name


def _ordered(keys: Iterable[str], orders: Mapping[str, int]) -> list[str]:
    # sorted() is stable, so equal keys keep declaration order
    return sorted(keys, key=lambda k: orders.get(k, TranslatorConfig.DEFAULT_ORDER))


class Translator:
    """A node of the converter tree.

    Placeholders carry no importers or exporters; they only keep the tree
    connected until a real definition claims their position.
    """

    def __init__(self, placeholder: bool = False) -> None:
        self.placeholder = placeholder
        self.type_field: str | None = None
        self.default_type: str | None = None
        self.version_field: str | None = None
        self.default_version: str | None = None
        self.language_field: str = TranslatorConfig.DEFAULT_LANGUAGE_FIELD
        self.importers: dict[str, ImporterEntry] = {}
        self.exporters: dict[str, ExporterEntry] = {}
        self.children: dict[str, ChildEdge] = {}
        self.children_index: dict[str, str] = {}
        self.contexts: dict[str, TypeContext] = {}
        self.type_orders: dict[str, int] = {}

    def __repr__(self) -> str:
        kind = "placeholder" if self.placeholder else ",".join(self.importers) or "empty"
        return f"<Translator {kind}>"

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------
    def get_child(self, name: str) -> ChildEdge | None:
        return self.children.get(name)

    def add_child(
        self,
        name: str,
        translator: Translator,
        multiple: bool = False,
        selector: str | None = None,
        import_key: str | None = None,
    ) -> ChildEdge:
        """Attach ``translator`` under ``name``, or update the existing edge.

        An existing edge keeps its target; the registry is responsible for
        replacing a different target. Conflicting selectors on the same edge
        cancel out, leaving the edge unrestricted.
        """
        edge = self.children.get(name)
        if edge is None:
            edge = ChildEdge(name, translator, multiple, selector, import_key)
            self.children[name] = edge
        else:
            edge.multiple = multiple
            if selector and edge.selector and selector != edge.selector:
                edge.selector = None
            if import_key and not edge.import_key:
                edge.import_key = import_key

        if import_key:
            self.children_index[import_key] = name
        return edge

    def add_context(
        self,
        path: str,
        selector: str | None,
        context_field: str | None,
        xid: str,
        value: str,
        implied: bool = False,
    ) -> None:
        context = TypeContext(
            type_field=context_field,
            type_values={xid: value},
            implied_type=value if implied else None,
            selector=selector,
        )
        existing = self.contexts.get(path)
        if existing is None:
            self.contexts[path] = context
        else:
            existing.merge(context)

    def get_import_key(self, xml: XMLElement) -> str | None:
        """Field name under which a child element would be imported."""
        return self.children_index.get(qualified_id(xml.get_namespace(), xml.get_name()))

    def update_definition(self, record: DefinitionRecord) -> None:
        xid = qualified_id(record.namespace, record.element)
        type_ = record.type or self.default_type
        version = record.version or self.default_version

        importer = self.importers.get(xid)
        if importer is None:
            importer = ImporterEntry(record.namespace, record.element, type_, version)
            self.importers[xid] = importer
        else:
            importer.type = record.type or importer.type
            importer.version = record.version or importer.version
        for name, fn in record.importers.items():
            if fn is not None:
                importer.field_importers[name] = fn
                importer.field_orders[name] = record.importer_ordering.get(name, 0)

        key = exporter_key(type_, version)
        exporter = self.exporters.get(key)
        if exporter is None:
            exporter = ExporterEntry(record.namespace, record.element, type_, version)
            self.exporters[key] = exporter
        for name, fn in record.exporters.items():
            if fn is not None:
                exporter.field_exporters[name] = fn
        exporter.field_orders.update(record.exporter_ordering)
        exporter.optional_namespaces.update(record.optional_namespaces)

        if type_ and record.type_order is not None:
            self.type_orders[type_] = record.type_order
        for path, context in record.contexts.items():
            if path in self.contexts:
                self.contexts[path].merge(context)
            else:
                self.contexts[path] = context

    def replace_with(self, replacement: Translator) -> None:
        """Fold this node's state into ``replacement``.

        Entries already present on ``replacement`` win. Redirecting the
        references that point at this node is done by the owning registry,
        which holds the only indices that can reference a translator.
        """
        for name, edge in self.children.items():
            replacement.children.setdefault(name, edge)
        for xid, name in self.children_index.items():
            replacement.children_index.setdefault(xid, name)
        for xid, importer in self.importers.items():
            replacement.importers.setdefault(xid, importer)
        for key, exporter in self.exporters.items():
            replacement.exporters.setdefault(key, exporter)
        for path, context in self.contexts.items():
            if path in replacement.contexts:
                replacement.contexts[path].merge(context)
            else:
                replacement.contexts[path] = context
        for type_, order in self.type_orders.items():
            replacement.type_orders.setdefault(type_, order)
        for attr in ("type_field", "default_type", "version_field", "default_version"):
            if getattr(replacement, attr) is None:
                setattr(replacement, attr, getattr(self, attr))
        if replacement.language_field == TranslatorConfig.DEFAULT_LANGUAGE_FIELD:
            replacement.language_field = self.language_field

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------
    def import_(self, xml: XMLElement, context: TranslationContext) -> dict[str, Any] | None:
        xid = qualified_id(xml.get_namespace(), xml.get_name())
        importer = self.importers.get(xid)
        if importer is None:
            return None

        path = context.path
        output: dict[str, Any] = {}
        lang = (xml.get_attribute("xml:lang") or context.lang or "").lower() or None
        local = context.derive(data=output, element=xml, lang=lang, translator=self)

        for name in _ordered(importer.field_importers, importer.field_orders):
            value = importer.field_importers[name](xml, local.derive(path=join_path(path, name)))
            if value is not None:
                output[name] = value

        claimed = set(output)
        candidates: dict[str, list[tuple[str, Any]]] = {}
        for child in xml.iter_elements():
            child_xid = qualified_id(child.get_namespace(), child.get_name())
            name = self.children_index.get(child_xid)
            if name is None or name in claimed:
                continue
            edge = self.children.get(name)
            if edge is None or not edge.accepts(child_xid):
                continue

            child_output = edge.translator.import_(child, local.derive(path=join_path(path, name)))
            if child_output is None:
                continue
            if edge.multiple:
                output.setdefault(name, []).append(child_output)
            else:
                child_lang = (child.get_attribute("xml:lang") or lang or "").lower()
                candidates.setdefault(name, []).append((child_lang, child_output))

        for name, found in candidates.items():
            output[name] = self._pick_language(found, local)

        self._import_type(output, importer, xid, path)
        return output

    def _pick_language(self, found: list[tuple[str, Any]], context: TranslationContext) -> Any:
        if len(found) == 1 or context.resolve_language is None:
            return found[0][1]
        chosen = context.resolve_language(
            context.accept_languages, context.lang, [lang for lang, _ in found]
        )
        for lang, value in found:
            if lang == chosen:
                return value
        return found[0][1]

    def _import_type(
        self, output: dict[str, Any], importer: ImporterEntry, xid: str, path: str
    ) -> None:
        context = self.contexts.get(path)
        if context is not None and context.implied_type:
            pass
        elif context is not None and context.type_field:
            value = context.type_values.get(xid)
            if value:
                output.setdefault(context.type_field, value)
        elif self.type_field and importer.type:
            output.setdefault(self.type_field, importer.type)

        if self.version_field and importer.version:
            output.setdefault(self.version_field, importer.version)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def export(self, data: Any, context: TranslationContext) -> XMLElement | None:
        if not isinstance(data, Mapping):
            return None

        path = context.path
        export_type = self._export_type(data, self.contexts.get(path))
        export_version = (data.get(self.version_field) if self.version_field else None) or (
            self.default_version
        )
        exporter = self._find_exporter(export_type, export_version)
        if exporter is None:
            logger.debug("No exporter for type %r at %r", export_type, path)
            return None

        element = create_element(exporter.namespace, exporter.element, context.namespace)
        for prefix, uri in exporter.optional_namespaces.items():
            element.attrs.setdefault(f"xmlns:{prefix}", uri)
        inherited_lang = context.lang
        data_lang = data.get(self.language_field)
        local = context.derive(
            data=data,
            element=element,
            namespace=exporter.namespace,
            lang=(data_lang or inherited_lang or "").lower() or None,
            translator=self,
        )

        for key in _ordered(data, exporter.field_orders):
            value = data[key]
            if value is None:
                continue
            if key == self.language_field and inherited_lang and str(value).lower() == inherited_lang:
                continue

            field_context = local.derive(path=join_path(path, key))
            field_exporter = exporter.field_exporters.get(key)
            if field_exporter is not None:
                field_exporter(element, value, field_context)
                continue

            edge = self.children.get(key)
            if edge is None:
                continue
            items = edge.translator.sort_by_type_order(value) if edge.multiple else [value]
            for item in items:
                child = edge.translator.export(item, field_context)
                if child is not None:
                    element.append_child(child)

        return element

    def sort_by_type_order(self, items: Iterable[Any]) -> list[Any]:
        if not self.type_orders or not self.type_field:
            return list(items)

        def order(item: Any) -> int:
            type_ = item.get(self.type_field) if isinstance(item, Mapping) else None
            return self.type_orders.get(type_ or self.default_type or "", 0)

        return sorted(items, key=order)

    def _export_type(self, data: Mapping[str, Any], context: TypeContext | None) -> str | None:
        if context is not None:
            if context.implied_type:
                return context.implied_type
            if context.type_field:
                return data.get(context.type_field) or context.selector or self.default_type
        if self.type_field:
            return data.get(self.type_field) or self.default_type
        return self.default_type

    def _find_exporter(self, type_: str | None, version: str | None) -> ExporterEntry | None:
        for key in (
            exporter_key(type_, version),
            exporter_key(type_, None),
            exporter_key(self.default_type, self.default_version),
        ):
            exporter = self.exporters.get(key)
            if exporter is not None:
                return exporter
        if len(self.exporters) == 1:
            return next(iter(self.exporters.values()))
        return None
