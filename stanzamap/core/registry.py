"""Registry of converters between markup elements and data records.

Converters are indexed two ways: by qualified element identity
(``{namespace}element``) for ``import_``, and by dotted path (``message.body``)
for ``export``. Definitions register themselves with ``define``; aliases wire
one converter into several tree positions.

Lookups that find nothing are not errors: ``import_`` of an unknown element
and ``export`` to an unknown path both return ``None``.
"""
from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any, Union

from stanzamap.config import DEFAULT_SANITIZER_KEY, RegistryConfig
from stanzamap.core.context import LanguageResolver, TranslationContext, coerce_context
from stanzamap.core.errors import DefinitionError, UnknownElementError
from stanzamap.core.language import basic_language_resolver
from stanzamap.core.translator import DefinitionRecord, Translator, join_path
from stanzamap.models.definition import Definition, qualified_id
from stanzamap.models.element import XMLElement
from stanzamap.sanitizers import sanitize_xhtmlim

logger = logging.getLogger(__name__)

DefinitionInput = Union[Definition, Mapping[str, Any], Callable[..., Any]]
ContextInput = Union[TranslationContext, Mapping[str, Any], None]


def split_path(path: str | Iterable[str]) -> list[str]:
    """Split a dotted path, dropping empty segments."""
    if isinstance(path, str):
        path = path.split(RegistryConfig.PATH_SEPARATOR)
    return [key for key in path if key]


class Registry:
    """Owns the identity index and the path tree of converters."""

    def __init__(self) -> None:
        self._translators: dict[str, Translator] = {}
        self.root = Translator()
        self.language_resolver: LanguageResolver = basic_language_resolver

    def reset(self) -> None:
        """Drop every registered converter."""
        self._translators = {}
        self.root = Translator()

    def set_language_resolver(self, resolver: LanguageResolver) -> None:
        self.language_resolver = resolver

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------
    def import_(self, xml: XMLElement, context: ContextInput = None) -> dict[str, Any] | None:
        """Convert a markup element into a data record.

        Returns ``None`` when no converter is registered for the element.
        """
        namespace, element = xml.get_namespace(), xml.get_name()
        if not self.has_translator(namespace, element):
            logger.debug("No translator for %s", qualified_id(namespace, element))
            return None

        ctx = self._prepare_context(context).derive(path=self.get_import_key(xml) or "")
        translator = self.get_or_create_translator(namespace, element)
        return translator.import_(xml, ctx.derive(registry=self))

    def export(self, path: str, data: Any, context: ContextInput = None) -> XMLElement | None:
        """Convert a data record into markup using the converter at ``path``.

        Returns ``None`` when no converter is reachable at ``path``.
        """
        ctx = self._prepare_context(context).derive(path=path)
        translator = self.walk_to_translator(split_path(path))
        if translator is None:
            logger.debug("No translator at path %r", path)
            return None
        return translator.export(data, ctx.derive(registry=self))

    def get_import_key(self, xml: XMLElement, path: str = "") -> str | None:
        """Dotted path under which ``xml`` is imported.

        Without ``path`` the whole tree is searched breadth-first, so the
        shallowest position wins and the full dotted path is returned. With
        ``path`` the result is the field name of ``xml`` relative to the node
        at that path.
        """
        if path:
            start = self.walk_to_translator(split_path(path))
            if start is None:
                return None
            return start.get_import_key(xml)

        xid = qualified_id(xml.get_namespace(), xml.get_name())
        queue: deque[tuple[Translator, str]] = deque([(self.root, "")])
        visited = {id(self.root)}
        while queue:
            node, prefix = queue.popleft()
            name = node.children_index.get(xid)
            if name is not None and name in node.children:
                return join_path(prefix, name)
            for child_name, edge in node.children.items():
                if id(edge.translator) not in visited:
                    visited.add(id(edge.translator))
                    queue.append((edge.translator, join_path(prefix, child_name)))
        return None

    def _prepare_context(self, context: ContextInput) -> TranslationContext:
        ctx = coerce_context(context)
        return ctx.derive(
            accept_languages=[lang.lower() for lang in ctx.accept_languages or []],
            lang=ctx.lang.lower() if ctx.lang else None,
            resolve_language=ctx.resolve_language or self.language_resolver,
            sanitizers={DEFAULT_SANITIZER_KEY: sanitize_xhtmlim, **(ctx.sanitizers or {})},
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def define(self, defs: DefinitionInput | Sequence[DefinitionInput]) -> None:
        """Register one definition, or a list mixing definitions and setup functions.

        Setup functions are called immediately with the registry.
        """
        if isinstance(defs, (list, tuple)):
            for entry in defs:
                self.define(entry)
            return
        if isinstance(defs, Definition):
            self._define(defs)
        elif isinstance(defs, Mapping):
            self._define(Definition.model_validate(defs))
        elif callable(defs):
            defs(self)
        else:
            raise DefinitionError(defs)

    def _define(self, definition: Definition) -> None:
        namespace, element = definition.namespace, definition.element
        aliases = definition.normalized_aliases()

        translator: Translator | None = None
        if self.has_translator(namespace, element):
            translator = self.get_or_create_translator(namespace, element)

        if translator is None:
            placeholder: Translator | None = None
            for alias in aliases:
                found = self.walk_to_translator(alias.segments())
                if found is None:
                    continue
                if not found.placeholder:
                    translator = found
                    break
                placeholder = found
            if translator is None and placeholder is not None:
                logger.debug("Promoting placeholder for %s", definition.qualified_id)
                placeholder.placeholder = False
                translator = placeholder

        if translator is None:
            translator = Translator()
        self.index_translator(namespace, element, translator)

        if definition.type_field:
            translator.type_field = definition.type_field
        if definition.default_type:
            translator.default_type = definition.default_type
        if definition.version_field:
            translator.version_field = definition.version_field
        if definition.default_version:
            translator.default_version = definition.default_version
        if definition.language_field:
            translator.language_field = definition.language_field

        translator.update_definition(self._build_record(definition))

        for alias in aliases:
            self.alias(
                namespace,
                element,
                alias.path,
                alias.multiple,
                alias.selector,
                alias.context_field,
                definition.type,
                alias.implied_type,
            )

        for alias in aliases:
            existing = self.walk_to_translator(alias.segments())
            if existing is not None and existing is not translator:
                self._replace_translator(existing, translator)

        logger.debug(
            "Defined %s at %s",
            definition.qualified_id,
            ", ".join(alias.path for alias in aliases) or "<no path>",
        )

    @staticmethod
    def _build_record(definition: Definition) -> DefinitionRecord:
        record = DefinitionRecord(
            namespace=definition.namespace,
            element=definition.element,
            type=definition.type,
            version=definition.version,
            type_order=definition.type_order,
            optional_namespaces=dict(definition.optional_namespaces),
        )
        for name, field_def in definition.fields.items():
            record.importers[name] = field_def.importer
            record.importer_ordering[name] = field_def.resolved_import_order()
            record.exporters[name] = field_def.exporter
            record.exporter_ordering[name] = field_def.resolved_export_order()
        for name, order in definition.children_export_order.items():
            record.exporter_ordering[name] = order or 0
        return record

    def alias(
        self,
        namespace: str,
        element: str,
        path: str,
        multiple: bool = False,
        selector: str | None = None,
        context_field: str | None = None,
        context_type: str | None = None,
        implied_type: bool = False,
    ) -> None:
        """Make the converter for ``{namespace}element`` reachable at ``path``.

        Intermediate segments are created as placeholders. A node already at
        ``path`` is folded into the linked converter.
        """
        linked = self.get_or_create_translator(namespace, element)
        linked.placeholder = False

        keys = split_path(path)
        if not keys:
            raise ValueError(f"Alias path for {qualified_id(namespace, element)} is empty")
        final_key = keys.pop()
        parent = self.walk_to_translator(keys, vivify=True)
        xid = qualified_id(namespace, element)

        if context_type and (context_field or implied_type):
            linked.add_context(path, selector, context_field, xid, context_type, implied_type)

        current = parent.get_child(final_key)
        if current is not None and current.translator is not linked:
            self._replace_translator(current.translator, linked)
        parent.add_child(final_key, linked, multiple, selector, xid)

    # ------------------------------------------------------------------
    # Tree and index access
    # ------------------------------------------------------------------
    def walk_to_translator(
        self, path: str | Iterable[str], vivify: bool = False
    ) -> Translator | None:
        """Follow child edges from the root.

        A missing edge ends the walk with ``None`` unless ``vivify`` is set,
        in which case a placeholder is attached and the walk continues.
        """
        translator = self.root
        for key in split_path(path):
            edge = translator.get_child(key)
            if edge is None:
                if not vivify:
                    return None
                edge = translator.add_child(key, Translator(placeholder=True))
            translator = edge.translator
        return translator

    def has_translator(self, namespace: str, element: str) -> bool:
        return qualified_id(namespace, element) in self._translators

    def get_translator(self, namespace: str, element: str) -> Translator | None:
        return self._translators.get(qualified_id(namespace, element))

    def require_translator(self, namespace: str, element: str) -> Translator:
        """Like ``get_translator`` but raise ``UnknownElementError`` on a miss."""
        translator = self.get_translator(namespace, element)
        if translator is None:
            raise UnknownElementError(namespace, element)
        return translator

    def get_or_create_translator(self, namespace: str, element: str) -> Translator:
        translator = self.get_translator(namespace, element)
        if translator is None:
            translator = Translator()
            self.index_translator(namespace, element, translator)
        return translator

    def index_translator(self, namespace: str, element: str, translator: Translator) -> None:
        self._translators[qualified_id(namespace, element)] = translator

    def iter_translators(self) -> Iterator[Translator]:
        """Every distinct translator reachable from the root or the index."""
        seen: set[int] = set()
        stack: list[Translator] = [self.root, *self._translators.values()]
        while stack:
            translator = stack.pop()
            if id(translator) in seen:
                continue
            seen.add(id(translator))
            yield translator
            stack.extend(edge.translator for edge in translator.children.values())

    def _replace_translator(self, old: Translator, new: Translator) -> None:
        """Fold ``old`` into ``new`` and point every reference at ``new``."""
        if old is new:
            return
        logger.debug("Replacing %r with %r", old, new)
        old.replace_with(new)
        for xid, translator in self._translators.items():
            if translator is old:
                self._translators[xid] = new
        for translator in list(self.iter_translators()):
            for edge in translator.children.values():
                if edge.translator is old:
                    edge.translator = new
