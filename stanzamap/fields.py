"""Stock field converters.

Each factory returns a ``FieldDefinition`` pairing an importer
``(xml, context) -> value | None`` with an exporter
``(xml, value, context) -> None``. Importers return ``None`` for absent data
so the field is left out of the imported record.
"""
from __future__ import annotations

from typing import Any

from stanzamap.config import DEFAULT_SANITIZER_KEY
from stanzamap.core.context import TranslationContext
from stanzamap.models.definition import FieldDefinition
from stanzamap.models.element import XMLElement, create_element

_TRUE_VALUES = frozenset({"true", "1"})


def attribute(name: str, default: str | None = None, **orders: int) -> FieldDefinition:
    """String attribute on the element itself."""

    def importer(xml: XMLElement, context: TranslationContext) -> str | None:
        return xml.get_attribute(name, default)

    def exporter(xml: XMLElement, value: Any, context: TranslationContext) -> None:
        if value != default:
            xml.set_attribute(name, value)

    return FieldDefinition(importer=importer, exporter=exporter, **orders)


def integer_attribute(name: str, default: int | None = None, **orders: int) -> FieldDefinition:
    def importer(xml: XMLElement, context: TranslationContext) -> int | None:
        raw = xml.get_attribute(name)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            return default

    def exporter(xml: XMLElement, value: Any, context: TranslationContext) -> None:
        if value != default:
            xml.set_attribute(name, int(value))

    return FieldDefinition(importer=importer, exporter=exporter, **orders)


def boolean_attribute(name: str, **orders: int) -> FieldDefinition:
    def importer(xml: XMLElement, context: TranslationContext) -> bool | None:
        raw = xml.get_attribute(name)
        if raw is None:
            return None
        return raw.lower() in _TRUE_VALUES

    def exporter(xml: XMLElement, value: Any, context: TranslationContext) -> None:
        xml.set_attribute(name, "true" if value else None)

    return FieldDefinition(importer=importer, exporter=exporter, **orders)


def language_attribute(**orders: int) -> FieldDefinition:
    """``xml:lang``, reported only when it differs from the inherited language."""

    def importer(xml: XMLElement, context: TranslationContext) -> str | None:
        lang = xml.get_attribute("xml:lang")
        return lang.lower() if lang else None

    def exporter(xml: XMLElement, value: Any, context: TranslationContext) -> None:
        xml.set_attribute("xml:lang", value)

    return FieldDefinition(importer=importer, exporter=exporter, **orders)


def text(default: str | None = None, **orders: int) -> FieldDefinition:
    """Direct text content of the element."""

    def importer(xml: XMLElement, context: TranslationContext) -> str | None:
        return xml.get_text() or default

    def exporter(xml: XMLElement, value: Any, context: TranslationContext) -> None:
        if value != default:
            xml.set_text(str(value))

    return FieldDefinition(importer=importer, exporter=exporter, **orders)


def child_text(
    namespace: str | None, element: str, default: str | None = None, **orders: int
) -> FieldDefinition:
    """Text of a child element; ``namespace=None`` means the parent's namespace."""

    def importer(xml: XMLElement, context: TranslationContext) -> str | None:
        child = xml.get_child(element, namespace or xml.get_namespace())
        if child is None:
            return default
        return child.get_text()

    def exporter(xml: XMLElement, value: Any, context: TranslationContext) -> None:
        if value is None or value == default:
            return
        child = create_element(namespace or context.namespace, element, context.namespace)
        child.set_text(str(value))
        xml.append_child(child)

    return FieldDefinition(importer=importer, exporter=exporter, **orders)


def child_boolean(namespace: str | None, element: str, **orders: int) -> FieldDefinition:
    """Presence of an empty flag element."""

    def importer(xml: XMLElement, context: TranslationContext) -> bool | None:
        return xml.get_child(element, namespace or xml.get_namespace()) is not None or None

    def exporter(xml: XMLElement, value: Any, context: TranslationContext) -> None:
        if value:
            xml.append_child(create_element(namespace or context.namespace, element, context.namespace))

    return FieldDefinition(importer=importer, exporter=exporter, **orders)


def child_xhtml(
    namespace: str,
    element: str,
    sanitizer: str = DEFAULT_SANITIZER_KEY,
    **orders: int,
) -> FieldDefinition:
    """Embedded markup child, passed through a named sanitizer both ways."""

    def clean(value: XMLElement | None, context: TranslationContext) -> XMLElement | None:
        sanitize = (context.sanitizers or {}).get(sanitizer)
        if sanitize is None:
            return None
        return sanitize(value)

    def importer(xml: XMLElement, context: TranslationContext) -> XMLElement | None:
        child = xml.get_child(element, namespace)
        if child is None:
            return None
        return clean(child, context)

    def exporter(xml: XMLElement, value: Any, context: TranslationContext) -> None:
        if not isinstance(value, XMLElement):
            return
        sanitized = clean(value, context)
        if sanitized is not None:
            xml.append_child(sanitized)

    return FieldDefinition(importer=importer, exporter=exporter, **orders)
