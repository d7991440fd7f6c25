"""Shared test fixtures for stanzamap."""
from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from stanzamap import Registry, XMLElement
from stanzamap.fields import child_text, language_attribute, text

NS_CLIENT = "urn:test:client"
NS_EXT = "urn:test:ext"


class RecordingField:
    """Stub converter pair that records every invocation."""

    def __init__(self, imported: Any = "imported") -> None:
        self.imported = imported
        self.import_calls: list[tuple[XMLElement, Any]] = []
        self.export_calls: list[tuple[XMLElement, Any, Any]] = []

    def importer(self, xml, context):
        self.import_calls.append((xml, context))
        return self.imported

    def exporter(self, xml, value, context):
        self.export_calls.append((xml, value, context))
        xml.set_attribute("recorded", value)

    def definition(self, **orders: int) -> dict[str, Any]:
        return {"importer": self.importer, "exporter": self.exporter, **orders}


def _element(name: str, xmlns: str | None = None, *children: Any, **attrs: str) -> XMLElement:
    attributes = {key.replace("xml_", "xml:", 1): value for key, value in attrs.items()}
    if xmlns:
        attributes["xmlns"] = xmlns
    return XMLElement(name, attributes, list(children))


@pytest.fixture
def make_element() -> Callable[..., XMLElement]:
    """Element builder; keyword ``xml_lang`` becomes the ``xml:lang`` attribute."""
    return _element


@pytest.fixture
def registry() -> Registry:
    return Registry()


@pytest.fixture
def recorder() -> RecordingField:
    return RecordingField()


@pytest.fixture
def recorder_factory() -> Callable[..., RecordingField]:
    return RecordingField


@pytest.fixture
def message_registry(registry: Registry) -> Registry:
    """Registry with a small message schema: message, body, and an extension list."""
    registry.define(
        [
            {
                "namespace": NS_CLIENT,
                "element": "message",
                "path": "message",
                "fields": {
                    "id": {
                        "importer": lambda xml, ctx: xml.get_attribute("id"),
                        "exporter": lambda xml, value, ctx: xml.set_attribute("id", value),
                    },
                    "subject": child_text(None, "subject"),
                    "lang": language_attribute(),
                },
            },
            {
                "namespace": NS_CLIENT,
                "element": "body",
                "path": "message.body",
                "fields": {"text": text(), "lang": language_attribute()},
            },
            {
                "namespace": NS_EXT,
                "element": "ext",
                "aliases": [{"path": "message.extensions", "multiple": True}],
                "fields": {"value": text()},
            },
        ]
    )
    return registry
