"""Declarative mapping between namespaced XML stanzas and data records."""

from stanzamap.core import (
    DefinitionError,
    Registry,
    StanzaMapError,
    TranslationContext,
    Translator,
    UnknownElementError,
    basic_language_resolver,
)
from stanzamap.models import Alias, Definition, FieldDefinition, XMLElement, create_element

__all__ = [
    "Alias",
    "Definition",
    "DefinitionError",
    "FieldDefinition",
    "Registry",
    "StanzaMapError",
    "TranslationContext",
    "Translator",
    "UnknownElementError",
    "XMLElement",
    "basic_language_resolver",
    "create_element",
]
