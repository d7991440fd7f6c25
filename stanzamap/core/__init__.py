"""Registry core: converter nodes, context, and dispatch."""

from stanzamap.core.context import TranslationContext
from stanzamap.core.errors import DefinitionError, StanzaMapError, UnknownElementError
from stanzamap.core.language import basic_language_resolver
from stanzamap.core.registry import Registry
from stanzamap.core.translator import ChildEdge, Translator

__all__ = [
    "ChildEdge",
    "DefinitionError",
    "Registry",
    "StanzaMapError",
    "TranslationContext",
    "Translator",
    "UnknownElementError",
    "basic_language_resolver",
]
