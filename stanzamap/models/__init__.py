"""Data models for stanzamap."""

from stanzamap.models.definition import Alias, Definition, FieldDefinition, qualified_id
from stanzamap.models.element import XMLElement, create_element

__all__ = [
    "Alias",
    "Definition",
    "FieldDefinition",
    "XMLElement",
    "create_element",
    "qualified_id",
]
