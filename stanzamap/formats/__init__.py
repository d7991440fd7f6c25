"""Text codecs for the element model."""

from stanzamap.formats.xml import parse_xml, serialize_xml

__all__ = ["parse_xml", "serialize_xml"]
