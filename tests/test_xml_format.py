"""Tests for the XML text codec."""
from __future__ import annotations

import pytest
from lxml import etree

from stanzamap.formats import parse_xml, serialize_xml


class TestParseXML:
    def test_parse_namespaces_and_text(self):
        element = parse_xml(
            '<message xmlns="urn:x" id="1" xml:lang="en"><body>Hi <b>there</b>!</body></message>'
        )
        assert element.get_name() == "message"
        assert element.get_namespace() == "urn:x"
        assert element.get_attribute("id") == "1"
        assert element.get_attribute("xml:lang") == "en"
        body = element.get_child("body", "urn:x")
        assert body.children[0] == "Hi "
        assert body.get_child("b").get_text() == "there"
        assert body.children[-1] == "!"

    def test_nested_namespace_declared_once(self):
        element = parse_xml('<a xmlns="urn:a"><b xmlns="urn:b"><c/></b></a>')
        b = element.get_child("b")
        assert b.attrs == {"xmlns": "urn:b"}
        assert b.get_child("c").attrs == {}
        assert b.get_child("c").get_namespace() == "urn:b"

    def test_prefixed_element(self):
        element = parse_xml('<s:item xmlns:s="urn:s"/>')
        assert element.name == "s:item"
        assert element.get_namespace() == "urn:s"

    def test_invalid_xml_raises(self):
        with pytest.raises(etree.XMLSyntaxError):
            parse_xml("<unclosed>")


class TestSerializeXML:
    def test_serialize_parsed_document(self):
        text = '<message xmlns="urn:x" id="1"><body xml:lang="de">Hallo</body></message>'
        reparsed = parse_xml(serialize_xml(parse_xml(text)))
        assert reparsed.get_namespace() == "urn:x"
        assert reparsed.get_attribute("id") == "1"
        assert reparsed.get_child("body").get_attribute("xml:lang") == "de"
        assert reparsed.get_child_text("body") == "Hallo"

    def test_serialize_child_namespace(self):
        output = serialize_xml(parse_xml('<a xmlns="urn:a"><b xmlns="urn:b"/></a>'))
        assert 'xmlns="urn:b"' in output
        assert output.startswith('<a xmlns="urn:a">')
