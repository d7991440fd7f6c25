"""XML text codec for ``XMLElement`` trees.

Parsing and serialization go through lxml. The registry never calls these
functions; they exist so callers (and tests) can move between wire text and
the element model.
"""
from __future__ import annotations

from lxml import etree

from stanzamap.config import XML_NAMESPACE
from stanzamap.models.element import XMLElement

_PARSER = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    remove_comments=True,
    remove_pis=True,
)


def parse_xml(content: str | bytes) -> XMLElement:
    """Parse a single XML document into an ``XMLElement`` tree."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    root = etree.fromstring(content, parser=_PARSER)
    return _from_lxml(root, {})


def serialize_xml(element: XMLElement) -> str:
    """Serialize an ``XMLElement`` tree to a unicode string."""
    return etree.tostring(_to_lxml(element, None), encoding="unicode")


def _qualify(name: str, nsmap: dict[str | None, str]) -> str:
    prefix = None
    for candidate, uri in nsmap.items():
        if candidate is not None and name.startswith(f"{{{uri}}}"):
            prefix = candidate
            break
    local = etree.QName(name).localname
    if name.startswith(f"{{{XML_NAMESPACE}}}"):
        return f"xml:{local}"
    return f"{prefix}:{local}" if prefix else local


def _from_lxml(node: etree._Element, inherited: dict[str | None, str]) -> XMLElement:
    qname = etree.QName(node)
    nsmap = dict(node.nsmap)
    attrs: dict[str, str] = {}
    for prefix, uri in nsmap.items():
        if inherited.get(prefix) != uri:
            attrs[f"xmlns:{prefix}" if prefix else "xmlns"] = uri

    name = f"{node.prefix}:{qname.localname}" if node.prefix else qname.localname
    for key, value in node.attrib.items():
        attrs[_qualify(key, nsmap)] = value

    element = XMLElement(name, attrs)
    if node.text:
        element.append_child(node.text)
    for child in node:
        if isinstance(child.tag, str):
            element.append_child(_from_lxml(child, nsmap))
        if child.tail:
            element.append_child(child.tail)
    return element


def _to_lxml(element: XMLElement, parent: etree._Element | None) -> etree._Element:
    nsmap: dict[str | None, str] = {}
    for key, value in element.attrs.items():
        if key == "xmlns":
            if value:
                nsmap[None] = value
        elif key.startswith("xmlns:"):
            nsmap[key.split(":", 1)[1]] = value

    namespace = element.get_namespace()
    tag = f"{{{namespace}}}{element.get_name()}" if namespace else element.get_name()
    if parent is None:
        node = etree.Element(tag, nsmap=nsmap or None)
    else:
        node = etree.SubElement(parent, tag, nsmap=nsmap or None)

    for key, value in element.attrs.items():
        if key == "xmlns" or key.startswith("xmlns:"):
            continue
        if ":" in key:
            prefix, local = key.split(":", 1)
            uri = element.find_namespace_for_prefix(prefix)
            node.set(f"{{{uri}}}{local}" if uri else local, value)
        else:
            node.set(key, value)

    last: etree._Element | None = None
    for child in element.children:
        if isinstance(child, str):
            if last is None:
                node.text = (node.text or "") + child
            else:
                last.tail = (last.tail or "") + child
        else:
            last = _to_lxml(child, node)
    return node
