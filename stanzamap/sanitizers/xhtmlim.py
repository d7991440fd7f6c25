"""XHTML-IM sanitizer implementing the XEP-0071 recommended profile.

Elements outside the profile are unwrapped (their content is kept), except
for elements whose content is never safe to render, which are dropped whole.
Attributes are filtered per element, ``style`` is reduced to whitelisted CSS
properties, and ``href``/``src`` must use an allowed URI scheme.
"""
from __future__ import annotations

import logging
import re

from stanzamap.config import XHTMLIM_ALLOWED_SCHEMES
from stanzamap.models.element import XMLElement

logger = logging.getLogger(__name__)

XHTML_NAMESPACE = "http://www.w3.org/1999/xhtml"

ALLOWED_ELEMENTS: dict[str, frozenset[str]] = {
    "a": frozenset({"href", "style", "type"}),
    "blockquote": frozenset({"style"}),
    "body": frozenset({"style", "xml:lang"}),
    "br": frozenset(),
    "cite": frozenset({"style"}),
    "em": frozenset(),
    "img": frozenset({"alt", "height", "src", "style", "width"}),
    "li": frozenset({"style"}),
    "ol": frozenset({"style"}),
    "p": frozenset({"style"}),
    "span": frozenset({"style"}),
    "strong": frozenset(),
    "ul": frozenset({"style"}),
}

ALLOWED_STYLES = frozenset(
    {
        "background-color",
        "color",
        "font-family",
        "font-size",
        "font-style",
        "font-weight",
        "margin-left",
        "margin-right",
        "text-align",
        "text-decoration",
    }
)

DROPPED_ELEMENTS = frozenset({"head", "object", "script", "style", "title"})

URI_ATTRIBUTES = frozenset({"href", "src"})

_SCHEME = re.compile(r"^\s*([a-zA-Z][a-zA-Z0-9+.-]*):")


def sanitize_style(style: str) -> str:
    """Keep only whitelisted ``property: value`` declarations."""
    kept: list[str] = []
    for declaration in style.split(";"):
        name, sep, value = declaration.partition(":")
        name = name.strip().lower()
        value = value.strip()
        if not sep or not value or name not in ALLOWED_STYLES:
            continue
        if "url(" in value.lower() or "expression(" in value.lower():
            continue
        kept.append(f"{name}: {value}")
    return "; ".join(kept)


def _allowed_uri(value: str) -> bool:
    match = _SCHEME.match(value)
    if match is None:
        # relative references carry no scheme
        return True
    return match.group(1).lower() in XHTMLIM_ALLOWED_SCHEMES


def _sanitize_attributes(element: XMLElement, allowed: frozenset[str]) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for name, value in element.attrs.items():
        if name == "xmlns":
            attrs[name] = value
            continue
        if name not in allowed:
            continue
        if name == "style":
            value = sanitize_style(value)
            if not value:
                continue
        elif name in URI_ATTRIBUTES and not _allowed_uri(value):
            logger.debug("Dropping %s=%r on <%s>", name, value, element.get_name())
            continue
        attrs[name] = value
    return attrs


def _sanitize_children(element: XMLElement) -> list[XMLElement | str]:
    children: list[XMLElement | str] = []
    for child in element.children:
        if isinstance(child, str):
            children.append(child)
            continue
        name = child.get_name()
        if name in DROPPED_ELEMENTS:
            continue
        if name in ALLOWED_ELEMENTS and child.get_namespace() == XHTML_NAMESPACE:
            children.append(_sanitize_element(child))
        else:
            children.extend(_sanitize_children(child))
    return children


def _sanitize_element(element: XMLElement) -> XMLElement:
    allowed = ALLOWED_ELEMENTS[element.get_name()]
    clean = XMLElement(element.get_name(), _sanitize_attributes(element, allowed))
    for child in _sanitize_children(element):
        clean.append_child(child)
    return clean


def sanitize_xhtmlim(element: XMLElement | None) -> XMLElement | None:
    """Return a sanitized copy of an XHTML-IM element tree.

    The input is not modified. Returns ``None`` when the root itself is not
    part of the profile.
    """
    if element is None:
        return None
    name = element.get_name()
    if name not in ALLOWED_ELEMENTS or element.get_namespace() != XHTML_NAMESPACE:
        return None
    clean = _sanitize_element(element)
    clean.attrs.setdefault("xmlns", XHTML_NAMESPACE)
    return clean
