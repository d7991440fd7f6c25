"""Minimal namespace-aware markup node.

Converters build and read these trees; the registry itself only ever asks a
node for its qualified identity via ``get_namespace`` and ``get_name``.
Namespaces are resolved lazily through ``xmlns`` declarations on the node and
its ancestors, so a child appended to a parent inherits the parent's default
namespace unless it declares its own.
"""
from __future__ import annotations

from collections.abc import Iterator

from stanzamap.config import XML_NAMESPACE


class XMLElement:
    """An element with attributes and an ordered list of element/text children."""

    def __init__(
        self,
        name: str,
        attrs: dict[str, str] | None = None,
        children: list[XMLElement | str] | None = None,
    ) -> None:
        self.name = name
        self.attrs: dict[str, str] = dict(attrs or {})
        self.children: list[XMLElement | str] = []
        self.parent: XMLElement | None = None
        for child in children or []:
            self.append_child(child)

    def __repr__(self) -> str:
        return f"XMLElement({self.name!r}, xmlns={self.get_namespace()!r})"

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    def get_name(self) -> str:
        """Local name, without any prefix."""
        return self.name.split(":", 1)[1] if ":" in self.name else self.name

    def get_prefix(self) -> str | None:
        return self.name.split(":", 1)[0] if ":" in self.name else None

    def get_namespace(self) -> str:
        """Namespace URI of this element, resolved through its ancestors."""
        return self.find_namespace_for_prefix(self.get_prefix()) or ""

    def get_default_namespace(self) -> str:
        return self.find_namespace_for_prefix(None) or ""

    def find_namespace_for_prefix(self, prefix: str | None) -> str | None:
        if prefix == "xml":
            return XML_NAMESPACE
        key = f"xmlns:{prefix}" if prefix else "xmlns"
        node: XMLElement | None = self
        while node is not None:
            if key in node.attrs:
                return node.attrs[key]
            node = node.parent
        return None

    def matches(self, name: str, namespace: str | None = None) -> bool:
        if self.get_name() != name:
            return False
        return namespace is None or self.get_namespace() == namespace

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------
    def get_attribute(self, name: str, default: str | None = None) -> str | None:
        return self.attrs.get(name, default)

    def set_attribute(self, name: str, value: object | None) -> None:
        """Set an attribute; ``None`` or empty string removes it."""
        if value is None or value == "":
            self.attrs.pop(name, None)
            return
        self.attrs[name] = str(value)

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------
    def append_child(self, child: XMLElement | str) -> XMLElement | str:
        if isinstance(child, XMLElement):
            child.parent = self
        self.children.append(child)
        return child

    def remove_child(self, child: XMLElement) -> None:
        self.children = [c for c in self.children if c is not child]
        child.parent = None

    def iter_elements(self) -> Iterator[XMLElement]:
        for child in self.children:
            if isinstance(child, XMLElement):
                yield child

    def get_child(self, name: str, namespace: str | None = None) -> XMLElement | None:
        for child in self.iter_elements():
            if child.matches(name, namespace):
                return child
        return None

    def get_children(self, name: str, namespace: str | None = None) -> list[XMLElement]:
        return [child for child in self.iter_elements() if child.matches(name, namespace)]

    def get_text(self) -> str:
        """Concatenated direct text content."""
        return "".join(c for c in self.children if isinstance(c, str))

    def set_text(self, text: str | None) -> None:
        self.children = [c for c in self.children if not isinstance(c, str)]
        if text:
            self.children.insert(0, text)

    def get_child_text(self, name: str, namespace: str | None = None) -> str | None:
        child = self.get_child(name, namespace)
        return child.get_text() if child is not None else None


def create_element(
    namespace: str | None,
    name: str,
    parent_namespace: str | None = None,
) -> XMLElement:
    """Create an element, declaring ``xmlns`` only when it differs from the parent's.

    An empty ``namespace`` under a namespaced parent is declared as ``xmlns=""``
    so the element does not inherit the parent's default namespace.
    """
    element = XMLElement(name)
    namespace = namespace or ""
    if namespace != (parent_namespace or ""):
        element.attrs["xmlns"] = namespace
    return element
