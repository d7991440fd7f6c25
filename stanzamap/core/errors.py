"""Exception types raised by the registry.

Missing mappings during ``import_``/``export`` are not errors and never raise;
these exist for malformed registration input and for callers that opt in to
strict lookups.
"""
from __future__ import annotations


class StanzaMapError(Exception):
    """Base class for registry errors."""


class DefinitionError(StanzaMapError, TypeError):
    """A ``define`` entry was neither a definition, a mapping, nor a callable."""

    def __init__(self, entry: object) -> None:
        super().__init__(
            f"Cannot define from {type(entry).__name__}: expected Definition, mapping, or callable"
        )
        self.entry = entry


class UnknownElementError(StanzaMapError, LookupError):
    """No converter is registered for a qualified element."""

    def __init__(self, namespace: str, element: str) -> None:
        super().__init__(f"No translator registered for {{{namespace}}}{element}")
        self.namespace = namespace
        self.element = element
