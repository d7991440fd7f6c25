"""Markup sanitizers available to field converters through ``context.sanitizers``."""

from stanzamap.sanitizers.xhtmlim import sanitize_style, sanitize_xhtmlim

__all__ = ["sanitize_style", "sanitize_xhtmlim"]
