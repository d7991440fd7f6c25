"""Centralized configuration constants for stanzamap.

Values that operators may want to tune are read from the environment;
everything else is a plain constant grouped by the component that uses it.
"""

from __future__ import annotations

import os

# Namespace bound to the reserved ``xml:`` prefix
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

# Key under which the built-in XHTML-IM sanitizer is always available
DEFAULT_SANITIZER_KEY = "xhtmlim"

# URI schemes permitted in sanitized href/src attributes
_schemes_env = os.environ.get("STANZAMAP_XHTMLIM_SCHEMES", "")
if _schemes_env:
    XHTMLIM_ALLOWED_SCHEMES: tuple[str, ...] = tuple(
        scheme.strip().lower() for scheme in _schemes_env.split(",") if scheme.strip()
    )
else:
    XHTMLIM_ALLOWED_SCHEMES = ("http", "https", "mailto", "xmpp", "data")


class RegistryConfig:
    """Configuration constants for path handling in the registry."""

    PATH_SEPARATOR = "."


class TranslatorConfig:
    """Configuration constants for converter nodes."""

    DEFAULT_LANGUAGE_FIELD = "lang"
    DEFAULT_ORDER = 0
