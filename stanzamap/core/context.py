"""Per-call translation context threaded through the converter tree."""
from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from stanzamap.core.registry import Registry
    from stanzamap.core.translator import Translator
    from stanzamap.models.element import XMLElement

LanguageResolver = Callable[[list[str], str | None, list[str]], str]
Sanitizer = Callable[..., Any]


@dataclass
class TranslationContext:
    """State visible to field converters during one import or export call.

    The first group of fields is supplied by the caller (or defaulted by the
    registry). The second group is filled in by each converter node as the
    call descends the tree; nodes always hand their children a fresh copy.
    """

    registry: Registry | None = None
    accept_languages: list[str] = field(default_factory=list)
    lang: str | None = None
    resolve_language: LanguageResolver | None = None
    sanitizers: dict[str, Sanitizer] | None = None
    path: str = ""

    data: Any = None
    element: XMLElement | None = None
    namespace: str | None = None
    translator: Translator | None = None

    def derive(self, **changes: Any) -> TranslationContext:
        return replace(self, **changes)


_FIELD_NAMES = frozenset(f.name for f in fields(TranslationContext))


def coerce_context(context: TranslationContext | Mapping[str, Any] | None) -> TranslationContext:
    """Accept a context object, a plain mapping of overrides, or nothing.

    Unknown keys in a mapping are rejected rather than silently dropped.
    """
    if context is None:
        return TranslationContext()
    if isinstance(context, TranslationContext):
        return replace(context)
    unknown = set(context) - _FIELD_NAMES
    if unknown:
        raise TypeError(f"Unknown context fields: {', '.join(sorted(unknown))}")
    return TranslationContext(**dict(context))
