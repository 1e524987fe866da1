"""Reconcile server highlights with raw document values for display.

For every field of a hit, the first applicable rule wins:

1. The server sent a snippet for the field: show it as-is (it already
   carries ``<mark>`` markers).
2. The value is a list and matched tokens occur (case-insensitively) inside
   some elements: mark exactly those elements, keep all of them in order.
3. A scalar has matched tokens but no snippet: show the tokens, comma-joined.
4. Otherwise show only the raw value.

Image URLs (http or https links ending in a common image extension) are
never highlighted, whether scalar or list element; they are flagged with
``is_image`` so a caller can show the picture instead of text.

When no highlight metadata exists at all (plain document listings),
:func:`highlight_text` marks literal case-insensitive occurrences of the
search text instead.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...constants import HIGHLIGHT_END_TAG, HIGHLIGHT_START_TAG, MATCH_ALL_QUERY
from ..models import Highlight, Hit, IndexSchema, SearchResponse


class HighlightSource(Enum):
    """Which rule produced a field's highlight."""

    SNIPPET = "snippet"
    ARRAY_MATCH = "array_match"
    MATCHED_TOKENS = "matched_tokens"
    TEXT_MATCH = "text_match"
    NONE = "none"


@dataclass(frozen=True)
class HighlightSegment:
    text: str
    matched: bool = False


@dataclass(frozen=True)
class RenderedElement:
    """One element of a list-valued field."""

    value: Any
    matched: bool = False
    is_image: bool = False


@dataclass(frozen=True)
class RenderedField:
    """Render-ready view of one document field."""

    name: str
    value: Any
    display: str
    highlight: Optional[str] = None
    elements: Optional[Tuple[RenderedElement, ...]] = None
    source: HighlightSource = HighlightSource.NONE
    is_image: bool = False

    @property
    def matched_elements(self) -> List[Any]:
        return [element.value for element in self.elements or () if element.matched]


@dataclass(frozen=True)
class RenderedHit:
    """Render-ready view of one hit."""

    document: Dict[str, Any]
    relevance_score: Optional[float]
    fields: Tuple[RenderedField, ...]

    @property
    def document_id(self) -> Optional[str]:
        value = self.document.get("id")
        return None if value is None else str(value)

    def field(self, name: str) -> Optional[RenderedField]:
        for rendered in self.fields:
            if rendered.name == name:
                return rendered
        return None


def display_value(value: Any) -> str:
    """Text shown for a raw value; objects render as JSON."""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def highlight_text(text: str, query: Optional[str]) -> List[HighlightSegment]:
    """Split ``text`` around case-insensitive literal occurrences of ``query``.

    Matching is purely textual (no tokenizing or stemming); non-matching text
    is returned untouched.

    >>> [(s.text, s.matched) for s in highlight_text("Red Jacket", "jack")]
    [('Red ', False), ('Jack', True), ('et', False)]
    """
    if not query or not text or query == MATCH_ALL_QUERY:
        return [HighlightSegment(text)] if text else []

    pattern = re.compile(f"({re.escape(query)})", re.IGNORECASE)
    needle = query.lower()
    return [
        HighlightSegment(part, matched=part.lower() == needle)
        for part in pattern.split(text)
        if part
    ]


def to_markup(
    segments: Sequence[HighlightSegment],
    pre: str = HIGHLIGHT_START_TAG,
    post: str = HIGHLIGHT_END_TAG,
) -> str:
    """Join segments, wrapping matched ones in ``pre``/``post``."""
    return "".join(f"{pre}{s.text}{post}" if s.matched else s.text for s in segments)


_IMAGE_EXTENSION = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg|bmp|ico)(\?.*)?$", re.IGNORECASE)


def is_image_url(value: Any) -> bool:
    """True for http(s) URL strings ending in an image extension, query string allowed.

    >>> is_image_url("https://cdn.example.com/a.PNG?w=200")
    True
    >>> is_image_url("ftp://cdn.example.com/a.png")
    False
    """
    if not isinstance(value, str):
        return False
    if not value.startswith(("http://", "https://")):
        return False
    return _IMAGE_EXTENSION.search(value) is not None


def _element_matches(element: Any, tokens: Sequence[str]) -> bool:
    if is_image_url(element):
        return False
    haystack = display_value(element).lower()
    return any(token and token.lower() in haystack for token in tokens)


def _text_matches(element: Any, query: Optional[str]) -> bool:
    if is_image_url(element):
        return False
    return any(s.matched for s in highlight_text(display_value(element), query))


class ResultReconciler:
    """Build render models for hits, using a schema for field order when known."""

    def __init__(self, schema: Optional[IndexSchema] = None):
        self.schema = schema

    def field_order(self, document: Dict[str, Any]) -> List[str]:
        """Declared fields present in the document, then any others in document order."""
        ordered: List[str] = []
        if self.schema is not None:
            ordered = [name for name in self.schema.field_names if name in document]
        seen = set(ordered)
        ordered.extend(name for name in document if name not in seen)
        return ordered

    def render_field(self, name: str, value: Any, highlight: Optional[Highlight]) -> RenderedField:
        display = display_value(value)
        tokens = highlight.matched_tokens if highlight else []

        if is_image_url(value):
            return RenderedField(name, value, display, is_image=True)

        if highlight is not None and highlight.snippet:
            return RenderedField(name, value, display, highlight=highlight.snippet, source=HighlightSource.SNIPPET)

        if isinstance(value, list):
            elements = tuple(
                RenderedElement(item, matched=_element_matches(item, tokens), is_image=is_image_url(item))
                for item in value
            )
            if any(element.matched for element in elements):
                return RenderedField(
                    name, value, display, elements=elements, source=HighlightSource.ARRAY_MATCH
                )
            return RenderedField(name, value, display, elements=elements)

        if tokens:
            return RenderedField(
                name, value, display, highlight=", ".join(tokens), source=HighlightSource.MATCHED_TOKENS
            )

        return RenderedField(name, value, display)

    def render_hit(self, hit: Hit) -> RenderedHit:
        fields = tuple(
            self.render_field(name, hit.document[name], hit.highlight_for(name))
            for name in self.field_order(hit.document)
        )
        return RenderedHit(document=hit.document, relevance_score=hit.relevance_score, fields=fields)

    def render(self, response: SearchResponse) -> List[RenderedHit]:
        return [self.render_hit(hit) for hit in response.hits]

    def render_document(self, document: Dict[str, Any], query: Optional[str] = None) -> RenderedHit:
        """Render a document that came without highlight metadata.

        Strings and list elements are matched against ``query`` textually;
        nested objects are shown as JSON and never highlighted.
        """
        fields: List[RenderedField] = []
        for name in self.field_order(document):
            value = document[name]
            display = display_value(value)

            if is_image_url(value):
                fields.append(RenderedField(name, value, display, is_image=True))
                continue

            if isinstance(value, list):
                elements = tuple(
                    RenderedElement(item, matched=_text_matches(item, query), is_image=is_image_url(item))
                    for item in value
                )
                source = HighlightSource.TEXT_MATCH if any(e.matched for e in elements) else HighlightSource.NONE
                fields.append(RenderedField(name, value, display, elements=elements, source=source))
                continue

            if isinstance(value, dict):
                fields.append(RenderedField(name, value, display))
                continue

            segments = highlight_text(display, query)
            if any(segment.matched for segment in segments):
                fields.append(
                    RenderedField(name, value, display, highlight=to_markup(segments), source=HighlightSource.TEXT_MATCH)
                )
            else:
                fields.append(RenderedField(name, value, display))

        return RenderedHit(document=document, relevance_score=None, fields=tuple(fields))
