"""Normalization of arbitrary input shapes into a ContentRecord.

Scraper and CLI input is unreliable, so this never raises: missing fields
get safe defaults and unknown element shapes become paragraphs.
"""

import re
from typing import Any, List, Optional
from urllib.parse import urlparse

from .models import ContentRecord, ContentElement, ElementKind

DEFAULT_TITLE = "Untitled"

# Field names that may carry the element list, in priority order
CONTENT_FIELDS = ("content", "sections", "elements")

_HEADING_TAG = re.compile(r"^h([1-6])$", re.IGNORECASE)

_KIND_ALIASES = {
    "p": ElementKind.PARAGRAPH,
    "text": ElementKind.PARAGRAPH,
    "blockquote": ElementKind.QUOTE,
    "ul": ElementKind.LIST,
    "ol": ElementKind.LIST,
    "img": ElementKind.IMAGE,
    "figure": ElementKind.IMAGE,
}


def normalize(raw: Any) -> ContentRecord:
    """Coerce ``raw`` into a ContentRecord.

    Accepts a string (single paragraph), a list of elements, a mapping, or
    any object exposing ``title`` and one of ``content``/``sections``/
    ``elements``.
    """
    if raw is None:
        return ContentRecord(title=DEFAULT_TITLE)

    if isinstance(raw, ContentRecord):
        return raw

    if isinstance(raw, str):
        return ContentRecord(
            title=DEFAULT_TITLE,
            elements=[ContentElement(ElementKind.PARAGRAPH, raw)],
        )

    if isinstance(raw, (list, tuple)):
        return ContentRecord(
            title=DEFAULT_TITLE,
            elements=_normalize_elements(raw),
        )

    title = _field(raw, "title")
    items = None
    for name in CONTENT_FIELDS:
        items = _field(raw, name)
        if items is not None:
            break

    if isinstance(items, str):
        items = [items]
    elif not isinstance(items, (list, tuple)):
        items = []

    return ContentRecord(
        title=_text(title) or DEFAULT_TITLE,
        elements=_normalize_elements(items),
        domain=_domain(raw),
        language=_text(_field(raw, "language")) or None,
    )


def estimate_chars(record: ContentRecord) -> int:
    """Total character count used for chunking decisions."""
    return sum(len(element.text) for element in record.elements)


def _normalize_elements(items) -> List[ContentElement]:
    return [_normalize_element(item) for item in items]


def _normalize_element(item: Any) -> ContentElement:
    if isinstance(item, ContentElement):
        return item

    if isinstance(item, str):
        return ContentElement(ElementKind.PARAGRAPH, item)

    if item is None or isinstance(item, (int, float, bool)):
        return ContentElement(ElementKind.PARAGRAPH, "" if item is None else str(item))

    raw_kind = _text(_field(item, "kind") or _field(item, "type") or _field(item, "tag"))
    kind, level = _resolve_kind(raw_kind)

    if kind == ElementKind.HEADING:
        level = _heading_level(_field(item, "level"), level)

    text = _field(item, "text")
    if text is None:
        text = _field(item, "content")

    ordered = None
    if kind == ElementKind.LIST:
        entries = _field(item, "items")
        if text is None and isinstance(entries, (list, tuple)):
            text = "\n".join(_text(entry) for entry in entries)
        ordered = bool(_field(item, "ordered") or raw_kind.lower() == "ol")

    src = alt = None
    if kind == ElementKind.IMAGE:
        src = _text(_field(item, "src")) or None
        alt = _text(_field(item, "alt")) or None
        if text is None:
            text = alt or _field(item, "caption")

    return ContentElement(
        kind=kind,
        text=_text(text),
        level=level,
        ordered=ordered,
        src=src,
        alt=alt,
    )


def _resolve_kind(raw_kind: str):
    """Return (kind, heading level hint) for a raw kind/type/tag string."""
    key = raw_kind.strip().lower()
    if not key:
        return ElementKind.PARAGRAPH, None

    heading = _HEADING_TAG.match(key)
    if heading:
        return ElementKind.HEADING, int(heading.group(1))

    if key in _KIND_ALIASES:
        return _KIND_ALIASES[key], None

    try:
        return ElementKind(key), None
    except ValueError:
        return ElementKind.PARAGRAPH, None


def _heading_level(value: Any, hint: Optional[int]) -> int:
    try:
        level = int(value) if value is not None else (hint or 2)
    except (TypeError, ValueError):
        level = hint or 2
    return min(6, max(1, level))


def _domain(raw: Any) -> Optional[str]:
    domain = _text(_field(raw, "domain"))
    if domain:
        return domain.lower()

    metadata = _field(raw, "metadata")
    if metadata is not None:
        domain = _text(_field(metadata, "domain"))
        if domain:
            return domain.lower()

    url = _text(_field(raw, "url"))
    if url:
        return urlparse(url).netloc.lower() or None
    return None


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return " ".join(_text(part) for part in value)
    return str(value)
