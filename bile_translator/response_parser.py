"""Extraction and repair of JSON from free-form model output.

Models wrap JSON in prose, cut it off mid-explanation, or emit slightly
invalid syntax. Each stage below is a pure ``str -> Optional[str]``
function producing a candidate JSON text; ``parse_robustly`` runs them in
order and stops at the first candidate that parses.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

Stage = Callable[[str], Optional[str]]

_FENCE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)\n?```", re.DOTALL)

# Sentence boundaries that usually mark trailing explanation after JSON
_TRUNCATION_MARKERS = re.compile(r"\.\s+(?:The|This|Here|Note|More)\b")

_SCHEMA_PREFIX = re.compile(
    r'\{\s*"(?:sl|source_language|sourceLanguage)"\s*:'
)
_CONTENT_ARRAY = re.compile(r'"(?:content|sections)"\s*:\s*\[')

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_UNQUOTED_KEY = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:")

# Duplicate slang fields emitted after the st array closes
_DUPLICATE_SLANG_FIELDS = re.compile(
    r'(\}\]),"tm":"[^"]*","tr":"[^"]*","eo":"[^"]*","et":"[^"]*"(\},?\{)'
)
# Section object missing its opening brace
_MISSING_SECTION_BRACE = re.compile(r'(\}),\s*("type"\s*:\s*"paragraph")')


def _loads(text: Optional[str]) -> Tuple[bool, Any]:
    if not text:
        return False, None
    try:
        return True, json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return False, None


def _parses(text: Optional[str]) -> bool:
    return _loads(text)[0]


def _balanced_span(text: str, start: int, opener: str = "{", closer: str = "}") -> Optional[int]:
    """Index of the closer matching ``text[start]``, skipping string literals."""
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return i

    return None


def strip_code_fences(text: str) -> str:
    match = _FENCE.search(text)
    return match.group(1).strip() if match else text


# --- stages -----------------------------------------------------------------

def direct_candidate(text: str) -> Optional[str]:
    """Stage 1: the whole text, or the body of its code fence."""
    stripped = text.strip()
    if not stripped or _parses(stripped):
        return stripped or None
    return strip_code_fences(stripped)


def brace_scan_candidate(text: str) -> Optional[str]:
    """Stage 2: first span whose brace depth returns to zero."""
    start = text.find("{")
    if start == -1:
        return None

    end = _balanced_span(text, start)
    if end is None:
        return None
    return text[start:end + 1]


def line_scan_candidate(text: str) -> Optional[str]:
    """Stage 3: block of lines from the first line starting with ``{``.

    Braces in prose before that line are ignored, unlike the character
    scan.
    """
    lines = text.split("\n")
    start_index = None
    depth = 0

    for i, line in enumerate(lines):
        stripped = line.strip()
        if start_index is None:
            if not stripped.startswith("{"):
                continue
            start_index = i

        depth += stripped.count("{") - stripped.count("}")
        if depth <= 0:
            return "\n".join(lines[start_index:i + 1]).strip()

    return None


def known_schema_candidate(text: str) -> Optional[str]:
    """Stage 4: known result prefix through a balanced content array."""
    prefix = _SCHEMA_PREFIX.search(text)
    if not prefix:
        return None

    array = _CONTENT_ARRAY.search(text, prefix.start())
    if not array:
        return None

    array_end = _balanced_span(text, array.end() - 1, "[", "]")
    if array_end is None:
        return None

    close = text.find("}", array_end)
    if close == -1:
        return text[prefix.start():array_end + 1] + "}"
    return text[prefix.start():close + 1]


def truncation_candidate(text: str) -> Optional[str]:
    """Stage 5: trim trailing explanation at the earliest sentence marker.

    Only markers outside string literals count, so translated sentences
    inside the JSON are left intact.
    """
    start = text.find("{")
    if start == -1:
        return None

    cut = _first_marker_outside_strings(text, start)
    if cut is None:
        return None

    candidate = text[start:cut].rstrip().rstrip(",").rstrip()
    return candidate if len(candidate) > 2 else None


def _first_marker_outside_strings(text: str, start: int) -> Optional[int]:
    in_string = False
    escaped = False
    outside = []

    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == ".":
            outside.append(i)

    for position in outside:
        if _TRUNCATION_MARKERS.match(text, position):
            return position
    return None


def close_brackets(text: str) -> str:
    """Append the closers needed to balance ``{``/``[`` across the text."""
    stack: List[str] = []
    in_string = False
    escaped = False

    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in "{[":
            stack.append("}" if char == "{" else "]")
        elif char in "}]" and stack and stack[-1] == char:
            stack.pop()

    fixed = text + ('"' if in_string else "")
    fixed = re.sub(r",\s*$", "", fixed.rstrip())
    return fixed + "".join(reversed(stack))


def remove_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


def quote_keys(text: str) -> str:
    return _UNQUOTED_KEY.sub(r'\1"\2":', text)


def single_to_double_quotes(text: str) -> str:
    return text.replace("'", '"')


SINGLE_FIXES = (remove_trailing_commas, quote_keys, single_to_double_quotes, close_brackets)


def _repair_base(text: str) -> Optional[str]:
    truncated = truncation_candidate(text)
    if truncated:
        return truncated

    start = text.find("{")
    if start == -1:
        start = text.find("[")
    if start == -1:
        return None
    return strip_code_fences(text[start:].strip())


def structural_repair_candidate(text: str) -> Optional[str]:
    """Stage 6: all structural fixes together, then one fix at a time."""
    base = _repair_base(text)
    if not base:
        return None

    combined = base
    for fix in SINGLE_FIXES:
        combined = fix(combined)
    if _parses(combined):
        return combined

    for fix in SINGLE_FIXES:
        candidate = fix(base)
        if _parses(candidate):
            return candidate
        candidate = close_brackets(candidate)
        if _parses(candidate):
            return candidate

    return None


def known_fixes_candidate(text: str) -> Optional[str]:
    """Stage 7: repairs for recurring model mistakes."""
    base = _repair_base(text)
    if not base:
        return None

    fixed = _DUPLICATE_SLANG_FIELDS.sub(r"\1\2", base)
    fixed = _MISSING_SECTION_BRACE.sub(r"\1,{\2", fixed)
    fixed = close_brackets(remove_trailing_commas(fixed))

    if fixed == base:
        return None
    return fixed


STAGES: List[Tuple[str, Stage]] = [
    ("direct", direct_candidate),
    ("brace_scan", brace_scan_candidate),
    ("line_scan", line_scan_candidate),
    ("known_schema", known_schema_candidate),
    ("truncation", truncation_candidate),
    ("structural_repair", structural_repair_candidate),
    ("known_fixes", known_fixes_candidate),
]


def parse_robustly(text: Optional[str]) -> Optional[Any]:
    """Parse JSON from model output, or None if every stage fails."""
    if not text or not isinstance(text, str):
        return None

    for name, stage in STAGES:
        candidate = stage(text)
        ok, value = _loads(candidate)
        if ok:
            if name != "direct":
                logger.debug(f"Recovered JSON with stage '{name}'")
            return value

    logger.debug(f"All extraction stages failed for {len(text)} chars of output")
    return None


# --- schema expansion -------------------------------------------------------

_TOP_LEVEL_KEYS = {
    "sourceLanguage": ("sl", "source_language", "sourceLanguage"),
    "targetLanguage": ("tl", "target_language", "targetLanguage"),
    "titleOriginal": ("to", "title_original", "titleOriginal"),
    "titleTranslated": ("tt", "title_translated", "titleTranslated"),
}

_SECTION_KEYS = {
    "original": ("o", "original"),
    "translated": ("t", "translated"),
}

_TERM_KEYS = {
    "term": ("tm", "term"),
    "translation": ("tr", "translation"),
    "explanationSource": (
        "eo", "explanation_original", "explanation_source", "explanationSource",
    ),
    "explanationTarget": (
        "et", "explanation_translated", "explanation_target", "explanationTarget",
    ),
}


def _first(data: Dict[str, Any], keys) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def expand_terms(items: Any) -> List[Dict[str, str]]:
    """Canonical slang term dicts from abbreviated or verbose items."""
    if not isinstance(items, list):
        return []

    terms = []
    for item in items:
        if not isinstance(item, dict):
            continue
        term = {name: _as_text(_first(item, keys)) for name, keys in _TERM_KEYS.items()}
        if term["term"]:
            if "i" in item or "section" in item:
                term["section"] = _first(item, ("i", "section"))
            terms.append(term)
    return terms


def expand_abbreviated(data: Any) -> Optional[Dict[str, Any]]:
    """Expand abbreviated (or snake_case) keys to canonical field names.

    ``sl,tl,to,tt,content[].o/t/st[].tm/tr/eo/et`` become
    ``sourceLanguage, targetLanguage, titleOriginal, titleTranslated,
    sections[].original/translated/slangTerms[].term/translation/
    explanationSource/explanationTarget``.
    """
    if isinstance(data, list):
        data = {"sections": data}
    if not isinstance(data, dict):
        return None

    expanded: Dict[str, Any] = {
        name: _first(data, keys) for name, keys in _TOP_LEVEL_KEYS.items()
    }

    items = _first(data, ("content", "sections"))
    sections = []
    for item in items if isinstance(items, list) else []:
        if not isinstance(item, dict):
            continue
        section = {name: _as_text(_first(item, keys)) for name, keys in _SECTION_KEYS.items()}
        section["kind"] = _as_text(_first(item, ("kind", "type"))) or "paragraph"
        section["slangTerms"] = expand_terms(
            _first(item, ("st", "slang_terms", "slangTerms"))
        )
        sections.append(section)

    expanded["sections"] = sections
    return expanded


def extract(raw_text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse model output into a canonical result object.

    Returns:
        Canonical dict, or None when the output is unparseable
    """
    parsed = parse_robustly(raw_text)
    if parsed is None:
        return None
    return expand_abbreviated(parsed)
