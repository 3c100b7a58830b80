"""Read and write theme pattern files.

A pattern file is a PHP file whose doc-comment header carries the pattern
metadata, followed by a closing PHP tag and the raw block markup::

    <?php
    /**
     * Title: Hero
     * Slug: hero
     * Categories: featured, banner
     * Viewport Width: 1280
     * Inserter: true
     */

    ?>
    <!-- wp:cover /-->

Optional header entries are only written when they hold a value;
``Viewport Width`` and ``Inserter`` are always written. Parsing is lenient:
unknown keys and lines without a colon are skipped, malformed or out of range
numbers and malformed booleans fall back to their defaults.
"""

import re
from typing import Any, Callable, Dict, List, Tuple

from pydantic import ValidationError

from ..schemas.pattern import DEFAULT_VIEWPORT_WIDTH, MAX_VIEWPORT_WIDTH, PatternCreate
from .errors import PatternParseError

PHP_OPEN = "<?php\n"
HEADER_OPEN = "/**\n"
HEADER_CLOSE = " */\n\n"
SEPARATOR = "?>"

_HEADER_RE = re.compile(r"\A\ufeff?\s*<\?php\s*/\*\*(.*?)\*/", re.DOTALL)
_FALSE_VALUES = frozenset({"no", "false", "0"})

# Header key and attribute of the optional list entries, in output order.
_SET_ENTRIES: Tuple[Tuple[str, str], ...] = (
    ("Categories", "categories"),
    ("Post Types", "post_types"),
    ("Keywords", "keywords"),
    ("Block Types", "block_types"),
    ("Template Types", "template_types"),
)


def _has_text(value: Any) -> bool:
    return bool(value and str(value).strip())


def _has_items(value: Any) -> bool:
    return bool(value)


def header_entries(pattern: Any) -> List[Tuple[str, str]]:
    """Build the ordered header entries of a pattern record."""
    entries = [("Title", pattern.title), ("Slug", pattern.slug)]
    if _has_text(pattern.description):
        entries.append(("Description", pattern.description))
    for key, attr in _SET_ENTRIES:
        values = getattr(pattern, attr)
        if _has_items(values):
            entries.append((key, ", ".join(values)))

    viewport_width = pattern.viewport_width
    if viewport_width is None:
        viewport_width = DEFAULT_VIEWPORT_WIDTH
    entries.append(("Viewport Width", str(int(viewport_width))))

    inserter = True if pattern.inserter is None else bool(pattern.inserter)
    entries.append(("Inserter", "true" if inserter else "false"))
    return entries


def serialize_pattern(pattern: Any) -> str:
    """Render a pattern record (ORM object or schema) as pattern file text."""
    header = "".join(f" * {key}: {value}\n" for key, value in header_entries(pattern))
    return f"{PHP_OPEN}{HEADER_OPEN}{header}{HEADER_CLOSE}{SEPARATOR}\n{pattern.content or ''}"


def _parse_csv(value: str) -> List[str]:
    return [token.strip() for token in value.split(",") if token.strip()]


def _parse_viewport_width(value: str) -> int:
    try:
        width = int(value)
    except ValueError:
        return DEFAULT_VIEWPORT_WIDTH
    if not 0 <= width <= MAX_VIEWPORT_WIDTH:
        return DEFAULT_VIEWPORT_WIDTH
    return width


def _parse_inserter(value: str) -> bool:
    return value.strip().lower() not in _FALSE_VALUES


def _normalize_key(key: str) -> str:
    return "".join(key.split()).lower()


_FIELD_PARSERS: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "title": ("title", str),
    "description": ("description", str),
    "categories": ("categories", _parse_csv),
    "keywords": ("keywords", _parse_csv),
    "viewportwidth": ("viewport_width", _parse_viewport_width),
    "blocktypes": ("block_types", _parse_csv),
    "posttypes": ("post_types", _parse_csv),
    "templatetypes": ("template_types", _parse_csv),
    "inserter": ("inserter", _parse_inserter),
}


def parse_header(header: str) -> Dict[str, Any]:
    """Parse the body of a header comment into pattern field values."""
    fields: Dict[str, Any] = {}
    for raw_line in header.splitlines():
        line = raw_line.lstrip(" \t*").rstrip()
        if not line or ":" not in line:
            continue
        key, value = line.split(":", 1)
        parser = _FIELD_PARSERS.get(_normalize_key(key))
        if parser is None:
            continue
        attr, convert = parser
        fields[attr] = convert(value.strip())
    return fields


def split_pattern_file(text: str) -> Tuple[str, str]:
    """Split pattern file text into its header body and its content."""
    match = _HEADER_RE.match(text)
    if not match:
        raise PatternParseError("No pattern header found")

    content = ""
    separator_at = text.find(SEPARATOR, match.end())
    if separator_at != -1:
        start = separator_at + len(SEPARATOR)
        if text.startswith("\r\n", start):
            start += 2
        elif text.startswith("\n", start):
            start += 1
        content = text[start:]
    return match.group(1), content


def parse_pattern(text: str) -> PatternCreate:
    """Rebuild a pattern record from pattern file text."""
    header, content = split_pattern_file(text)
    fields = parse_header(header)
    if not fields.get("title"):
        raise PatternParseError("Pattern header has no Title")
    try:
        return PatternCreate(**fields, content=content)
    except ValidationError as e:
        raise PatternParseError(f"Invalid pattern header ({e.error_count()} errors)") from e
