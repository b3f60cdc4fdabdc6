"""
Parsing of embedded JSON-LD metadata.

Sites often ship slightly broken JSON-LD (trailing commas, smart quotes,
HTML comments, control characters). Parsing falls back through
progressively more lenient strategies before giving up on a block.
"""

import re
import json
from typing import Any, Dict, Iterator, List, Optional

import json5
from bs4 import BeautifulSoup, Tag

from stayscout.core.logging import get_logger

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"^\s*(?:<!--|//<!\[CDATA\[)|(?:-->|//\]\]>)\s*$")
_SMART_QUOTES = {
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
}
_CTRL_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F]")

LD_JSON_SELECTOR = 'script[type="application/ld+json"]'


def sanitize_json_text(text: str) -> str:
    """
    Best-effort cleanups for common JSON-LD issues.

    Removes HTML comment/CDATA wrappers, replaces smart quotes, removes
    control characters and trailing commas.

    Example:
        >>> sanitize_json_text('<!-- {"@type": "Event",} -->')
        '{"@type": "Event"}'
    """
    t = text.strip()
    t = _FENCE_RE.sub("", t)

    for k, v in _SMART_QUOTES.items():
        t = t.replace(k, v)

    t = _CTRL_RE.sub("", t)
    t = re.sub(r",(\s*[\]\}])", r"\1", t)

    return t.strip()


def parse_json_robust(text: str) -> Optional[Any]:
    """
    Parse a JSON-LD block with fallbacks.

    Tries in order:
    1. Standard json.loads()
    2. Sanitize + json.loads()
    3. json5.loads() on the sanitized text

    Returns:
        Parsed object/array, or None if every strategy fails
    """
    if not text or not text.strip():
        return None

    try:
        return json.loads(text)
    except ValueError:
        pass

    cleaned = sanitize_json_text(text)
    try:
        return json.loads(cleaned)
    except ValueError:
        pass

    try:
        return json5.loads(cleaned)
    except ValueError:
        logger.debug(f"Unparseable JSON-LD block ({len(text)} chars)")
        return None


def iter_ld_blocks(root: Any) -> Iterator[Any]:
    """Parsed JSON-LD blocks under a soup/tag, skipping unparseable ones."""
    for script in root.select(LD_JSON_SELECTOR):
        data = parse_json_robust(script.string or script.get_text() or "")
        if data is not None:
            yield data


def _type_matches(obj: Dict[str, Any], type_name: str) -> bool:
    t = obj.get("@type")
    if isinstance(t, list):
        return type_name in t
    return t == type_name


def iter_typed_objects(data: Any, type_name: str) -> Iterator[Dict[str, Any]]:
    """
    Objects of @type type_name within one parsed block.

    Handles a bare object, a top-level array and @graph containers.
    """
    items = data if isinstance(data, list) else [data]
    for obj in items:
        if not isinstance(obj, dict):
            continue
        graph = obj.get("@graph")
        if isinstance(graph, list):
            for node in graph:
                if isinstance(node, dict) and _type_matches(node, type_name):
                    yield node
        elif _type_matches(obj, type_name):
            yield obj


def find_typed_objects(root: Any, type_name: str) -> List[Dict[str, Any]]:
    """All JSON-LD objects of @type type_name under root, in document order."""
    out: List[Dict[str, Any]] = []
    for data in iter_ld_blocks(root):
        out.extend(iter_typed_objects(data, type_name))
    return out


def first_object(root: Optional[Tag]) -> Optional[Dict[str, Any]]:
    """First object of the first parseable JSON-LD block under root."""
    if root is None:
        return None
    for data in iter_ld_blocks(root):
        if isinstance(data, list):
            data = data[0] if data else None
        if isinstance(data, dict):
            return data
    return None


def as_text(value: Any) -> str:
    """Coerce a JSON-LD scalar (or single-item list) to stripped text."""
    if isinstance(value, list):
        value = value[0] if value else ""
    if isinstance(value, dict):
        value = value.get("name") or value.get("@id") or ""
    return str(value or "").strip()


def as_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None and value != "" else None
    except (TypeError, ValueError):
        return None


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")
