"""Pure text helpers used while building a company record."""

from __future__ import annotations

import re
import unicodedata

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
_LIST_CONTAINER_TAG = re.compile(r"</?\s*(?:ul|ol)\b[^>]*>", re.IGNORECASE)
_LIST_ITEM_OPEN = re.compile(r"<li\b[^>]*>", re.IGNORECASE)
_PROTOCOL_PREFIXES = ("https://", "http://")


def slugify(name: str) -> str:
    """Lowercase, hyphen-separated slug with no leading, trailing, or doubled hyphens."""
    folded = unicodedata.normalize("NFKD", name or "").encode("ascii", "ignore").decode("ascii")
    return _NON_SLUG_CHARS.sub("-", folded.lower()).strip("-")


def strip_protocol(url: str) -> str:
    """Drop a leading http(s) scheme, as stored in the `website` column."""
    for prefix in _PROTOCOL_PREFIXES:
        if url.startswith(prefix):
            return url[len(prefix) :]
    return url


def strip_list_container(appeal: str) -> str:
    """Remove <ul>/<ol> wrappers, leaving the inner <li> markup untouched."""
    return _LIST_CONTAINER_TAG.sub("", appeal).strip()


def count_list_items(appeal: str) -> int:
    return len(_LIST_ITEM_OPEN.findall(appeal))
