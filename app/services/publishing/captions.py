"""Caption formatting for social posts."""

from __future__ import annotations

import re
from typing import Final

MAX_CAPTION_LENGTH: Final[int] = 2200
ELLIPSIS: Final[str] = "..."
BULLET: Final[str] = "•"

_LIST_ITEM = re.compile(r"<li\b[^>]*>(.*?)</li\s*>", re.IGNORECASE | re.DOTALL)
_ANY_LIST_TAG = re.compile(r"</?\s*(?:li|ul|ol)\b[^>]*>", re.IGNORECASE)

CAPTION_TEMPLATE: Final[str] = (
    "Today's Fix \U0001F48A⚡\n\n"
    "{name}\n\n"
    "{description}\n\n"
    "Why we like it:\n"
    "{appeal}\n\n"
    "Learn more: {website}\n\n"
    "#startupdose #startups #tech #innovation"
)


def truncate_caption(caption: str, limit: int = MAX_CAPTION_LENGTH) -> str:
    if len(caption) <= limit:
        return caption
    return caption[: limit - len(ELLIPSIS)] + ELLIPSIS


def appeal_to_plain_text(appeal: str) -> str:
    """Render <li> items as one bullet line each."""
    items = [item.strip() for item in _LIST_ITEM.findall(appeal)]
    if not items:
        return _ANY_LIST_TAG.sub("", appeal).strip()
    return "\n".join(f"{BULLET} {_ANY_LIST_TAG.sub('', item).strip()}" for item in items if item)


def build_caption(name: str, description: str, appeal: str, website: str) -> str:
    caption = CAPTION_TEMPLATE.format(
        name=name,
        description=description,
        appeal=appeal_to_plain_text(appeal),
        website=website,
    )
    return truncate_caption(caption)
