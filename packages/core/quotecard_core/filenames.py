"""Suggested file names for exported cards."""

from __future__ import annotations

import re
from datetime import datetime, timezone

_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9\s-]")
_SPACE_RE = re.compile(r"\s+")
_SLUG_MAX = 50


def title_slug(title: str | None) -> str:
    if not title:
        return ""
    slug = _UNSAFE_RE.sub("", title)
    slug = _SPACE_RE.sub("-", slug).lower()
    return slug[:_SLUG_MAX]


def export_extension(data_url: str) -> str:
    return "jpg" if data_url.startswith("data:image/jpeg") else "png"


def suggest_filename(data_url: str, source_title: str | None = None, now: datetime | None = None) -> str:
    """``quotecard-<title slug>-<timestamp>.<ext>``, without the slug when the title has none."""
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat()
    stamp = stamp.replace(":", "-").replace(".", "-")[:19]
    ext = export_extension(data_url)
    slug = title_slug(source_title)
    if slug:
        return f"quotecard-{slug}-{stamp}.{ext}"
    return f"quotecard-{stamp}.{ext}"
