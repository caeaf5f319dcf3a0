"""Typed sanitizer models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SanitizedDocument:
    html: str
    text: str

    @property
    def is_empty(self) -> bool:
        return not self.html


@dataclass(frozen=True)
class SelectionCapture:
    """What the page side hands over for one selection."""

    text: str | None
    html: str | None = None
    source_title: str | None = None
    source_url: str | None = None
    favicon_data_uri: str | None = None

    @property
    def has_selection(self) -> bool:
        return bool(self.text)
