"""Selection sanitization for quote card rendering."""

from .models import SanitizedDocument, SelectionCapture
from .sanitize import ALLOWED_TAGS, capture_selection, sanitize, sanitize_html

__all__ = [
    "ALLOWED_TAGS",
    "SanitizedDocument",
    "SelectionCapture",
    "capture_selection",
    "sanitize",
    "sanitize_html",
]
