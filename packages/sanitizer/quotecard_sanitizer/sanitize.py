"""Reduce a captured DOM fragment to the tag subset the card renderer understands."""

from __future__ import annotations

import copy
import logging
import re

from bs4 import BeautifulSoup, NavigableString, Tag

from .models import SanitizedDocument, SelectionCapture

logger = logging.getLogger("quotecard.sanitizer")

# Output vocabulary after b/i normalization.
ALLOWED_TAGS = frozenset({"em", "strong", "p", "br", "ul", "ol", "li", "blockquote"})

_KEEP_TAGS = frozenset({"em", "i", "strong", "b", "p", "br", "ul", "ol", "li", "blockquote"})
_UNWRAP_TAGS = frozenset({"div", "span"})
_DROP_TAGS = ["script", "style"]
_RENAMES = {"b": "strong", "i": "em"}
_HEADING_RE = re.compile(r"^h[1-6]$", re.IGNORECASE)

# (tag, class) pairs for site decorations that are never quote content:
# reference superscripts and section-edit links.
_CRUFT_MARKERS: tuple[tuple[str, str], ...] = (
    ("sup", "reference"),
    ("span", "mw-editsection"),
)


def _detached_container(fragment: Tag | str | None) -> Tag:
    soup = BeautifulSoup("", "html.parser")
    container = soup.new_tag("div")
    soup.append(container)

    if fragment is None:
        return container
    if isinstance(fragment, str):
        fragment = BeautifulSoup(fragment, "html.parser")

    if isinstance(fragment, BeautifulSoup):
        nodes = list(fragment.contents)
    else:
        nodes = [fragment]
    for node in nodes:
        container.append(copy.copy(node))
    return container


def _remove_subtrees(container: Tag) -> None:
    for el in container.find_all(_DROP_TAGS):
        if not el.decomposed:
            el.decompose()
    for tag_name, css_class in _CRUFT_MARKERS:
        for el in container.find_all(tag_name, class_=css_class):
            if not el.decomposed:
                el.decompose()


def _demote_headings(container: Tag) -> None:
    for heading in container.find_all(_HEADING_RE):
        heading.name = "strong"
        heading.attrs = {}


def _process(node) -> None:
    if isinstance(node, NavigableString):
        # Comments, CDATA, doctypes and processing instructions are string subclasses.
        if type(node) is not NavigableString:
            node.extract()
        return
    if not isinstance(node, Tag):
        return

    for child in list(node.children):
        _process(child)

    name = (node.name or "").lower()
    if name in _UNWRAP_TAGS:
        node.unwrap()
        return
    if name not in _KEEP_TAGS:
        node.replace_with(NavigableString(node.get_text()))
        return

    node.name = _RENAMES.get(name, name)
    node.attrs = {}


def sanitize(fragment: Tag | str | None) -> SanitizedDocument:
    """Return the allow-listed, attribute-free rendition of ``fragment``.

    ``fragment`` may be a parsed tree or the serialized markup of a cloned
    selection range. The input tree is copied first and never modified.
    """
    container = _detached_container(fragment)
    _remove_subtrees(container)
    _demote_headings(container)
    for child in list(container.children):
        _process(child)

    html = container.decode_contents().strip()
    text = container.get_text().strip()
    if not text:
        html = ""
    logger.debug("selection sanitized", extra={"event": "sanitize", "chars": len(html)})
    return SanitizedDocument(html=html, text=text)


def sanitize_html(markup: str | None) -> str:
    return sanitize(markup).html


def capture_selection(
    text: str | None,
    html: Tag | str | None = None,
    source_title: str | None = None,
    source_url: str | None = None,
    favicon_data_uri: str | None = None,
) -> SelectionCapture:
    """Package a page selection the way the capture side reports it.

    An empty selection yields ``text=None`` and no markup. A fragment that
    sanitizes to nothing is reported without markup so the renderer uses the
    plain text.
    """
    stripped = (text or "").strip()
    if not stripped:
        return SelectionCapture(text=None, source_title=source_title or None, source_url=source_url or None)

    cleaned: str | None = None
    if html is not None:
        document = sanitize(html)
        cleaned = None if document.is_empty else document.html

    return SelectionCapture(
        text=stripped,
        html=cleaned,
        source_title=source_title or None,
        source_url=source_url or None,
        favicon_data_uri=favicon_data_uri or None,
    )
