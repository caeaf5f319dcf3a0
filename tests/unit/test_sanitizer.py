import sys
import unittest
from pathlib import Path

from bs4 import BeautifulSoup

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "sanitizer"))

from quotecard_sanitizer import ALLOWED_TAGS, capture_selection, sanitize, sanitize_html


class SanitizeTests(unittest.TestCase):
    def test_renames_bold_and_italic(self):
        self.assertEqual(sanitize_html("<p>Hello <b>big</b> <i>world</i></p>"), "<p>Hello <strong>big</strong> <em>world</em></p>")

    def test_strips_attributes(self):
        out = sanitize_html('<p class="lead" style="color:red" data-x="1">Quote</p>')
        self.assertEqual(out, "<p>Quote</p>")

    def test_unwraps_div_and_span(self):
        out = sanitize_html('<div><span style="font-weight:bold">Kept text</span></div>')
        self.assertEqual(out, "Kept text")

    def test_div_span_flattened_without_attributes(self):
        self.assertEqual(sanitize_html('<div><span class="x">A</span>B</div>'), "AB")

    def test_drops_script_and_style_subtrees(self):
        out = sanitize_html("<p>Safe</p><script>alert(1)</script><style>p{}</style>")
        self.assertEqual(out, "<p>Safe</p>")

    def test_removes_reference_markers(self):
        out = sanitize_html('<p>Claim<sup class="reference">[1]</sup> stands.<span class="mw-editsection">[edit]</span></p>')
        self.assertEqual(out, "<p>Claim stands.</p>")

    def test_demotes_headings_to_strong(self):
        self.assertEqual(sanitize_html('<h2 id="intro">Intro</h2>'), "<strong>Intro</strong>")

    def test_unknown_tags_keep_their_text(self):
        out = sanitize_html('<p>See <a href="https://example.com">this <code>page</code></a></p>')
        self.assertEqual(out, "<p>See this page</p>")

    def test_comments_are_removed(self):
        self.assertEqual(sanitize_html("<p>a<!-- hidden -->b</p>"), "<p>ab</p>")

    def test_only_allowed_tags_survive(self):
        markup = (
            "<article><h1>T</h1><table><tr><td>cell</td></tr></table>"
            "<ul><li><u>one</u></li></ul><blockquote>q<br>r</blockquote><img src=x></article>"
        )
        doc = BeautifulSoup(sanitize_html(markup), "html.parser")
        for tag in doc.find_all(True):
            self.assertIn(tag.name, ALLOWED_TAGS)
            self.assertEqual(tag.attrs, {})

    def test_idempotent(self):
        markup = '<div><p>One <b>two</b></p><ol><li class="x">three</li></ol></div>'
        once = sanitize_html(markup)
        self.assertEqual(sanitize_html(once), once)

    def test_does_not_mutate_input(self):
        soup = BeautifulSoup('<p class="c">Hi <span>there</span><script>x()</script></p>', "html.parser")
        before = str(soup)
        sanitize(soup)
        sanitize(soup.p)
        self.assertEqual(str(soup), before)

    def test_empty_inputs(self):
        for value in (None, "", "   ", "<script>x()</script>", "<p> </p>"):
            doc = sanitize(value)
            self.assertEqual(doc.html, "")
            self.assertTrue(doc.is_empty)

    def test_text_is_plain(self):
        doc = sanitize("<p>Alpha <em>beta</em></p>")
        self.assertEqual(doc.text, "Alpha beta")


class CaptureSelectionTests(unittest.TestCase):
    def test_empty_selection(self):
        capture = capture_selection("   ", "<p>x</p>", source_title="Page")
        self.assertIsNone(capture.text)
        self.assertIsNone(capture.html)
        self.assertFalse(capture.has_selection)
        self.assertEqual(capture.source_title, "Page")

    def test_selection_with_markup(self):
        capture = capture_selection(" Quote ", "<p><b>Quote</b></p>", source_url="https://example.com")
        self.assertEqual(capture.text, "Quote")
        self.assertEqual(capture.html, "<p><strong>Quote</strong></p>")
        self.assertTrue(capture.has_selection)

    def test_markup_without_text_is_dropped(self):
        capture = capture_selection("Quote", "<script>x()</script>")
        self.assertEqual(capture.text, "Quote")
        self.assertIsNone(capture.html)


if __name__ == "__main__":
    unittest.main()
