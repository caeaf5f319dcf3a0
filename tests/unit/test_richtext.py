import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "renderer"))

from quotecard_renderer import FALLBACK_THEME, RichTextComposer, compose
from quotecard_renderer.colors import color_from_hex
from quotecard_renderer.richtext import add_spacing_before_tags, preprocess


def _text(runs):
    return "".join(r.text for r in runs)


class SpacingTests(unittest.TestCase):
    def test_spacing_skips_last_occurrence(self):
        out = add_spacing_before_tags("<p>a</p><p>b</p><p>c</p>", "</p>", "<br><br>")
        self.assertEqual(out, "<p>a<br><br></p><p>b<br><br></p><p>c</p>")

    def test_single_occurrence_unchanged(self):
        self.assertEqual(add_spacing_before_tags("<p>a</p>", "</p>", "<br>"), "<p>a</p>")

    def test_preprocess_lists(self):
        self.assertEqual(preprocess("<ul><li>a</li><li>b</li></ul>"), "<ul><li>a<br></li><li>b</li></ul>")


class ComposeTests(unittest.TestCase):
    def setUp(self):
        self.composer = RichTextComposer(FALLBACK_THEME, 100)

    def test_paragraphs_get_blank_line(self):
        runs = self.composer.compose("<p>One</p><p>Two</p>", "fallback")
        self.assertEqual(_text(runs), "One\n\nTwo")

    def test_strong_run_is_bolder(self):
        runs = self.composer.compose("<p>Plain <strong>bold</strong></p>", "x")
        self.assertEqual(len(runs), 2)
        self.assertFalse(runs[0].font.bold)
        self.assertTrue(runs[1].font.bold)
        self.assertEqual(runs[1].font.weight, FALLBACK_THEME.font_weight + 100)
        self.assertEqual(runs[1].text, "bold")

    def test_em_run_is_italic(self):
        runs = self.composer.compose("<em>slanted</em> text", "x")
        self.assertTrue(runs[0].font.italic)
        self.assertFalse(runs[1].font.italic)

    def test_nested_strong_em(self):
        runs = self.composer.compose("<strong><em>both</em></strong>", "x")
        self.assertTrue(runs[0].font.bold)
        self.assertTrue(runs[0].font.italic)

    def test_bullets(self):
        runs = self.composer.compose("<ul><li>a</li><li>b</li></ul>", "x")
        self.assertEqual(_text(runs), "• a\n• b")
        self.assertTrue(all(r.indent == 1 for r in runs))

    def test_ordinals(self):
        runs = self.composer.compose("<ol><li>a</li><li>b</li></ol>", "x")
        self.assertEqual(_text(runs), "1. a\n2. b")

    def test_blockquote_indent(self):
        runs = self.composer.compose("<blockquote>quoted</blockquote>", "x")
        self.assertEqual(runs[0].indent, 1)

    def test_color_is_theme_color(self):
        runs = self.composer.compose('<p><font color="red">x</font> y</p>', "x")
        expected = color_from_hex(FALLBACK_THEME.text.color)
        self.assertTrue(all(r.color == expected for r in runs))

    def test_size_is_base_size(self):
        runs = self.composer.compose("<p>a <strong>b</strong></p>", "x")
        self.assertTrue(all(r.size == 100 for r in runs))

    def test_plain_when_no_markup(self):
        runs = compose(None, "  just text  ", FALLBACK_THEME, 80)
        self.assertEqual(len(runs), 1)
        self.assertEqual(runs[0].text, "just text")
        self.assertEqual(runs[0].size, 80)

    def test_falls_back_when_markup_has_no_text(self):
        runs = self.composer.compose("<p> </p><br>", "plain words")
        self.assertEqual(_text(runs), "plain words")

    def test_empty_everything(self):
        self.assertEqual(self.composer.compose("", "   "), [])


if __name__ == "__main__":
    unittest.main()
