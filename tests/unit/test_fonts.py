import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "renderer"))

from quotecard_renderer import FontResolver, FontSpec, clear_font_cache


class CandidateTests(unittest.TestCase):
    def setUp(self):
        self.resolver = FontResolver()

    def test_regular(self):
        self.assertEqual(self.resolver.candidates(FontSpec("Inter")), [("Inter", False)])

    def test_bold(self):
        chain = self.resolver.candidates(FontSpec("Inter", bold=True))
        self.assertEqual(chain, [("Inter-Bold", False), ("Inter-Semibold", False), ("Inter", False)])

    def test_italic_synthesizes(self):
        chain = self.resolver.candidates(FontSpec("Inter", italic=True))
        self.assertEqual(chain, [("Inter-Italic", True), ("Inter", False)])

    def test_bold_italic(self):
        chain = self.resolver.candidates(FontSpec("Inter", bold=True, italic=True))
        self.assertEqual(chain, [("Inter-BoldItalic", False), ("Inter-Bold", True), ("Inter", False)])

    def test_empty_family(self):
        self.assertEqual(self.resolver.candidates(FontSpec("")), [])


class ResolveTests(unittest.TestCase):
    def test_unknown_family_uses_generic(self):
        resolved = FontResolver().resolve(FontSpec("No Such Family QC", italic=True), 24)
        self.assertTrue(resolved.generic)
        self.assertFalse(resolved.synthetic_italic)
        self.assertGreater(resolved.font.getlength("abc"), 0)

    def test_load_named_is_cached(self):
        resolver = FontResolver()
        first = resolver.load_named("No Such Family QC", 20)
        second = resolver.load_named("No Such Family QC", 20)
        self.assertIsNone(first)
        self.assertIs(first, second)

    def test_cache_clear_reloads(self):
        resolver = FontResolver()
        before = resolver.generic(18).font
        clear_font_cache()
        after = resolver.generic(18).font
        self.assertEqual(before.getlength("quote"), after.getlength("quote"))


if __name__ == "__main__":
    unittest.main()
