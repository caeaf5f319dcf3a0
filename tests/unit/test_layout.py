import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "renderer"))

from PIL import ImageChops

from quotecard_renderer import FALLBACK_THEME, FontResolver, FontSpec, StyledRun, compose
from quotecard_renderer.colors import BLACK
from quotecard_renderer.layout import fit_text, measure, render_text_layer


class FitTextTests(unittest.TestCase):
    def setUp(self):
        self.resolver = FontResolver()

    def test_short_text_keeps_full_size(self):
        runs = compose(None, "Hi", FALLBACK_THEME, 40)
        layout = fit_text(runs, self.resolver, (1000, 1000), 16)
        self.assertEqual(layout.scale, 1.0)
        self.assertTrue(layout.fits)

    def test_medium_text_shrinks_to_fit(self):
        runs = compose(None, "word " * 60, FALLBACK_THEME, 40)
        layout = fit_text(runs, self.resolver, (400, 400), 16)
        self.assertTrue(layout.fits)
        self.assertLess(layout.scale, 1.0)
        self.assertGreater(layout.scale, 0.2)
        self.assertLessEqual(layout.height, 400)

    def test_overflow_stops_at_floor(self):
        runs = compose(None, "word " * 3000, FALLBACK_THEME, 40)
        layout = fit_text(runs, self.resolver, (200, 200), 16, min_scale=0.2)
        self.assertFalse(layout.fits)
        self.assertEqual(layout.scale, 0.2)

    def test_lines_respect_width(self):
        runs = compose(None, "alpha beta gamma delta epsilon zeta eta theta", FALLBACK_THEME, 40)
        layout = measure(runs, self.resolver, 300, 16, 1.0)
        self.assertGreater(len(layout.lines), 1)
        for line in layout.lines:
            if line.fragments:
                last = line.fragments[-1]
                self.assertLessEqual(last.x + last.width, 300.5)

    def test_explicit_newlines_break_lines(self):
        runs = compose("<p>One</p><p>Two</p>", "x", FALLBACK_THEME, 20)
        layout = measure(runs, self.resolver, 1000, 4, 1.0)
        self.assertEqual(len(layout.lines), 3)


class SyntheticItalicTests(unittest.TestCase):
    def setUp(self):
        self.resolver = FontResolver()
        if self.resolver.load_named("DejaVuSans-Bold", 40) is None:
            self.skipTest("DejaVu Sans Bold not installed")
        if self.resolver.load_named("DejaVuSans-BoldItalic", 40) is not None:
            self.skipTest("a real bold italic DejaVu face is installed")

    def _layer(self, spec):
        runs = [StyledRun(text="Slanted", font=spec, size=40, color=BLACK)]
        layout = measure(runs, self.resolver, 560, 4, 1.0)
        return layout, render_text_layer((600, 120), layout, (20, 20, 580, 100))

    def test_bold_italic_falls_back_to_sheared_bold(self):
        resolved = self.resolver.resolve(FontSpec("DejaVuSans", bold=True, italic=True), 40)
        self.assertEqual(resolved.name, "DejaVuSans-Bold")
        self.assertTrue(resolved.synthetic_italic)

    def test_sheared_run_is_drawn(self):
        layout, slanted = self._layer(FontSpec("DejaVuSans", bold=True, italic=True))
        _upright_layout, upright = self._layer(FontSpec("DejaVuSans", bold=True))
        self.assertTrue(layout.lines[0].fragments[0].font.synthetic_italic)
        self.assertIsNotNone(slanted.getchannel("A").getbbox())
        self.assertIsNotNone(ImageChops.difference(slanted.getchannel("A"), upright.getchannel("A")).getbbox())


if __name__ == "__main__":
    unittest.main()
