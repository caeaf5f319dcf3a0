import contextlib
import io
import json
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "apps" / "cli"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "renderer"))
sys.path.insert(0, str(ROOT / "packages" / "sanitizer"))

from quotecard_app.cli import build_parser, cmd_render, cmd_sanitize


def _run(func, argv):
    args = build_parser().parse_args(argv)
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        code = func(args)
    return code, out.getvalue()


class CliParserTests(unittest.TestCase):
    def test_render_command(self):
        args = build_parser().parse_args(["render", "--request", "req.json", "--theme", "noir", "--aspect", "square"])
        self.assertEqual(args.command, "render")
        self.assertEqual(args.theme, "noir")
        self.assertEqual(args.aspect, "square")
        self.assertFalse(args.no_attribution)

    def test_render_rejects_unknown_format(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                build_parser().parse_args(["render", "--request", "-", "--format", "gif"])

    def test_sanitize_defaults_to_stdin(self):
        args = build_parser().parse_args(["sanitize"])
        self.assertEqual(args.source, "-")

    def test_themes_and_doctor(self):
        self.assertEqual(build_parser().parse_args(["themes"]).command, "themes")
        self.assertEqual(build_parser().parse_args(["doctor"]).command, "doctor")


class CliCommandTests(unittest.TestCase):
    def test_sanitize_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "frag.html"
            path.write_text('<div class="x"><b>Bold</b> move</div>', encoding="utf-8")
            code, out = _run(cmd_sanitize, ["sanitize", str(path)])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "<strong>Bold</strong> move")

    def test_render_to_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            req = Path(tmp) / "req.json"
            req.write_text(json.dumps({"id": "cli-1", "text": "Short quote", "sourceTitle": "My Page"}), encoding="utf-8")
            code, out = _run(cmd_render, ["render", "--request", str(req), "--out", tmp, "--aspect", "square"])
            payload = json.loads(out)
            written = Path(payload["path"])
            self.assertEqual(code, 0)
            self.assertTrue(payload["success"])
            self.assertNotIn("dataUrl", payload)
            self.assertTrue(written.name.startswith("quotecard-my-page-"))
            self.assertTrue(written.name.endswith(".png"))
            self.assertGreater(written.stat().st_size, 0)

    def test_render_unknown_theme_exit_code(self):
        with tempfile.TemporaryDirectory() as tmp:
            req = Path(tmp) / "req.json"
            req.write_text(json.dumps({"id": "cli-2", "text": "x"}), encoding="utf-8")
            code, out = _run(cmd_render, ["render", "--request", str(req), "--theme", "missing"])
        self.assertEqual(code, 2)
        self.assertEqual(json.loads(out)["errorMessage"], "Theme 'missing' not found")

    def test_malformed_request_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            req = Path(tmp) / "req.json"
            req.write_text("{\"id\": ", encoding="utf-8")
            code, out = _run(cmd_render, ["render", "--request", str(req)])
        self.assertEqual(code, 2)
        payload = json.loads(out)
        self.assertFalse(payload["success"])
        self.assertTrue(payload["errorMessage"].startswith("Invalid render request"))

    def test_non_numeric_created_at(self):
        with tempfile.TemporaryDirectory() as tmp:
            req = Path(tmp) / "req.json"
            req.write_text(json.dumps({"id": "cli-3", "text": "x", "createdAt": "soon"}), encoding="utf-8")
            code, out = _run(cmd_render, ["render", "--request", str(req)])
        self.assertEqual(code, 2)
        self.assertTrue(json.loads(out)["errorMessage"].startswith("Invalid render request"))


if __name__ == "__main__":
    unittest.main()
