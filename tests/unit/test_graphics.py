import sys
import threading
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "renderer"))

from quotecard_renderer import GraphicsContext, GraphicsContextFailure


class GraphicsContextTests(unittest.TestCase):
    def test_jobs_run_in_order_on_one_thread(self):
        seen = []
        threads = set()

        def job(n):
            threads.add(threading.get_ident())
            seen.append(n)
            return n * 2

        with GraphicsContext(queue_size=2) as ctx:
            futures = [ctx.submit(job, n) for n in range(10)]
            results = [f.result(timeout=5) for f in futures]

        self.assertEqual(results, [n * 2 for n in range(10)])
        self.assertEqual(seen, list(range(10)))
        self.assertEqual(len(threads), 1)
        self.assertNotIn(threading.get_ident(), threads)

    def test_failing_job_only_fails_itself(self):
        def boom():
            raise ValueError("bad frame")

        with GraphicsContext() as ctx:
            failed = ctx.submit(boom)
            with self.assertRaises(ValueError):
                failed.result(timeout=5)
            self.assertEqual(ctx.call(lambda: "still alive"), "still alive")

    def test_submit_after_close(self):
        ctx = GraphicsContext()
        ctx.close()
        self.assertTrue(ctx.closed)
        with self.assertRaises(GraphicsContextFailure):
            ctx.submit(lambda: None)
        ctx.close()


if __name__ == "__main__":
    unittest.main()
