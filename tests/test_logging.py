import json
import logging
import unittest

from repo_inventory.core.logging import JSONFormatter, setup_logging
from repo_inventory.core.tracing import TracingContext


class TestJSONFormatter(unittest.TestCase):
    def setUp(self):
        TracingContext.clear()

    def tearDown(self):
        TracingContext.clear()

    def _record(self, **extra):
        record = logging.LogRecord(
            name="repo_inventory.scanner.runner",
            level=logging.ERROR,
            pathname=__file__,
            lineno=10,
            msg="Detector %s failed",
            args=("docker",),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_includes_tracing_context(self):
        TracingContext.set(correlation_id="abc", org="acme", repo="web")

        payload = json.loads(JSONFormatter().format(self._record(detector="docker")))

        self.assertEqual(payload["message"], "Detector docker failed")
        self.assertEqual(payload["org"], "acme")
        self.assertEqual(payload["repo"], "web")
        self.assertEqual(payload["correlation_id"], "abc")
        self.assertEqual(payload["detector"], "docker")

    def test_log_prefix(self):
        self.assertEqual(TracingContext.get_log_prefix(), "")
        TracingContext.set(org="acme", repo="web")
        self.assertEqual(TracingContext.get_log_prefix(), "[acme/web]")

    def test_correlation_id_created_once(self):
        first = TracingContext.get_or_create_correlation_id()
        self.assertTrue(first)
        self.assertEqual(TracingContext.get_or_create_correlation_id(), first)


class TestSetupLogging(unittest.TestCase):
    def setUp(self):
        self.root = logging.getLogger()
        self.saved_handlers = self.root.handlers[:]
        self.saved_level = self.root.level
        self.root.handlers = []

    def tearDown(self):
        self.root.handlers = self.saved_handlers
        self.root.setLevel(self.saved_level)

    def test_json_format_installs_json_formatter(self):
        setup_logging(log_format="json")

        self.assertEqual(len(self.root.handlers), 1)
        self.assertIsInstance(self.root.handlers[0].formatter, JSONFormatter)
        self.assertEqual(logging.getLogger("httpx").level, logging.WARNING)

    def test_second_call_only_changes_level(self):
        setup_logging(logging.INFO, log_format="text")
        setup_logging(logging.DEBUG, log_format="json")

        self.assertEqual(len(self.root.handlers), 1)
        self.assertNotIsInstance(self.root.handlers[0].formatter, JSONFormatter)
        self.assertEqual(self.root.level, logging.DEBUG)


if __name__ == "__main__":
    unittest.main()
