"""
Testes da configuração de logging
"""

import json
import logging
import unittest

from profilecut.logging_config import ContextFormatter, JSONFormatter, setup_logging


def make_record(**extra):
    record = logging.LogRecord("profilecut-core", logging.INFO, __file__, 10,
                               "otimização concluída: %d barras", (2,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters(unittest.TestCase):

    def test_json_carries_context_fields(self):
        line = JSONFormatter().format(make_record(request_id="abc123", algorithm="ffd"))
        entry = json.loads(line)
        self.assertEqual(entry["msg"], "otimização concluída: 2 barras")
        self.assertEqual(entry["logger"], "profilecut-core")
        self.assertEqual(entry["request_id"], "abc123")
        self.assertEqual(entry["algorithm"], "ffd")
        self.assertNotIn("duration_ms", entry)

    def test_plain_text_appends_context(self):
        line = ContextFormatter().format(make_record(request_id="abc123", algorithm="bfd"))
        self.assertTrue(line.endswith("[request_id=abc123 algorithm=bfd]"))

    def test_plain_text_without_context(self):
        line = ContextFormatter().format(make_record())
        self.assertTrue(line.endswith("otimização concluída: 2 barras"))


class TestSetupLogging(unittest.TestCase):

    def setUp(self):
        root = logging.getLogger()
        self.saved = (list(root.handlers), root.level)

    def tearDown(self):
        root = logging.getLogger()
        root.handlers, level = self.saved
        root.setLevel(level)

    def test_json_output_installs_single_handler(self):
        setup_logging("debug", True)
        root = logging.getLogger()
        self.assertEqual(len(root.handlers), 1)
        self.assertIsInstance(root.handlers[0].formatter, JSONFormatter)
        self.assertEqual(root.level, logging.DEBUG)

    def test_plain_output_quiets_noisy_loggers(self):
        setup_logging("INFO", False)
        self.assertIsInstance(logging.getLogger().handlers[0].formatter, ContextFormatter)
        self.assertEqual(logging.getLogger("matplotlib").level, logging.WARNING)
