import logging
import unittest
from logging.handlers import RotatingFileHandler
from unittest.mock import patch
import os
import shutil
import sys
import tempfile

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import scopes_logging
from scopes_logging import TRACE, configure_logging, resolve_log_level


class TestResolveLogLevel(unittest.TestCase):

    def test_known_levels(self):
        self.assertEqual(resolve_log_level("trace"), TRACE)
        self.assertEqual(resolve_log_level("DEBUG"), logging.DEBUG)
        self.assertEqual(resolve_log_level(" warning "), logging.WARNING)
        self.assertEqual(resolve_log_level("fatal"), logging.FATAL)

    def test_unknown_or_missing_is_info(self):
        self.assertEqual(resolve_log_level("verbose"), logging.INFO)
        self.assertEqual(resolve_log_level(None), logging.INFO)
        self.assertEqual(resolve_log_level(""), logging.INFO)

    def test_trace_level_name(self):
        self.assertEqual(logging.getLevelName(TRACE), "TRACE")


class TestConfigureLogging(unittest.TestCase):
    def setUp(self):
        self.root_logger = logging.getLogger()
        self.saved_handlers = list(self.root_logger.handlers)
        self.saved_level = self.root_logger.level
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        for handler in list(self.root_logger.handlers):
            if handler not in self.saved_handlers:
                self.root_logger.removeHandler(handler)
                handler.close()
        self.root_logger.setLevel(self.saved_level)
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    def _stream_handlers(self):
        return [
            handler for handler in self.root_logger.handlers
            if isinstance(handler, scopes_logging._ScopesStreamHandler)
        ]

    def test_sets_level_and_is_idempotent(self):
        self.assertEqual(configure_logging("debug"), logging.DEBUG)
        configure_logging("debug")

        self.assertEqual(self.root_logger.level, logging.DEBUG)
        self.assertEqual(len(self._stream_handlers()), 1)

    @patch('scopes_logging.resolve_log_level_name', return_value='warning')
    def test_level_from_settings(self, _mock_level_name):
        self.assertEqual(configure_logging(), logging.WARNING)
        self.assertEqual(self.root_logger.level, logging.WARNING)

    def test_rotating_file_handler_attached_once(self):
        log_file = os.path.join(self.tmp_dir, 'logs', 'onvif_scopes.log')
        configure_logging("info", log_file=log_file)
        configure_logging("info", log_file=log_file)

        file_handlers = [
            handler for handler in self.root_logger.handlers
            if isinstance(handler, RotatingFileHandler)
            and os.path.abspath(handler.baseFilename) == os.path.abspath(log_file)
        ]
        self.assertEqual(len(file_handlers), 1)

        logging.getLogger("scopes_parser").info("hello from test")
        file_handlers[0].flush()
        with open(log_file, 'r', encoding='utf-8') as handle:
            content = handle.read()
        self.assertIn("INFO scopes_parser: hello from test", content)


if __name__ == '__main__':
    unittest.main()
