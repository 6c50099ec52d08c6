# test_log_utils.py -- Tests for log_utils.py
# Copyright (C) 2026 The gitcas contributors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# gitcas is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Tests for gitcas.log_utils."""

import logging
import os

from gitcas.log_utils import (
    _GITCAS_LOGGER,
    _NULL_HANDLER,
    _configure_logging_from_trace,
    _get_trace_target,
    _NullHandler,
    default_logging_config,
    getLogger,
    remove_null_handler,
)

from . import TestCase


class LogUtilsTests(TestCase):
    """Tests for log_utils."""

    def setUp(self) -> None:
        super().setUp()
        self.original_handlers = list(_GITCAS_LOGGER.handlers)
        root_logger = logging.getLogger()
        self.original_root_handlers = list(root_logger.handlers)
        self.original_root_level = root_logger.level
        root_logger.handlers = []

    def tearDown(self) -> None:
        _GITCAS_LOGGER.handlers = self.original_handlers
        root_logger = logging.getLogger()
        for handler in root_logger.handlers:
            if handler not in self.original_root_handlers:
                handler.close()
        root_logger.handlers = self.original_root_handlers
        root_logger.setLevel(self.original_root_level)
        super().tearDown()

    def test_null_handler(self) -> None:
        handler = _NullHandler()
        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname="test_log_utils.py",
            lineno=1,
            msg="Test message",
            args=(),
            exc_info=None,
        )
        # Should not raise any exceptions
        handler.emit(record)

    def test_get_logger(self) -> None:
        logger = getLogger("gitcas.test")
        self.assertIsInstance(logger, logging.Logger)
        self.assertEqual(logger.name, "gitcas.test")

    def test_null_handler_installed(self) -> None:
        self.assertIn(_NULL_HANDLER, _GITCAS_LOGGER.handlers)

    def test_remove_null_handler(self) -> None:
        if _NULL_HANDLER not in _GITCAS_LOGGER.handlers:
            _GITCAS_LOGGER.addHandler(_NULL_HANDLER)
        remove_null_handler()
        self.assertNotIn(_NULL_HANDLER, _GITCAS_LOGGER.handlers)

    def test_default_logging_config(self) -> None:
        default_logging_config()
        self.assertNotIn(_NULL_HANDLER, _GITCAS_LOGGER.handlers)
        root_logger = logging.getLogger()
        self.assertTrue(root_logger.handlers)
        self.assertEqual(logging.INFO, root_logger.level)

    def test_get_trace_target_disabled(self) -> None:
        self.assertIsNone(_get_trace_target())
        for value in ("", "0", "false", "FALSE"):
            self.overrideEnv("GITCAS_TRACE", value)
            self.assertIsNone(_get_trace_target())

    def test_get_trace_target_stderr(self) -> None:
        for value in ("1", "2", "true", "TRUE"):
            self.overrideEnv("GITCAS_TRACE", value)
            self.assertEqual(_get_trace_target(), 2)

    def test_get_trace_target_file(self) -> None:
        path = os.path.join(self.mkdtemp(), "trace.log")
        self.overrideEnv("GITCAS_TRACE", path)
        self.assertEqual(_get_trace_target(), path)

    def test_get_trace_target_relative_path(self) -> None:
        self.overrideEnv("GITCAS_TRACE", "relative/trace.log")
        self.assertIsNone(_get_trace_target())

    def test_configure_logging_disabled(self) -> None:
        self.assertFalse(_configure_logging_from_trace())

    def test_configure_logging_stderr(self) -> None:
        self.overrideEnv("GITCAS_TRACE", "1")
        self.assertTrue(_configure_logging_from_trace())
        self.assertEqual(logging.DEBUG, logging.getLogger().level)

    def test_configure_logging_file(self) -> None:
        path = os.path.join(self.mkdtemp(), "trace.log")
        self.overrideEnv("GITCAS_TRACE", path)
        self.assertTrue(_configure_logging_from_trace())
        getLogger("gitcas.test").debug("traced message")
        for handler in logging.getLogger().handlers:
            handler.flush()
        with open(path) as f:
            self.assertIn("traced message", f.read())

    def test_configure_logging_directory(self) -> None:
        tempdir = self.mkdtemp()
        self.overrideEnv("GITCAS_TRACE", tempdir)
        self.assertTrue(_configure_logging_from_trace())
        self.assertTrue(
            os.path.exists(os.path.join(tempdir, f"trace.{os.getpid()}"))
        )

    def test_default_logging_config_with_trace(self) -> None:
        self.overrideEnv("GITCAS_TRACE", "1")
        default_logging_config()
        self.assertNotIn(_NULL_HANDLER, _GITCAS_LOGGER.handlers)
        self.assertEqual(logging.DEBUG, logging.getLogger().level)
