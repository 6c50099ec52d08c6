# log_utils.py -- Logging utilities for gitcas
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

"""Logging utilities for gitcas.

gitcas is used as a library, and clients may not want to see any logging
output. A no-op handler is therefore attached to the ``gitcas`` logger at
import time; applications that do want output call default_logging_config()
or configure logging themselves after remove_null_handler().

For details on the null handler approach, see:
http://docs.python.org/library/logging.html#configuring-logging-for-a-library
"""

__all__ = [
    "default_logging_config",
    "getLogger",
    "remove_null_handler",
]

import logging
import os
import sys

getLogger = logging.getLogger

TRACE_ENVIRONMENT_VARIABLE = "GITCAS_TRACE"

_TRACE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


class _NullHandler(logging.Handler):
    """No-op logging handler to avoid unexpected logging warnings."""

    def emit(self, record: logging.LogRecord) -> None:
        pass


_NULL_HANDLER = _NullHandler()
_GITCAS_LOGGER = getLogger("gitcas")
_GITCAS_LOGGER.addHandler(_NULL_HANDLER)


def _get_trace_target() -> str | int | None:
    """Get the trace target from the GITCAS_TRACE environment variable.

    Returns:
        - None if tracing is disabled
        - 2 for stderr output (values "1", "2", "true")
        - str for file path (absolute paths or directories)
    """
    trace_value = os.environ.get(TRACE_ENVIRONMENT_VARIABLE, "")

    if not trace_value or trace_value.lower() in ("0", "false"):
        return None

    if trace_value.lower() in ("1", "2", "true"):
        return 2

    if os.path.isabs(trace_value):
        return trace_value

    # Anything else is treated as disabled
    return None


def _configure_logging_from_trace() -> bool:
    """Configure logging based on the trace environment variable.

    Returns True if trace configuration was successful, False otherwise.
    """
    trace_target = _get_trace_target()
    if trace_target is None:
        return False

    if trace_target == 2:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format=_TRACE_FORMAT)
        return True

    assert isinstance(trace_target, str)
    if os.path.isdir(trace_target):
        # For directories, create a file per process
        filename = os.path.join(trace_target, f"trace.{os.getpid()}")
    else:
        filename = trace_target

    try:
        logging.basicConfig(
            level=logging.DEBUG, filename=filename, filemode="a", format=_TRACE_FORMAT
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Failed to open trace file {filename}: {e}\n")
        return False
    return True


def default_logging_config() -> None:
    """Set up the default gitcas loggers.

    Respects the GITCAS_TRACE environment variable for trace output:
    - If it is set to "1", "2", or "true", trace to stderr
    - If it is set to an absolute path, trace to that file
    - If the path is a directory, trace to files in that directory (per process)
    - Otherwise, log at INFO level to stderr
    """
    remove_null_handler()

    if not _configure_logging_from_trace():
        logging.basicConfig(
            level=logging.INFO,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s: %(message)s",
        )


def remove_null_handler() -> None:
    """Remove the null handler from the gitcas loggers.

    If a caller wants to set up logging using something other than
    default_logging_config, calling this function first is a minor optimization
    to avoid the overhead of using the _NullHandler.
    """
    _GITCAS_LOGGER.removeHandler(_NULL_HANDLER)
