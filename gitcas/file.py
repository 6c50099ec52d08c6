# file.py -- Safe access to object files
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

"""Safe access to object files."""

__all__ = [
    "FileLocked",
    "LockedFile",
    "ensure_dir_exists",
    "open_locked",
]

import os
import warnings
from types import TracebackType

PathLike = str | os.PathLike[str]


def ensure_dir_exists(dirname: PathLike, mode: int | None = None) -> None:
    """Ensure a directory exists, creating if necessary.

    Args:
      dirname: Directory to create, along with any missing parents
      mode: Optional permission bits to apply to a newly created directory
    """
    try:
        os.makedirs(dirname)
    except FileExistsError:
        return
    if mode is not None:
        os.chmod(dirname, mode)


class FileLocked(Exception):
    """File is already locked."""

    def __init__(self, filename: PathLike, lockfilename: str) -> None:
        """Initialize FileLocked.

        Args:
          filename: Name of the file that is locked
          lockfilename: Name of the lock file
        """
        self.filename = filename
        self.lockfilename = lockfilename
        super().__init__(filename, lockfilename)


def open_locked(
    filename: PathLike, mask: int = 0o644, fsync: bool = True
) -> "LockedFile":
    """Open a file for writing following the lock file protocol.

    The default file mask makes any created files user-writable and
    world-readable.

    Args:
      filename: Path to the file
      mask: File mask for the created file
      fsync: Whether to call fsync() before renaming into place
    Raises:
      FileLocked: if another writer holds the lock for filename
    """
    return LockedFile(filename, mask, fsync)


class LockedFile:
    """Write-only file that follows the lock file protocol.

    All writes to a file foo go into foo.lock in the same directory, and the
    lockfile is renamed over foo on close. Readers of foo therefore see
    either nothing or the complete contents.

    Note: You *must* call close() or abort() on a LockedFile for the lock to
        be released. Typically this will happen through the context manager.
    """

    def __init__(self, filename: PathLike, mask: int, fsync: bool = True) -> None:
        self._filename = os.fspath(filename)
        self._lockfilename = self._filename + ".lock"
        self._fsync = fsync
        try:
            fd = os.open(
                self._lockfilename,
                os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0),
                mask,
            )
        except FileExistsError as exc:
            raise FileLocked(filename, self._lockfilename) from exc
        self._file = os.fdopen(fd, "wb")
        self._closed = False

    @property
    def name(self) -> str:
        """Path of the file being written."""
        return self._filename

    @property
    def closed(self) -> bool:
        """Return whether the file is closed."""
        return self._closed

    def write(self, data: bytes) -> int:
        return self._file.write(data)

    def abort(self) -> None:
        """Close and discard the lockfile without overwriting the target.

        If the file is already closed, this is a no-op.
        """
        if self._closed:
            return
        self._file.close()
        try:
            os.remove(self._lockfilename)
        except FileNotFoundError:
            # The file may have been removed already, which is ok.
            pass
        self._closed = True

    def close(self) -> None:
        """Close this file, saving the lockfile over the original.

        Raises:
          OSError: if the original file could not be overwritten. The lock
            file is removed in that case.
        """
        if self._closed:
            return
        self._file.flush()
        if self._fsync:
            os.fsync(self._file.fileno())
        self._file.close()
        try:
            os.replace(self._lockfilename, self._filename)
        finally:
            self.abort()

    def __del__(self) -> None:
        if not getattr(self, "_closed", True):
            warnings.warn(f"unclosed {self!r}", ResourceWarning, stacklevel=2)
            self.abort()

    def __enter__(self) -> "LockedFile":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.abort()
        else:
            self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self._filename!r})>"
