# errors.py -- errors for gitcas
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

"""gitcas-related exception classes."""

__all__ = [
    "ChecksumMismatch",
    "CorruptObject",
    "CorruptStream",
    "EncodingError",
    "MalformedHeader",
    "MalformedTree",
    "NotBlobError",
    "NotStoreError",
    "NotTreeError",
    "ObjectFormatException",
    "ObjectNotFound",
    "UnexpectedType",
]


def _as_str(sha: bytes | str) -> str:
    if isinstance(sha, bytes):
        return sha.decode("ascii", "replace")
    return sha


class ChecksumMismatch(Exception):
    """A checksum didn't match the expected contents."""

    def __init__(
        self,
        expected: bytes | str,
        got: bytes | str,
        extra: str | None = None,
    ) -> None:
        """Initialize a ChecksumMismatch exception.

        Args:
            expected: The expected hex digest.
            got: The hex digest that was actually computed.
            extra: Optional additional error information.
        """
        self.expected = _as_str(expected)
        self.got = _as_str(got)
        self.extra = extra
        message = f"Checksum mismatch: Expected {self.expected}, got {self.got}"
        if self.extra is not None:
            message += f"; {extra}"
        Exception.__init__(self, message)


class EncodingError(ValueError):
    """An object could not be encoded because its type is not known."""

    def __init__(self, type_name: bytes | str) -> None:
        """Initialize an EncodingError.

        Args:
            type_name: The unrecognised type name.
        """
        self.type_name = type_name
        ValueError.__init__(self, f"unknown object type {type_name!r}")


class ObjectFormatException(Exception):
    """Indicates an error parsing an object."""


class MalformedHeader(ObjectFormatException):
    """The ``<type> <size>\\0`` header of an encoded object is invalid."""


class MalformedTree(ObjectFormatException):
    """A tree payload does not parse into a clean sequence of entries."""


class CorruptStream(Exception):
    """Compressed object data could not be decompressed."""


class ObjectNotFound(KeyError):
    """Indicates that a requested object is not in the store."""

    def __init__(self, sha: bytes | str) -> None:
        """Initialize an ObjectNotFound exception.

        Args:
            sha: The hex digest of the missing object.
        """
        self.sha = sha
        KeyError.__init__(self, sha)

    def __str__(self) -> str:
        return f"{_as_str(self.sha)} is not in the object store"


class CorruptObject(Exception):
    """A stored object exists but can not be read back."""

    def __init__(self, sha: bytes | str, reason: str) -> None:
        """Initialize a CorruptObject exception.

        Args:
            sha: The hex digest of the unreadable object.
            reason: Description of what went wrong.
        """
        self.sha = sha
        self.reason = reason
        Exception.__init__(self, f"object {_as_str(sha)} is corrupt: {reason}")


class UnexpectedType(Exception):
    """Baseclass for all the _ is not a _ exceptions on objects.

    Do not instantiate directly.

    Subclasses should define a type_name attribute that indicates what
    was expected if they were raised.
    """

    type_name: str

    def __init__(self, sha: bytes | str, actual: bytes | str | None = None) -> None:
        """Initialize an UnexpectedType exception.

        Args:
            sha: The hex digest of the object that was not of the expected type.
            actual: The type name the object turned out to have, if known.
        """
        self.sha = sha
        self.actual = _as_str(actual) if actual is not None else None
        message = f"{_as_str(sha)} is not a {self.type_name}"
        if self.actual is not None:
            message += f" (found {self.actual})"
        Exception.__init__(self, message)


class NotBlobError(UnexpectedType):
    """Indicates that the sha requested does not point to a blob."""

    type_name = "blob"


class NotTreeError(UnexpectedType):
    """Indicates that the sha requested does not point to a tree."""

    type_name = "tree"


class NotStoreError(Exception):
    """Indicates that no object store exists at the given location."""

    def __init__(self, path: str) -> None:
        self.path = path
        Exception.__init__(self, f"No object store found at {path}")
