# config.py -- Reading store configuration files
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

"""Reading store configuration files.

The syntax is the subset of git-config that an object store needs:
sections with optional quoted subsections, ``name = value`` settings,
comments, quoting, escapes and line continuations. Includes are not
supported.
"""

__all__ = [
    "Config",
    "ConfigDict",
    "ConfigFile",
]

import os
import sys
from collections.abc import Iterator
from typing import IO, overload

from .log_utils import getLogger

logger = getLogger(__name__)

Name = bytes
NameLike = bytes | str
Section = tuple[bytes, ...]
SectionLike = bytes | str | tuple[bytes | str, ...]
Value = bytes

_TRUE_VALUES = (b"true", b"yes", b"on", b"1")
_FALSE_VALUES = (b"false", b"no", b"off", b"0")


def _lower_section(section: Section) -> Section:
    # Section names are case-insensitive, subsection names are not
    return (section[0].lower(),) + section[1:]


class Config:
    """A store configuration."""

    def get(self, section: SectionLike, name: NameLike) -> Value:
        """Retrieve the contents of a configuration setting.

        Args:
          section: Tuple with section name and optional subsection name
          name: Variable name
        Returns:
          Contents of the setting
        Raises:
          KeyError: if the value is not set
        """
        raise NotImplementedError(self.get)

    @overload
    def get_boolean(
        self, section: SectionLike, name: NameLike, default: bool
    ) -> bool: ...

    @overload
    def get_boolean(self, section: SectionLike, name: NameLike) -> bool | None: ...

    def get_boolean(
        self, section: SectionLike, name: NameLike, default: bool | None = None
    ) -> bool | None:
        """Retrieve a configuration setting as boolean.

        Args:
          section: Tuple with section name and optional subsection name
          name: Name of the setting
          default: Default value if setting is not found
        Returns:
          Contents of the setting
        Raises:
          ValueError: if the value is not a valid boolean string
        """
        try:
            value = self.get(section, name)
        except KeyError:
            return default
        if value.lower() in _TRUE_VALUES:
            return True
        elif value.lower() in _FALSE_VALUES:
            return False
        raise ValueError(f"not a valid boolean string: {value!r}")

    @overload
    def get_int(self, section: SectionLike, name: NameLike, default: int) -> int: ...

    @overload
    def get_int(self, section: SectionLike, name: NameLike) -> int | None: ...

    def get_int(
        self, section: SectionLike, name: NameLike, default: int | None = None
    ) -> int | None:
        """Retrieve a configuration setting as integer.

        Raises:
          ValueError: if the value is not a valid integer
        """
        try:
            value = self.get(section, name)
        except KeyError:
            return default
        try:
            return int(value.decode("ascii"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise ValueError(f"not a valid integer: {value!r}") from exc

    def sections(self) -> Iterator[Section]:
        """Iterate over the sections.

        Returns: Iterator over section tuples
        """
        raise NotImplementedError(self.sections)


class ConfigDict(Config):
    """Store configuration kept in a dictionary."""

    def __init__(self, encoding: str | None = None) -> None:
        if encoding is None:
            encoding = sys.getdefaultencoding()
        self.encoding = encoding
        self._values: dict[Section, dict[Name, Value]] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._values!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, self.__class__) and other._values == self._values

    def _check_section_and_name(
        self, section: SectionLike, name: NameLike
    ) -> tuple[Section, Name]:
        if not isinstance(section, tuple):
            section = (section,)

        checked_section = tuple(
            [
                subsection.encode(self.encoding)
                if not isinstance(subsection, bytes)
                else subsection
                for subsection in section
            ]
        )

        if not isinstance(name, bytes):
            name = name.encode(self.encoding)

        return _lower_section(checked_section), name.lower()

    def get(self, section: SectionLike, name: NameLike) -> Value:
        section, name = self._check_section_and_name(section, name)

        if len(section) > 1:
            try:
                return self._values[section][name]
            except KeyError:
                pass

        return self._values[(section[0],)][name]

    def set(self, section: SectionLike, name: NameLike, value: bytes | str | bool) -> None:
        """Set a configuration value.

        Args:
            section: Section name
            name: Setting name
            value: Configuration value
        """
        section, name = self._check_section_and_name(section, name)

        if isinstance(value, bool):
            value = b"true" if value else b"false"

        if not isinstance(value, bytes):
            value = value.encode(self.encoding)

        self._values.setdefault(section, {})[name] = value

    def sections(self) -> Iterator[Section]:
        return iter(list(self._values.keys()))


_ESCAPE_TABLE = {
    ord(b"\\"): ord(b"\\"),
    ord(b'"'): ord(b'"'),
    ord(b"n"): ord(b"\n"),
    ord(b"t"): ord(b"\t"),
    ord(b"b"): ord(b"\b"),
}
_COMMENT_CHARS = [ord(b"#"), ord(b";")]
_WHITESPACE_CHARS = [ord(b"\t"), ord(b" ")]


def _parse_string(value: bytes) -> bytes:
    value_array = bytearray(value.strip())
    ret = bytearray()
    whitespace = bytearray()
    in_quotes = False
    i = 0
    while i < len(value_array):
        c = value_array[i]
        if c == ord(b"\\"):
            i += 1
            if i >= len(value_array):
                raise ValueError("escape character at end of value")
            try:
                v = _ESCAPE_TABLE[value_array[i]]
            except KeyError as exc:
                raise ValueError(
                    f"escape character followed by unknown character "
                    f"{value_array[i - 1 : i + 1]!r} at {i} in {value!r}"
                ) from exc
            if whitespace:
                ret.extend(whitespace)
                whitespace = bytearray()
            ret.append(v)
        elif c == ord(b'"'):
            in_quotes = not in_quotes
        elif c in _COMMENT_CHARS and not in_quotes:
            # the rest of the line is a comment
            break
        elif c in _WHITESPACE_CHARS and not in_quotes:
            whitespace.append(c)
        else:
            if whitespace:
                ret.extend(whitespace)
                whitespace = bytearray()
            ret.append(c)
        i += 1

    if in_quotes:
        raise ValueError("missing end quote")

    return bytes(ret)


def _check_variable_name(name: bytes) -> bool:
    if not name[:1].isalpha():
        return False
    for i in range(len(name)):
        c = name[i : i + 1]
        if not c.isalnum() and c != b"-":
            return False
    return True


def _check_section_name(name: bytes) -> bool:
    if not name:
        return False
    for i in range(len(name)):
        c = name[i : i + 1]
        if not c.isalnum() and c not in (b"-", b"."):
            return False
    return True


def _strip_comments(line: bytes) -> bytes:
    comment_bytes = {ord(b"#"), ord(b";")}
    quote = ord(b'"')
    string_open = False
    for i, character in enumerate(bytearray(line)):
        # Comment characters outside balanced quotes denote comment start
        if character == quote:
            string_open = not string_open
        elif not string_open and character in comment_bytes:
            return line[:i]
    return line


def _is_line_continuation(value: bytes) -> bool:
    """Check if a value ends with an unescaped line continuation backslash."""
    if value.endswith(b"\\\r\n"):
        content = value[:-2]
    elif value.endswith(b"\\\n"):
        content = value[:-1]
    else:
        return False
    backslash_count = len(content) - len(content.rstrip(b"\\"))
    return backslash_count % 2 == 1


def _strip_continuation(value: bytes) -> bytes:
    if value.endswith(b"\\\r\n"):
        return value[:-3]
    return value[:-2]


def _parse_section_header_line(line: bytes) -> tuple[Section, bytes]:
    # Parse section header ("[bla]")
    line = _strip_comments(line).rstrip()
    in_quotes = False
    escaped = False
    for i, c in enumerate(line):
        if escaped:
            escaped = False
            continue
        if c == ord(b'"'):
            in_quotes = not in_quotes
        if c == ord(b"\\"):
            escaped = True
        if c == ord(b"]") and not in_quotes:
            last = i
            break
    else:
        raise ValueError("expected trailing ]")
    pts = line[1:last].split(b" ", 1)
    line = line[last + 1 :]
    section: Section
    if len(pts) == 2:
        if pts[1][:1] != b'"' or pts[1][-1:] != b'"':
            raise ValueError(f"Invalid subsection {pts[1]!r}")
        if not _check_section_name(pts[0]):
            raise ValueError(f"invalid section name {pts[0]!r}")
        section = (pts[0], pts[1][1:-1])
    else:
        if not _check_section_name(pts[0]):
            raise ValueError(f"invalid section name {pts[0]!r}")
        pts = pts[0].split(b".", 1)
        if len(pts) == 2:
            section = (pts[0], pts[1])
        else:
            section = (pts[0],)
    return _lower_section(section), line


class ConfigFile(ConfigDict):
    """A store configuration file, like ``<root>/config``."""

    def __init__(self, encoding: str | None = None) -> None:
        super().__init__(encoding=encoding)
        self.path: str | None = None

    @classmethod
    def from_file(cls, f: IO[bytes]) -> "ConfigFile":
        """Read configuration from a file-like object.

        Raises:
          ValueError: if the file is not valid configuration syntax
        """
        ret = cls()
        section: Section | None = None
        setting: bytes | None = None
        continuation = b""
        for lineno, line in enumerate(f.readlines()):
            if lineno == 0 and line.startswith(b"\xef\xbb\xbf"):
                line = line[3:]
            line = line.lstrip()
            if setting is not None:
                # continuation line
                assert section is not None
                if _is_line_continuation(line):
                    continuation += _strip_continuation(line)
                    continue
                ret._values[section][setting] = _parse_string(continuation + line)
                setting = None
                continue
            if line[:1] == b"[":
                section, line = _parse_section_header_line(line)
                ret._values.setdefault(section, {})
            if _strip_comments(line).strip() == b"":
                continue
            if section is None:
                raise ValueError(f"setting {line!r} without section")
            try:
                name, value = line.split(b"=", 1)
            except ValueError:
                name = line
                value = b"true"
            name = _strip_comments(name).strip()
            if not _check_variable_name(name):
                raise ValueError(f"invalid variable name {name!r}")
            if _is_line_continuation(value):
                setting = name.lower()
                continuation = _strip_continuation(value)
            else:
                ret._values[section][name.lower()] = _parse_string(value)
        if setting is not None:
            assert section is not None
            ret._values[section][setting] = _parse_string(continuation)
        return ret

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> "ConfigFile":
        """Read configuration from a file on disk."""
        abs_path = os.fspath(path)
        logger.debug("reading configuration from %s", abs_path)
        with open(abs_path, "rb") as f:
            ret = cls.from_file(f)
        ret.path = abs_path
        return ret
