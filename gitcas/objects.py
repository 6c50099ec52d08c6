# objects.py -- Access to stored objects and their encoded form
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

"""Access to stored objects and their encoded form.

Every object is stored as ``<type> <size>\\0<payload>``, compressed with
zlib and named by the digest of the uncompressed encoding.
"""

__all__ = [
    "OBJECT_CLASSES",
    "S_IFGITLINK",
    "Blob",
    "ObjectID",
    "RawObjectID",
    "ShaFile",
    "Tree",
    "TreeEntry",
    "compress",
    "decode_object",
    "decompress",
    "encode_object",
    "hex_to_filename",
    "hex_to_sha",
    "object_class",
    "object_header",
    "parse_tree",
    "serialize_tree",
    "sha_to_hex",
    "sorted_tree_items",
    "valid_hexsha",
]

import binascii
import os
import stat
import zlib
from collections.abc import Iterable, Iterator
from typing import NamedTuple, NewType

from .errors import CorruptStream, EncodingError, MalformedHeader, MalformedTree
from .object_format import DEFAULT_OBJECT_FORMAT, ObjectFormat

# Hex representation of an object digest, as ASCII bytes
ObjectID = NewType("ObjectID", bytes)

# Binary representation of an object digest
RawObjectID = NewType("RawObjectID", bytes)

S_IFGITLINK = 0o160000

_DIGITS = b"0123456789"
_OCTAL_DIGITS = b"01234567"
_HEX_DIGITS = b"0123456789abcdef"

# The type token is searched for within this many leading bytes only.
_MAX_TYPE_TOKEN = 32


def S_ISGITLINK(m: int) -> bool:
    """Check if a mode indicates a submodule.

    Args:
      m: Mode to check
    Returns: a ``boolean``
    """
    return stat.S_IFMT(m) == S_IFGITLINK


def sha_to_hex(sha: bytes) -> ObjectID:
    """Takes a binary digest and returns its lowercase hex form."""
    return ObjectID(binascii.hexlify(sha))


def hex_to_sha(hex: bytes | str) -> RawObjectID:
    """Takes a hex digest and returns the binary digest."""
    try:
        return RawObjectID(binascii.unhexlify(hex))
    except (TypeError, binascii.Error, ValueError) as exc:
        if isinstance(hex, bytes):
            hex = hex.decode("ascii", "replace")
        raise ValueError(f"invalid hexsha: {hex!r}") from exc


def valid_hexsha(hex: bytes | str, hex_length: int = 40) -> bool:
    """Check whether ``hex`` is a lowercase hex digest of the given length."""
    if isinstance(hex, str):
        try:
            hex = hex.encode("ascii")
        except UnicodeEncodeError:
            return False
    if len(hex) != hex_length:
        return False
    return all(c in _HEX_DIGITS for c in hex)


def hex_to_filename(path: str | os.PathLike[str], hex: bytes) -> str:
    """Takes a hex digest and returns its filename relative to the given path.

    The first two hex characters name a fan-out directory, the rest name the
    file within it.
    """
    dir_name = hex[:2].decode("ascii")
    file_name = hex[2:].decode("ascii")
    return os.path.join(path, dir_name, file_name)


def object_class(type: bytes | str | int) -> "type[ShaFile] | None":
    """Get the object class corresponding to the given type.

    Args:
      type: Either a type name string or a numeric type.
    Returns: The ShaFile subclass corresponding to the given type, or None if
      type is not a valid type name/number.
    """
    if isinstance(type, str):
        type = type.encode("ascii", "replace")
    return _TYPE_MAP.get(type, None)


def object_header(type_name: bytes, length: int) -> bytes:
    """Return an object header for the given type name and payload length."""
    return type_name + b" " + str(length).encode("ascii") + b"\0"


def encode_object(type_name: bytes | str, payload: bytes) -> bytes:
    """Encode a payload into its canonical stored form.

    Args:
      type_name: Name of the object type (e.g. ``b"blob"``)
      payload: Raw object payload
    Returns: ``<type> <size>\\0<payload>``
    Raises:
      EncodingError: if type_name is not a known object type
    """
    cls = object_class(type_name)
    if cls is None:
        raise EncodingError(type_name)
    return object_header(cls.type_name, len(payload)) + payload


def _parse_object_header(data: bytes) -> "tuple[type[ShaFile], int, int]":
    """Parse the header of an encoded object.

    The size is read as the run of decimal digits following the type token,
    and the header ends at the byte right after that run, which must be NUL.
    The payload itself is never scanned.

    Returns: tuple with object class, declared size and payload offset
    """
    space = data.find(b" ", 0, _MAX_TYPE_TOKEN)
    if space == -1:
        raise MalformedHeader("object type is not followed by a space")
    type_name = data[:space]
    cls = object_class(type_name)
    if cls is None:
        raise MalformedHeader(f"unknown object type {type_name!r}")
    end = space + 1
    while end < len(data) and data[end] in _DIGITS:
        end += 1
    size_text = data[space + 1 : end]
    if not size_text:
        raise MalformedHeader("object size is missing")
    if len(size_text) > 1 and size_text[:1] == b"0":
        raise MalformedHeader("object size is not in canonical format")
    if end >= len(data) or data[end] != 0:
        raise MalformedHeader("object size is not followed by a null byte")
    return cls, int(size_text), end + 1


def decode_object(data: bytes) -> tuple[bytes, int, bytes]:
    """Decode an encoded object.

    Exactly ``size`` bytes following the header are returned as payload. If
    the data is shorter than the declared size, the payload is short too;
    callers that need the two to agree must compare them.

    Args:
      data: Encoded object, as produced by encode_object
    Returns: tuple with type name, declared size and payload
    Raises:
      MalformedHeader: if the header is not well-formed
    """
    cls, size, offset = _parse_object_header(data)
    return cls.type_name, size, data[offset : offset + size]


def compress(data: bytes, level: int = -1) -> bytes:
    """Compress encoded object data for storage."""
    return zlib.compress(data, level)


def decompress(data: bytes) -> bytes:
    """Decompress stored object data.

    Raises:
      CorruptStream: if data is not exactly one complete zlib stream
    """
    dcomp = zlib.decompressobj()
    try:
        dcomped = dcomp.decompress(data)
        dcomped += dcomp.flush()
    except zlib.error as exc:
        raise CorruptStream(f"invalid zlib stream: {exc}") from exc
    if not dcomp.eof:
        raise CorruptStream("zlib stream is truncated")
    if dcomp.unused_data:
        raise CorruptStream(
            f"{len(dcomp.unused_data)} bytes of trailing data after zlib stream"
        )
    return dcomped


class TreeEntry(NamedTuple):
    """Named tuple encapsulating a single tree entry."""

    mode: bytes
    name: bytes
    sha: ObjectID

    def mode_int(self) -> int:
        """Return the entry mode as an integer."""
        return int(self.mode, 8)


def _check_entry_name(name: bytes) -> bool:
    return bool(name) and b"/" not in name and b"\0" not in name


def parse_tree(text: bytes, sha_length: int = 20) -> list[TreeEntry]:
    """Parse a tree payload.

    Args:
      text: Serialized text to parse
      sha_length: Length of the binary digest in each entry
    Returns: list of TreeEntry, in the order they appear in text
    Raises:
      MalformedTree: if text does not consist of well-formed entries only
    """
    entries = []
    count = 0
    length = len(text)
    while count < length:
        mode_end = text.find(b" ", count)
        if mode_end == -1:
            raise MalformedTree(f"entry at offset {count} has no mode separator")
        mode = text[count:mode_end]
        if not mode or not all(c in _OCTAL_DIGITS for c in mode):
            raise MalformedTree(f"invalid mode {mode!r} at offset {count}")
        name_end = text.find(b"\0", mode_end + 1)
        if name_end == -1:
            raise MalformedTree(f"entry at offset {count} has no null terminator")
        name = text[mode_end + 1 : name_end]
        if not _check_entry_name(name):
            raise MalformedTree(f"invalid entry name {name!r}")
        count = name_end + 1 + sha_length
        if count > length:
            raise MalformedTree(f"digest of entry {name!r} is truncated")
        entries.append(TreeEntry(mode, name, sha_to_hex(text[name_end + 1 : count])))
    return entries


def serialize_tree(items: Iterable[TreeEntry]) -> bytes:
    """Serialize the items in a tree to a payload.

    Args:
      items: Iterable over TreeEntry, in the order to be written
    Returns: Serialized tree payload
    """
    return b"".join(
        mode + b" " + name + b"\0" + hex_to_sha(sha) for mode, name, sha in items
    )


def _tree_sort_key(entry: TreeEntry) -> bytes:
    if stat.S_ISDIR(entry.mode_int()):
        return entry.name + b"/"
    return entry.name


def sorted_tree_items(entries: Iterable[TreeEntry]) -> list[TreeEntry]:
    """Sort tree entries in the order git itself writes them.

    Directories compare as if their name had a trailing slash.
    """
    return sorted(entries, key=_tree_sort_key)


class ShaFile:
    """A stored object.

    Subclasses define ``type_name`` and ``type_num`` and implement
    ``_serialize`` and ``_deserialize``. The payload size is always derived
    from the serialized payload.
    """

    type_name: bytes
    type_num: int

    def __init__(self, object_format: ObjectFormat | None = None) -> None:
        self.object_format = object_format or DEFAULT_OBJECT_FORMAT
        self._sha: ObjectID | None = None

    @staticmethod
    def from_raw_string(
        type_name: bytes | str,
        payload: bytes,
        object_format: ObjectFormat | None = None,
    ) -> "ShaFile":
        """Creates an object of the indicated type from the raw payload given.

        Args:
          type_name: The name of the object type.
          payload: The raw uncompressed payload.
          object_format: Digest algorithm for the object.
        """
        cls = object_class(type_name)
        if cls is None:
            raise EncodingError(type_name)
        obj = cls(object_format)
        obj.set_raw_string(payload)
        return obj

    @classmethod
    def from_string(
        cls, payload: bytes, object_format: ObjectFormat | None = None
    ) -> "ShaFile":
        """Create an object of this type from its payload."""
        obj = cls(object_format)
        obj.set_raw_string(payload)
        return obj

    @staticmethod
    def from_object_bytes(
        data: bytes, object_format: ObjectFormat | None = None
    ) -> "ShaFile":
        """Create an object from its full encoded form.

        Unlike decode_object, the declared size must match the payload
        length exactly.

        Raises:
          MalformedHeader: if the header is invalid or disagrees with the data
          MalformedTree: if a tree payload does not parse
        """
        cls, size, offset = _parse_object_header(data)
        if len(data) - offset != size:
            raise MalformedHeader(
                f"declared size {size} does not match payload length "
                f"{len(data) - offset}"
            )
        obj = cls(object_format)
        obj.set_raw_string(data[offset:])
        return obj

    def set_raw_string(self, payload: bytes) -> None:
        """Replace the payload of this object."""
        if not isinstance(payload, bytes):
            raise TypeError(f"Expected bytes for payload, got {payload!r}")
        self._deserialize(payload)
        self._sha = None

    def _deserialize(self, payload: bytes) -> None:
        raise NotImplementedError(self._deserialize)

    def _serialize(self) -> bytes:
        raise NotImplementedError(self._serialize)

    def as_raw_string(self) -> bytes:
        """Return the payload of this object."""
        return self._serialize()

    def raw_length(self) -> int:
        """Returns the length of the payload of this object."""
        return len(self.as_raw_string())

    def as_object_bytes(self) -> bytes:
        """Return the canonical encoded form that names this object."""
        return encode_object(self.type_name, self.as_raw_string())

    def as_legacy_object(self, compression_level: int = -1) -> bytes:
        """Return the compressed form written to disk."""
        return compress(self.as_object_bytes(), compression_level)

    def as_pretty_string(self) -> str:
        """Return a human-readable rendering of this object."""
        raise NotImplementedError(self.as_pretty_string)

    def get_id(self, object_format: ObjectFormat | None = None) -> ObjectID:
        """Return the hex digest naming this object.

        Args:
          object_format: Digest algorithm to use; defaults to the object's own
        """
        if object_format is not None and object_format is not self.object_format:
            return ObjectID(object_format.hash_object_hex(self.as_object_bytes()))
        if self._sha is None:
            self._sha = ObjectID(
                self.object_format.hash_object_hex(self.as_object_bytes())
            )
        return self._sha

    @property
    def id(self) -> ObjectID:
        """The hex digest naming this object."""
        return self.get_id()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.id.decode('ascii')}>"

    def __eq__(self, other: object) -> bool:
        """Return true if the digests of the two objects match."""
        return isinstance(other, ShaFile) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class Blob(ShaFile):
    """An opaque blob of content."""

    type_name = b"blob"
    type_num = 3

    def __init__(self, object_format: ObjectFormat | None = None) -> None:
        super().__init__(object_format)
        self._data = b""

    def _deserialize(self, payload: bytes) -> None:
        self._data = payload

    def _serialize(self) -> bytes:
        return self._data

    def _get_data(self) -> bytes:
        return self._data

    def _set_data(self, data: bytes) -> None:
        self.set_raw_string(data)

    data = property(
        _get_data, _set_data, doc="The content contained within the blob object."
    )

    def as_pretty_string(self) -> str:
        return self._data.decode("utf-8", "replace")


class Tree(ShaFile):
    """A directory listing.

    Entries are kept in the order they were added or parsed; use
    sorted_tree_items to get git's canonical order.
    """

    type_name = b"tree"
    type_num = 2

    def __init__(self, object_format: ObjectFormat | None = None) -> None:
        super().__init__(object_format)
        self._entries: list[TreeEntry] = []

    def __contains__(self, name: bytes) -> bool:
        return any(entry.name == name for entry in self._entries)

    def __getitem__(self, name: bytes) -> TreeEntry:
        for entry in self._entries:
            if entry.name == name:
                return entry
        raise KeyError(name)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TreeEntry]:
        return iter(self._entries)

    def add(self, mode: bytes | int, name: bytes, sha: bytes | str) -> None:
        """Append an entry to the tree.

        Args:
          mode: Entry mode, either as an integer or as octal text
          name: Path segment; may not be empty or contain a slash
          sha: Hex digest of the referenced object
        """
        if isinstance(sha, str):
            sha = sha.encode("ascii")
        if isinstance(mode, int):
            mode = f"{mode:o}".encode("ascii")
        if not mode or not all(c in _OCTAL_DIGITS for c in mode):
            raise ValueError(f"invalid mode {mode!r}")
        if not _check_entry_name(name):
            raise ValueError(f"invalid entry name {name!r}")
        if not valid_hexsha(sha, self.object_format.hex_length):
            raise ValueError(f"invalid hexsha {sha!r}")
        self._entries.append(TreeEntry(mode, name, ObjectID(sha)))
        self._sha = None

    def items(self) -> list[TreeEntry]:
        """Return the entries of this tree, in stored order."""
        return list(self._entries)

    def _deserialize(self, payload: bytes) -> None:
        self._entries = parse_tree(payload, self.object_format.oid_length)

    def _serialize(self) -> bytes:
        return serialize_tree(self._entries)

    def as_pretty_string(self) -> str:
        lines = []
        for entry in self._entries:
            mode = entry.mode_int()
            if stat.S_ISDIR(mode):
                kind = "tree"
            elif S_ISGITLINK(mode):
                kind = "commit"
            else:
                kind = "blob"
            lines.append(
                f"{mode:06o} {kind} {entry.sha.decode('ascii')}\t"
                f"{entry.name.decode('utf-8', 'replace')}\n"
            )
        return "".join(lines)


OBJECT_CLASSES: tuple[type[ShaFile], ...] = (
    Tree,
    Blob,
)

_TYPE_MAP: dict[bytes | int, type[ShaFile]] = {}

for cls in OBJECT_CLASSES:
    _TYPE_MAP[cls.type_name] = cls
    _TYPE_MAP[cls.type_num] = cls
