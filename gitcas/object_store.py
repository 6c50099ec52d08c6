# object_store.py -- Object store for content-addressed objects
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

"""Object store interface and on-disk implementation.

Objects live in ``<root>/objects/<hex[:2]>/<hex[2:]>``, one zlib-compressed
encoded object per file.
"""

__all__ = [
    "CONFIGFILE",
    "OBJECTDIR",
    "PACK_MODE",
    "DiskObjectStore",
    "init_store",
    "open_store",
]

import os
import sys
from collections.abc import Iterator
from typing import TYPE_CHECKING

from .config import ConfigDict, ConfigFile
from .errors import (
    ChecksumMismatch,
    CorruptObject,
    CorruptStream,
    MalformedHeader,
    NotBlobError,
    NotStoreError,
    NotTreeError,
    ObjectNotFound,
)
from .file import FileLocked, ensure_dir_exists, open_locked
from .log_utils import getLogger
from .object_format import DEFAULT_OBJECT_FORMAT, get_object_format
from .objects import (
    Blob,
    ObjectID,
    ShaFile,
    Tree,
    TreeEntry,
    compress,
    decode_object,
    decompress,
    encode_object,
    hex_to_filename,
    object_header,
    parse_tree,
    valid_hexsha,
)

if TYPE_CHECKING:
    from .config import Config
    from .object_format import ObjectFormat

logger = getLogger(__name__)

OBJECTDIR = "objects"
CONFIGFILE = "config"

# Object files are never modified once written
PACK_MODE = 0o444 if sys.platform != "win32" else 0o644

_COMPRESSION_LEVELS = range(-1, 10)
_HEX_DIGITS = b"0123456789abcdef"


class DiskObjectStore:
    """Content-addressed object store that exists on disk."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        loose_compression_level: int = -1,
        fsync_object_files: bool = False,
        file_mode: int | None = None,
        dir_mode: int | None = None,
        object_format: "ObjectFormat | None" = None,
    ) -> None:
        """Open an object store.

        Args:
          path: Path of the object store.
          loose_compression_level: zlib compression level for objects
          fsync_object_files: whether to fsync object files for durability
          file_mode: File permission mask for object files
          dir_mode: Directory permission mask for fan-out directories
          object_format: Hash algorithm to use (SHA1 or SHA256)
        """
        if loose_compression_level not in _COMPRESSION_LEVELS:
            raise ValueError(
                f"invalid compression level {loose_compression_level}"
            )
        self.path = path
        self.loose_compression_level = loose_compression_level
        self.fsync_object_files = fsync_object_files
        self.file_mode = file_mode
        self.dir_mode = dir_mode
        self.object_format = object_format or DEFAULT_OBJECT_FORMAT

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.path!r})>"

    @classmethod
    def from_config(
        cls,
        path: str | os.PathLike[str],
        config: "Config",
        *,
        file_mode: int | None = None,
        dir_mode: int | None = None,
    ) -> "DiskObjectStore":
        """Create a DiskObjectStore from a configuration object.

        Args:
          path: Path to the object store directory
          config: Configuration object to read settings from
          file_mode: Optional file permission mask for object files
          dir_mode: Optional directory permission mask for fan-out directories

        Returns:
          New DiskObjectStore instance configured according to config
        Raises:
          ValueError: if a setting has an invalid value
        """
        default_compression_level = config.get_int((b"core",), b"compression", -1)
        loose_compression_level = config.get_int(
            (b"core",), b"looseCompression", default_compression_level
        )
        fsync_object_files = config.get_boolean((b"core",), b"fsyncObjectFiles", False)
        object_format = _recorded_object_format(config)

        return cls(
            path,
            loose_compression_level=loose_compression_level,
            fsync_object_files=fsync_object_files,
            file_mode=file_mode,
            dir_mode=dir_mode,
            object_format=object_format,
        )

    @classmethod
    def init(
        cls,
        path: str | os.PathLike[str],
        config: "Config | None" = None,
        *,
        file_mode: int | None = None,
        dir_mode: int | None = None,
    ) -> "DiskObjectStore":
        """Initialize a disk object store, creating its directory if needed.

        Args:
          path: Path where the object store should be created
          config: Optional configuration object to read settings from
          file_mode: Optional file permission mask for object files
          dir_mode: Optional directory permission mask

        Returns:
          New DiskObjectStore instance
        Raises:
          ValueError: if a setting has an invalid value
        """
        if config is None:
            config = ConfigDict()
        store = cls.from_config(path, config, file_mode=file_mode, dir_mode=dir_mode)
        ensure_dir_exists(path, dir_mode)
        return store

    def _to_hexsha(self, sha: bytes | str) -> ObjectID:
        if isinstance(sha, str):
            try:
                sha = sha.encode("ascii")
            except UnicodeEncodeError as exc:
                raise ValueError(f"invalid object id {sha!r}") from exc
        sha = sha.lower()
        if not valid_hexsha(sha, self.object_format.hex_length):
            raise ValueError(
                f"invalid object id {sha!r}: expected "
                f"{self.object_format.hex_length} hex characters"
            )
        return ObjectID(sha)

    def _get_shafile_path(self, sha: ObjectID) -> str:
        return hex_to_filename(self.path, sha)

    def contains_loose(self, sha: bytes | str) -> bool:
        """Check if a particular object is present by digest."""
        return os.path.exists(self._get_shafile_path(self._to_hexsha(sha)))

    def __contains__(self, sha: bytes | str) -> bool:
        try:
            return self.contains_loose(sha)
        except ValueError:
            return False

    def __iter__(self) -> Iterator[ObjectID]:
        """Iterate over the digests of all objects in the store."""
        try:
            bases = sorted(os.listdir(self.path))
        except FileNotFoundError:
            return
        fn_length = self.object_format.hex_length - 2
        for base in bases:
            if len(base) != 2:
                continue
            try:
                names = sorted(os.listdir(os.path.join(self.path, base)))
            except NotADirectoryError:
                continue
            for rest in names:
                if len(rest) != fn_length:
                    continue
                sha = os.fsencode(base + rest)
                if valid_hexsha(sha, self.object_format.hex_length):
                    yield ObjectID(sha)

    def count_loose_objects(self) -> int:
        """Count the number of objects in the object store."""
        return sum(1 for _ in self)

    def iter_prefix(self, prefix: bytes | str) -> Iterator[ObjectID]:
        """Iterate over all object digests starting with the given hex prefix.

        Args:
          prefix: Hex prefix to search for
        Returns:
          Iterator of object digests matching the prefix
        Raises:
          ValueError: if prefix is not a hex string of at most a digest's length
        """
        if isinstance(prefix, str):
            try:
                prefix = prefix.encode("ascii")
            except UnicodeEncodeError as exc:
                raise ValueError(f"invalid object id prefix {prefix!r}") from exc
        prefix = prefix.lower()
        if len(prefix) > self.object_format.hex_length or not all(
            c in _HEX_DIGITS for c in prefix
        ):
            raise ValueError(f"invalid object id prefix {prefix!r}")
        if len(prefix) < 2:
            for sha in self:
                if sha.startswith(prefix):
                    yield sha
            return
        dir = prefix[:2].decode("ascii")
        rest = prefix[2:].decode("ascii")
        try:
            names = sorted(os.listdir(os.path.join(self.path, dir)))
        except (FileNotFoundError, NotADirectoryError):
            return
        for name in names:
            if name.startswith(rest):
                sha = os.fsencode(dir + name)
                if valid_hexsha(sha, self.object_format.hex_length):
                    yield ObjectID(sha)

    def _add_encoded(self, encoded: bytes) -> ObjectID:
        sha = ObjectID(self.object_format.hash_object_hex(encoded))
        path = self._get_shafile_path(sha)
        if os.path.exists(path):
            logger.debug("object %s already present", sha.decode("ascii"))
            return sha
        ensure_dir_exists(os.path.dirname(path), self.dir_mode)
        mask = self.file_mode if self.file_mode is not None else PACK_MODE
        try:
            with open_locked(path, mask=mask, fsync=self.fsync_object_files) as f:
                f.write(compress(encoded, self.loose_compression_level))
        except FileLocked:
            if os.path.exists(path):
                logger.debug("object %s written concurrently", sha.decode("ascii"))
                return sha
            raise
        logger.debug("wrote object %s (%d bytes)", sha.decode("ascii"), len(encoded))
        return sha

    def add_raw(self, type_name: bytes | str, payload: bytes) -> ObjectID:
        """Store a payload under the given type.

        Writing content that is already present is a no-op.

        Args:
          type_name: Name of the object type (``b"blob"`` or ``b"tree"``)
          payload: Raw object payload
        Returns: hex digest of the stored object
        Raises:
          EncodingError: if type_name is not a known object type
          FileLocked: if another writer holds the lock for the object file
        """
        return self._add_encoded(encode_object(type_name, payload))

    def add_object(self, obj: ShaFile) -> ObjectID:
        """Add a single object to this object store.

        Args:
          obj: Object to add
        Returns: hex digest of the stored object
        Raises:
          FileLocked: if another writer holds the lock for the object file
        """
        return self._add_encoded(obj.as_object_bytes())

    def _read_object_bytes(self, sha: ObjectID) -> bytes:
        path = self._get_shafile_path(sha)
        try:
            with open(path, "rb") as f:
                compressed = f.read()
        except FileNotFoundError as exc:
            raise ObjectNotFound(sha) from exc
        try:
            data = decompress(compressed)
        except CorruptStream as exc:
            logger.debug("unable to decompress %s: %s", path, exc)
            raise CorruptObject(sha, str(exc)) from exc
        got = self.object_format.hash_object_hex(data)
        if got != sha:
            logger.debug("%s hashes to %s", path, got.decode("ascii"))
            raise CorruptObject(sha, "content does not match its name") from (
                ChecksumMismatch(sha, got)
            )
        return data

    def get_raw(self, name: bytes | str) -> tuple[bytes, bytes]:
        """Obtain the type and payload of an object.

        Args:
          name: hex digest of the object
        Returns: tuple with type name and payload
        Raises:
          ValueError: if name is not a well-formed digest
          ObjectNotFound: if no object with that digest is stored
          CorruptObject: if the stored object can not be read back
        """
        sha = self._to_hexsha(name)
        data = self._read_object_bytes(sha)
        try:
            type_name, size, payload = decode_object(data)
            header_length = len(object_header(type_name, size))
            if len(data) != header_length + size:
                raise MalformedHeader(
                    f"declared size {size} does not match payload length "
                    f"{len(data) - header_length}"
                )
        except MalformedHeader as exc:
            raise CorruptObject(sha, str(exc)) from exc
        return type_name, payload

    def __getitem__(self, sha: bytes | str) -> ShaFile:
        """Obtain an object by digest."""
        type_name, payload = self.get_raw(sha)
        return ShaFile.from_raw_string(type_name, payload, self.object_format)

    def read_blob(self, sha: bytes | str) -> bytes:
        """Return the content of a blob.

        Raises:
          NotBlobError: if the object is not a blob
        """
        type_name, payload = self.get_raw(sha)
        if type_name != Blob.type_name:
            raise NotBlobError(sha, type_name)
        return payload

    def read_tree(self, sha: bytes | str) -> list[TreeEntry]:
        """Return the entries of a tree, in stored order.

        Raises:
          NotTreeError: if the object is not a tree
          MalformedTree: if the tree payload does not parse
        """
        type_name, payload = self.get_raw(sha)
        if type_name != Tree.type_name:
            raise NotTreeError(sha, type_name)
        return parse_tree(payload, self.object_format.oid_length)


def _recorded_object_format(config: "Config") -> "ObjectFormat | None":
    try:
        name = config.get((b"extensions",), b"objectFormat")
    except KeyError:
        return None
    return get_object_format(name.decode("ascii"))


def _write_object_format(config_path: str, object_format: "ObjectFormat") -> None:
    try:
        with open(config_path, "rb") as f:
            contents = f.read()
    except FileNotFoundError:
        contents = b""
    if contents and not contents.endswith(b"\n"):
        contents += b"\n"
    with open_locked(config_path, mask=0o644) as f:
        f.write(
            contents
            + b"[extensions]\n\tobjectFormat = %s\n" % object_format.name.encode("ascii")
        )


def init_store(
    root: str | os.PathLike[str], *, object_format: "ObjectFormat | None" = None
) -> DiskObjectStore:
    """Create an object store below root.

    Creates ``<root>/objects``; calling it on an existing store opens it with
    the object format it was created with. A non-default object format is
    recorded in ``<root>/config``, keeping any settings already there.

    Args:
      root: Store root directory
      object_format: Hash algorithm to use (SHA1 or SHA256); defaults to the
        format of an existing store, or SHA1
    Returns: the DiskObjectStore for ``<root>/objects``
    Raises:
      ValueError: if object_format differs from the format of an existing
        store, or the existing configuration is invalid
    """
    root = os.fspath(root)
    path = os.path.join(root, OBJECTDIR)
    config_path = os.path.join(root, CONFIGFILE)
    try:
        config = ConfigFile.from_path(config_path)
    except FileNotFoundError:
        config = ConfigFile()
    recorded = _recorded_object_format(config)
    if recorded is None and os.path.isdir(path):
        # Stores without a recorded format use the default one
        recorded = DEFAULT_OBJECT_FORMAT
    if object_format is None:
        object_format = recorded or DEFAULT_OBJECT_FORMAT
    elif recorded is not None and object_format is not recorded:
        raise ValueError(
            f"object store in {root} uses {recorded.name}, not {object_format.name}"
        )
    record = (
        object_format is not DEFAULT_OBJECT_FORMAT
        and _recorded_object_format(config) is None
    )
    if record:
        config.set((b"extensions",), b"objectFormat", object_format.name)
    store = DiskObjectStore.init(path, config)
    if record:
        _write_object_format(config_path, object_format)
    logger.debug("initialized object store in %s", root)
    return store


def open_store(root: str | os.PathLike[str]) -> DiskObjectStore:
    """Open the object store below root, honouring ``<root>/config``.

    Raises:
      NotStoreError: if root has no objects directory
      ValueError: if the configuration is invalid
    """
    root = os.fspath(root)
    path = os.path.join(root, OBJECTDIR)
    if not os.path.isdir(path):
        raise NotStoreError(path)
    try:
        config = ConfigFile.from_path(os.path.join(root, CONFIGFILE))
    except FileNotFoundError:
        return DiskObjectStore(path)
    return DiskObjectStore.from_config(path, config)
