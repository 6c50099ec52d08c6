# test_errors.py -- Tests for the gitcas exception classes
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

from gitcas.errors import (
    ChecksumMismatch,
    CorruptObject,
    EncodingError,
    MalformedHeader,
    MalformedTree,
    NotBlobError,
    NotStoreError,
    NotTreeError,
    ObjectFormatException,
    ObjectNotFound,
    UnexpectedType,
)

from . import TestCase

SHA = b"ce013625030ba8dba906f756967f9e9ca394464a"


class ErrorsTests(TestCase):
    def test_checksum_mismatch(self) -> None:
        e = ChecksumMismatch(SHA, b"0" * 40)
        self.assertEqual(SHA.decode("ascii"), e.expected)
        self.assertEqual("0" * 40, e.got)
        self.assertIsNone(e.extra)
        self.assertEqual(
            f"Checksum mismatch: Expected {SHA.decode('ascii')}, got {'0' * 40}",
            str(e),
        )

    def test_checksum_mismatch_extra(self) -> None:
        e = ChecksumMismatch("a", "b", "while reading")
        self.assertEqual("Checksum mismatch: Expected a, got b; while reading", str(e))

    def test_encoding_error(self) -> None:
        e = EncodingError(b"commit")
        self.assertIsInstance(e, ValueError)
        self.assertEqual(b"commit", e.type_name)
        self.assertIn("commit", str(e))

    def test_format_exceptions(self) -> None:
        self.assertTrue(issubclass(MalformedHeader, ObjectFormatException))
        self.assertTrue(issubclass(MalformedTree, ObjectFormatException))

    def test_object_not_found(self) -> None:
        e = ObjectNotFound(SHA)
        self.assertIsInstance(e, KeyError)
        self.assertEqual(SHA, e.sha)
        self.assertEqual(
            f"{SHA.decode('ascii')} is not in the object store", str(e)
        )

    def test_corrupt_object(self) -> None:
        e = CorruptObject(SHA, "truncated")
        self.assertEqual(SHA, e.sha)
        self.assertEqual("truncated", e.reason)
        self.assertEqual(f"object {SHA.decode('ascii')} is corrupt: truncated", str(e))

    def test_not_blob(self) -> None:
        e = NotBlobError(SHA, b"tree")
        self.assertIsInstance(e, UnexpectedType)
        self.assertEqual("tree", e.actual)
        self.assertEqual(
            f"{SHA.decode('ascii')} is not a blob (found tree)", str(e)
        )

    def test_not_tree(self) -> None:
        e = NotTreeError(SHA)
        self.assertIsInstance(e, UnexpectedType)
        self.assertIsNone(e.actual)
        self.assertEqual(f"{SHA.decode('ascii')} is not a tree", str(e))

    def test_not_store(self) -> None:
        e = NotStoreError("/nonexistent")
        self.assertEqual("/nonexistent", e.path)
        self.assertEqual("No object store found at /nonexistent", str(e))
