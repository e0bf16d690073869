"""Tests for credential persistence."""

import os
import re
import stat
import tempfile
import unittest
from unittest.mock import patch

from tuicnode import credentials
from tuicnode.credentials import Credential, load_or_create, parse
from tuicnode.errors import ProvisionError

UUID_RE = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}")


class TestLoadOrCreate(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self._tmp.name, "tuic_user.txt")

    def tearDown(self):
        self._tmp.cleanup()

    def test_creates_two_line_file(self):
        cred = load_or_create(self.path)
        self.assertRegex(cred.uuid, UUID_RE)
        self.assertRegex(cred.password, r"^[0-9a-f]{32}$")
        with open(self.path) as f:
            self.assertEqual(f.read(), f"{cred.uuid}\n{cred.password}\n")

    def test_file_is_owner_only(self):
        load_or_create(self.path)
        self.assertEqual(stat.S_IMODE(os.stat(self.path).st_mode), 0o600)

    def test_reused_across_runs(self):
        first = load_or_create(self.path)
        with patch("tuicnode.credentials.atomic_write") as mock_write:
            second = load_or_create(self.path)
            mock_write.assert_not_called()
        self.assertEqual(first, second)

    def test_existing_file_is_source_of_truth(self):
        with open(self.path, "w") as f:
            f.write("11111111-1111-1111-1111-111111111111\ndeadbeefdeadbeefdeadbeefdeadbeef\n")
        cred = load_or_create(self.path)
        self.assertEqual(cred, Credential(
            "11111111-1111-1111-1111-111111111111",
            "deadbeefdeadbeefdeadbeefdeadbeef",
        ))

    def test_malformed_file_regenerated(self):
        with open(self.path, "w") as f:
            f.write("11111111-1111-1111-1111-111111111111\n")
        cred = load_or_create(self.path)
        self.assertRegex(cred.uuid, UUID_RE)
        with open(self.path) as f:
            self.assertEqual(parse(f.read()), cred)

    def test_undecodable_file_regenerated(self):
        with open(self.path, "wb") as f:
            f.write(b"\xff\xfe\x00garbage\n\x80\n")
        cred = load_or_create(self.path)
        self.assertRegex(cred.uuid, UUID_RE)
        with open(self.path) as f:
            self.assertEqual(parse(f.read()), cred)

    def test_trailing_blank_lines_keep_identity(self):
        with open(self.path, "w") as f:
            f.write("11111111-1111-1111-1111-111111111111\ndeadbeefdeadbeefdeadbeefdeadbeef\n\n\n")
        with patch("tuicnode.credentials.atomic_write") as mock_write:
            cred = load_or_create(self.path)
            mock_write.assert_not_called()
        self.assertEqual(cred.uuid, "11111111-1111-1111-1111-111111111111")

    def test_unwritable_location_is_fatal(self):
        with patch("tuicnode.credentials.atomic_write", side_effect=PermissionError("read-only")):
            with self.assertRaises(ProvisionError) as ctx:
                load_or_create(self.path)
        self.assertEqual(ctx.exception.exit_code, 1)
        self.assertIn(self.path, str(ctx.exception))

    def test_kernel_uuid_unavailable_falls_back(self):
        with patch.object(credentials, "_KERNEL_UUID", os.path.join(self._tmp.name, "missing")):
            cred = load_or_create(self.path)
        self.assertRegex(cred.uuid, UUID_RE)


class TestParse(unittest.TestCase):
    def test_hex_id_accepted(self):
        cred = parse("0123456789abcdef0123456789abcdef\nabcdef\n")
        self.assertEqual(cred.uuid, "0123456789abcdef0123456789abcdef")

    def test_rejects_extra_lines(self):
        self.assertIsNone(parse("11111111-1111-1111-1111-111111111111\nabcd\nextra\n"))

    def test_rejects_non_hex_secret(self):
        self.assertIsNone(parse("11111111-1111-1111-1111-111111111111\nnot-hex\n"))

    def test_rejects_empty(self):
        self.assertIsNone(parse(""))


if __name__ == "__main__":
    unittest.main()
