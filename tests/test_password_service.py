"""Unit tests for PasswordService: bcrypt hashing, verification and strength rules."""

import unittest

from lunch_api.core.errors import InvalidInputError, ValidationError
from lunch_api.core.security import PasswordService


class TestPasswordHashing(unittest.TestCase):
    def setUp(self) -> None:
        self.passwords = PasswordService(rounds=4)

    def test_hash_verifies_and_differs_from_plaintext(self) -> None:
        hashed = self.passwords.hash("s3cret-password")
        self.assertNotEqual(hashed, "s3cret-password")
        self.assertTrue(hashed.startswith("$2"))
        self.assertTrue(self.passwords.verify("s3cret-password", hashed))

    def test_hash_is_salted(self) -> None:
        self.assertNotEqual(self.passwords.hash("same-password"), self.passwords.hash("same-password"))

    def test_wrong_password_does_not_verify(self) -> None:
        hashed = self.passwords.hash("s3cret-password")
        self.assertFalse(self.passwords.verify("other-password", hashed))

    def test_empty_plaintext_raises_invalid_input(self) -> None:
        with self.assertRaises(InvalidInputError) as ctx:
            self.passwords.hash("")
        self.assertIsInstance(ctx.exception, ValidationError)
        self.assertEqual(ctx.exception.status_code, 400)

    def test_verify_never_raises(self) -> None:
        self.assertFalse(self.passwords.verify("", "$2b$04$abc"))
        self.assertFalse(self.passwords.verify("password", ""))
        self.assertFalse(self.passwords.verify("password", None))
        self.assertFalse(self.passwords.verify("password", "not-a-bcrypt-hash"))

    def test_dummy_hash_uses_configured_cost_and_never_verifies(self) -> None:
        dummy = self.passwords.dummy_hash
        self.assertTrue(dummy.startswith("$2b$04$"))
        self.assertEqual(dummy, self.passwords.dummy_hash)
        self.assertFalse(self.passwords.verify("s3cret-password", dummy))

    def test_input_beyond_72_bytes_is_truncated(self) -> None:
        base = "a" * 72
        hashed = self.passwords.hash(base + "tail-one")
        self.assertTrue(self.passwords.verify(base + "tail-two", hashed))


class TestPasswordStrength(unittest.TestCase):
    def test_acceptable_password(self) -> None:
        self.assertEqual(PasswordService.validate_strength("12345678"), [])

    def test_too_short(self) -> None:
        errors = PasswordService.validate_strength("1234567")
        self.assertEqual(len(errors), 1)
        self.assertIn("at least 8", errors[0])

    def test_too_long(self) -> None:
        errors = PasswordService.validate_strength("x" * 101)
        self.assertEqual(len(errors), 1)
        self.assertIn("at most 100", errors[0])

    def test_empty_is_too_short(self) -> None:
        self.assertTrue(PasswordService.validate_strength(""))
