"""
Credential Hasher Tests

Module: tests.test_credential_hasher
Date: 2026-10-17
Version: 0.1.0

DESCRIPTION:
- Stored form "<tag>$<salt-hex>$<digest-hex>"
- verify() true/false, never raising on malformed stored forms
- scrypt and bcrypt-pbkdf schemes, rehash detection
- Credential policy
"""

import unittest
from unittest import mock

from principal_auth.security.authentication.credential_hasher import (
    CredentialHasher,
    CredentialPolicy,
    HashParameters,
)
from principal_auth.security.errors import WeakCredential

from auth_fixtures import FAST_HASH


class TestCredentialHasherScrypt(unittest.TestCase):
    """Default scheme"""

    @classmethod
    def setUpClass(cls):
        cls.hasher = CredentialHasher(FAST_HASH)
        cls.stored = cls.hasher.hash("password123")

    def test_stored_form_has_three_segments(self):
        tag, salt_hex, digest_hex = self.stored.split("$")

        self.assertEqual(tag, "scrypt:1024:8:1")
        self.assertEqual(len(bytes.fromhex(salt_hex)), 16)
        self.assertEqual(len(bytes.fromhex(digest_hex)), 64)
        self.assertEqual(salt_hex, salt_hex.lower())

    def test_verify_correct_secret(self):
        self.assertTrue(self.hasher.verify("password123", self.stored))

    def test_verify_wrong_secret(self):
        self.assertFalse(self.hasher.verify("password124", self.stored))
        self.assertFalse(self.hasher.verify("", self.stored))

    def test_fresh_salt_per_hash(self):
        again = self.hasher.hash("password123")
        self.assertNotEqual(again, self.stored)
        self.assertNotEqual(again.split("$")[1], self.stored.split("$")[1])
        self.assertTrue(self.hasher.verify("password123", again))

    def test_unicode_secret(self):
        stored = self.hasher.hash("pässwörd-密码")
        self.assertTrue(self.hasher.verify("pässwörd-密码", stored))
        self.assertFalse(self.hasher.verify("passwort-密码", stored))

    def test_malformed_stored_forms_are_false(self):
        tag, salt_hex, digest_hex = self.stored.split("$")
        malformed = [
            "garbage",
            "",
            "a$b",
            "a$b$c$d",
            f"{tag}$zz$00",
            f"{tag}${salt_hex}$not-hex",
            f"{tag}$${digest_hex}",
            f"md5${salt_hex}${digest_hex}",
            f"scrypt:1024:8${salt_hex}${digest_hex}",
            f"scrypt:abc:8:1${salt_hex}${digest_hex}",
            f"scrypt:1000:8:1${salt_hex}${digest_hex}",
            f"scrypt:{2 ** 30}:8:1${salt_hex}${digest_hex}",
            f"bcrypt-pbkdf:0${salt_hex}${digest_hex}",
        ]
        for stored in malformed:
            with self.subTest(stored=stored):
                self.assertFalse(self.hasher.verify("password123", stored))

    def test_malformed_stored_form_costs_a_derivation(self):
        tag, salt_hex, digest_hex = self.stored.split("$")
        for stored in ("garbage", None, f"md5${salt_hex}${digest_hex}", f"{tag}${salt_hex}$not-hex"):
            with self.subTest(stored=stored):
                with mock.patch.object(self.hasher, "_derive", wraps=self.hasher._derive) as derive:
                    self.assertFalse(self.hasher.verify("password123", stored))
                self.assertGreaterEqual(derive.call_count, 1)
                # Dummy parameters are the configured ones
                self.assertEqual(derive.call_args.args[0], tag)

    def test_non_string_inputs_are_false(self):
        self.assertFalse(self.hasher.verify("password123", None))
        self.assertFalse(self.hasher.verify("password123", 12345))
        self.assertFalse(self.hasher.verify(None, self.stored))

    def test_dummy_verify_is_false(self):
        self.assertFalse(self.hasher.dummy_verify("password123"))

    def test_needs_rehash(self):
        self.assertFalse(self.hasher.needs_rehash(self.stored))
        self.assertTrue(self.hasher.needs_rehash("garbage"))

        stronger = CredentialHasher(HashParameters(scrypt_n=2048, scrypt_r=8, scrypt_p=1))
        self.assertTrue(stronger.needs_rehash(self.stored))
        # Old parameters still verify under the new configuration
        self.assertTrue(stronger.verify("password123", self.stored))


class TestCredentialHasherBcryptPbkdf(unittest.TestCase):
    """bcrypt_pbkdf scheme"""

    @classmethod
    def setUpClass(cls):
        cls.hasher = CredentialHasher(HashParameters(algorithm="bcrypt-pbkdf", bcrypt_rounds=4))
        cls.stored = cls.hasher.hash("password123")

    def test_tag(self):
        self.assertEqual(self.stored.split("$")[0], "bcrypt-pbkdf:4")

    def test_verify(self):
        self.assertTrue(self.hasher.verify("password123", self.stored))
        self.assertFalse(self.hasher.verify("password124", self.stored))

    def test_cross_scheme_verification(self):
        scrypt_hasher = CredentialHasher(FAST_HASH)
        self.assertTrue(scrypt_hasher.verify("password123", self.stored))
        self.assertTrue(scrypt_hasher.needs_rehash(self.stored))

        scrypt_stored = scrypt_hasher.hash("password123")
        self.assertTrue(self.hasher.verify("password123", scrypt_stored))

    def test_empty_secret_verifies_false(self):
        self.assertFalse(self.hasher.verify("", self.stored))


class TestHashParameters(unittest.TestCase):
    """Parameter validation"""

    def test_defaults_valid(self):
        HashParameters().validate()
        self.assertEqual(HashParameters().tag, "scrypt:16384:8:1")

    def test_invalid_parameters(self):
        invalid = [
            HashParameters(algorithm="md5"),
            HashParameters(scrypt_n=1000),
            HashParameters(scrypt_r=0),
            HashParameters(scrypt_p=100),
            HashParameters(bcrypt_rounds=0),
            HashParameters(salt_bytes=8),
            HashParameters(digest_bytes=8),
        ]
        for params in invalid:
            with self.subTest(params=params):
                with self.assertRaises(ValueError):
                    CredentialHasher(params)


class TestCredentialPolicy(unittest.TestCase):
    """Minimum credential requirements"""

    def test_default_minimum_length(self):
        policy = CredentialPolicy()
        policy.check("12345678")
        with self.assertRaises(WeakCredential):
            policy.check("1234567")

    def test_non_string_rejected(self):
        with self.assertRaises(WeakCredential):
            CredentialPolicy().check(None)

    def test_character_classes(self):
        policy = CredentialPolicy(
            min_length=8,
            require_uppercase=True,
            require_lowercase=True,
            require_digit=True,
            require_special=True,
        )
        policy.check("Abcdef1!")
        for weak in ("abcdef1!", "ABCDEF1!", "Abcdefg!", "Abcdefg1"):
            with self.subTest(secret=weak):
                with self.assertRaises(WeakCredential):
                    policy.check(weak)


class TestRegistrationScenario(unittest.TestCase):
    """register -> hash -> verify"""

    def test_password123(self):
        hasher = CredentialHasher(FAST_HASH)
        stored = hasher.hash("password123")

        self.assertEqual(len(stored.split("$")), 3)
        self.assertTrue(hasher.verify("password123", stored))
        self.assertFalse(hasher.verify("password124", stored))


if __name__ == "__main__":
    unittest.main()
