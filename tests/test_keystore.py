"""
Tests for masslet_core.keystore - passphrase encryption of key bytes.
"""

import json
import unittest

from masslet_core.errors import KeystoreError
from masslet_core.keystore import BLOB_VERSION, KDF_NAME, MAX_ITERATIONS, PassphraseCipher


class TestPassphraseCipher(unittest.TestCase):

    def setUp(self):
        self.cipher = PassphraseCipher(iterations=1_000)
        self.key = bytes(range(64))

    def test_round_trip(self):
        blob = self.cipher.encrypt(self.key, "correct horse")
        self.assertEqual(self.cipher.decrypt(blob, "correct horse"), self.key)

    def test_json_string_blob(self):
        blob = json.dumps(self.cipher.encrypt(self.key, "pw"))
        self.assertEqual(self.cipher.decrypt(blob, "pw"), self.key)

    def test_blob_fields(self):
        blob = self.cipher.encrypt(self.key, "pw")
        self.assertEqual(blob["version"], BLOB_VERSION)
        self.assertEqual(blob["kdf"], KDF_NAME)
        self.assertEqual(blob["kdf_iterations"], 1_000)
        self.assertEqual(len(bytes.fromhex(blob["salt"])), 16)
        self.assertEqual(len(bytes.fromhex(blob["nonce"])), 12)
        self.assertEqual(len(bytes.fromhex(blob["tag"])), 16)
        self.assertNotEqual(blob["encrypted_private_key"], self.key.hex())

    def test_fresh_salt_and_nonce(self):
        a = self.cipher.encrypt(self.key, "pw")
        b = self.cipher.encrypt(self.key, "pw")
        self.assertNotEqual(a["salt"], b["salt"])
        self.assertNotEqual(a["nonce"], b["nonce"])

    def test_iterations_read_from_blob(self):
        blob = PassphraseCipher(iterations=2_000).encrypt(self.key, "pw")
        self.assertEqual(self.cipher.decrypt(blob, "pw"), self.key)

    def test_wrong_password(self):
        blob = self.cipher.encrypt(self.key, "pw")
        with self.assertRaises(KeystoreError):
            self.cipher.decrypt(blob, "wrong")

    def test_tampered_ciphertext(self):
        blob = self.cipher.encrypt(self.key, "pw")
        ct = bytearray(bytes.fromhex(blob["encrypted_private_key"]))
        ct[0] ^= 0x01
        blob["encrypted_private_key"] = ct.hex()
        with self.assertRaises(KeystoreError):
            self.cipher.decrypt(blob, "pw")

    def test_unsupported_version(self):
        blob = self.cipher.encrypt(self.key, "pw")
        blob["version"] = 2
        with self.assertRaises(KeystoreError):
            self.cipher.decrypt(blob, "pw")

    def test_missing_field(self):
        blob = self.cipher.encrypt(self.key, "pw")
        del blob["nonce"]
        with self.assertRaises(KeystoreError):
            self.cipher.decrypt(blob, "pw")

    def test_not_json(self):
        with self.assertRaises(KeystoreError):
            self.cipher.decrypt("{not json", "pw")

    def test_not_an_object(self):
        with self.assertRaises(KeystoreError):
            self.cipher.decrypt("[1, 2]", "pw")

    def test_bad_iterations(self):
        with self.assertRaises(ValueError):
            PassphraseCipher(iterations=0)
        with self.assertRaises(ValueError):
            PassphraseCipher(iterations=MAX_ITERATIONS + 1)

    def test_blob_iterations_out_of_range(self):
        for iterations in (0, -5, MAX_ITERATIONS + 1, "many", None):
            blob = self.cipher.encrypt(self.key, "pw")
            blob["kdf_iterations"] = iterations
            with self.subTest(iterations=iterations), self.assertRaises(KeystoreError):
                self.cipher.decrypt(blob, "pw")
