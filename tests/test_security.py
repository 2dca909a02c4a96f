"""
Produccion API — Password Hashing Tests
=======================================
"""

import hashlib

from produccion.services.security import hash_password, verify_password


class TestPasswordHashing:

    def test_hash_is_sha256_of_salt_plus_password(self):
        expected = hashlib.sha256(b"saltsecreto").hexdigest()
        assert hash_password("secreto", "salt") == expected

    def test_verify_accepts_uppercase_hex(self):
        stored = hash_password("secreto", "salt").upper()
        assert verify_password("secreto", "salt", stored) is True

    def test_verify_rejects_wrong_password(self):
        stored = hash_password("secreto", "salt")
        assert verify_password("otro", "salt", stored) is False

    def test_verify_rejects_empty_hash(self):
        assert verify_password("secreto", "salt", "") is False
