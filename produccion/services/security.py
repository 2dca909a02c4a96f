"""
Produccion API — Password Hashing
=================================

What:  Salted SHA-256 password digests compatible with the Usuarios table.
How:   digest = hex(sha256(Salt + password)), compared in constant time and
       without regard to hex letter case (rows written by the .NET tools are
       upper-case).
Who:   LiveDataStore.authenticate and the fixture user.
"""

import hashlib
import hmac


def hash_password(password: str, salt: str) -> str:
    return hashlib.sha256((salt + password).encode("utf-8")).hexdigest()


def verify_password(password: str, salt: str, stored_hash: str) -> bool:
    if not stored_hash:
        return False
    candidate = hash_password(password, salt or "")
    return hmac.compare_digest(candidate, stored_hash.strip().lower())
