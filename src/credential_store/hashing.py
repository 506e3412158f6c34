# Password Hashing
#
# Passwords are never stored as given. Each one is run through PBKDF2 with
# a fresh random salt and stored in a self-describing string:
#
#     pbkdf2_sha256$<iterations>$<b64 salt>$<b64 derived key>
#
# The iteration count travels with the hash, so raising the work factor
# only affects new hashes.

import base64
import hmac
import os
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .config import DEFAULT_PBKDF2_ITERATIONS


class PasswordHasher:
    """
    Salted one-way password hashing with PBKDF2-HMAC-SHA256.

    Flow:
    1. hash(): random salt + PBKDF2 -> encoded string stored on the record
    2. verify(): re-derive with the stored salt/iterations, compare in
       constant time
    """

    ALGORITHM = "pbkdf2_sha256"
    KEY_LENGTH = 32  # 256-bit derived key
    SALT_LENGTH = 32  # 256-bit salt

    def __init__(self, iterations: int = DEFAULT_PBKDF2_ITERATIONS):
        if iterations < 1:
            raise ValueError("iterations must be positive")
        self.iterations = iterations
        self._dummy_hash: Optional[str] = None

    @staticmethod
    def _derive(password: str, salt: bytes, iterations: int) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=PasswordHasher.KEY_LENGTH,
            salt=salt,
            iterations=iterations,
        )
        return kdf.derive(password.encode("utf-8", "surrogatepass"))

    @staticmethod
    def _b64encode(data: bytes) -> str:
        return base64.b64encode(data).decode("ascii")

    def hash(self, password: str) -> str:
        """
        Hash a password for storage.

        Args:
            password: Plaintext password

        Returns:
            Encoded hash string (algorithm, iterations, salt, key)
        """
        salt = os.urandom(self.SALT_LENGTH)
        key = self._derive(password, salt, self.iterations)
        return "$".join(
            [
                self.ALGORITHM,
                str(self.iterations),
                self._b64encode(salt),
                self._b64encode(key),
            ]
        )

    def verify(self, password: str, encoded: str) -> bool:
        """
        Check a plaintext password against a stored hash.

        Returns False (never raises) when the stored value is malformed
        or uses an unknown algorithm.
        """
        try:
            algorithm, iterations, salt_b64, key_b64 = encoded.split("$")
            if algorithm != self.ALGORITHM:
                return False
            salt = base64.b64decode(salt_b64.encode("ascii"), validate=True)
            expected = base64.b64decode(key_b64.encode("ascii"), validate=True)
            rounds = int(iterations)
        except (AttributeError, ValueError):
            return False
        if rounds < 1:
            return False

        actual = self._derive(password, salt, rounds)
        return hmac.compare_digest(actual, expected)

    def burn(self, password: str) -> None:
        """
        Run one verification against a throwaway hash.

        Used when no stored hash exists, so a failed login for an unknown
        username costs the same as one for a known username.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(os.urandom(16).hex())
        self.verify(password, self._dummy_hash)
