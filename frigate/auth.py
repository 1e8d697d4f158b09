"""Rotating shared-secret authentication for dinghy registration.

A token is the current five minute time bucket, encrypted with a shared
key. The frigate accepts a token only if it decrypts with its own key to
its own current bucket. Used by both the frigate (check) and the dinghy
(encode).
"""

import base64
import binascii
import logging
import os
import time

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

logger = logging.getLogger(__name__)

BUCKET_SECONDS = 300  # 5 minutes
SALT_SIZE = 16  # bytes
NONCE_SIZE = 12  # bytes
KDF_ITERATIONS = 10_000


def get_timestamp(now: float | None = None) -> int:
    """Get the current time bucket.

    Args:
        now: Epoch seconds (defaults to the wall clock).

    Returns:
        int: Start of the current bucket in epoch milliseconds.
    """
    if now is None:
        now = time.time()
    return int(now // BUCKET_SECONDS) * BUCKET_SECONDS * 1000


def _derive_key(passphrase: str, salt: bytes) -> bytes:
    """Derive a 256-bit AES key from the shared passphrase."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(passphrase.encode("utf-8"))


class Authenticator:
    """Produces and checks time-bucketed registration secrets."""

    def __init__(self, key: str):
        """Initialize the authenticator.

        Args:
            key: Shared passphrase.
        """
        self.key = key

    def encode_secret(self, now: float | None = None) -> str:
        """Encrypt the current time bucket.

        Args:
            now: Epoch seconds (defaults to the wall clock).

        Returns:
            str: URL-safe base64 token (salt | nonce | ciphertext).
        """
        salt = os.urandom(SALT_SIZE)
        nonce = os.urandom(NONCE_SIZE)
        plaintext = str(get_timestamp(now)).encode("ascii")
        ciphertext = AESGCM(_derive_key(self.key, salt)).encrypt(nonce, plaintext, None)
        return base64.urlsafe_b64encode(salt + nonce + ciphertext).decode("ascii")

    def check_secret(self, token: str, now: float | None = None) -> bool:
        """Check a registration token.

        Args:
            token: Token presented by the dinghy.
            now: Epoch seconds (defaults to the wall clock).

        Returns:
            bool: True if the token decrypts to the current bucket.
        """
        try:
            raw = base64.urlsafe_b64decode(token.encode("ascii"))
        except (binascii.Error, ValueError, UnicodeEncodeError, AttributeError):
            logger.warning("Malformed registration secret")
            return False

        if len(raw) <= SALT_SIZE + NONCE_SIZE:
            logger.warning("Registration secret too short")
            return False

        salt = raw[:SALT_SIZE]
        nonce = raw[SALT_SIZE : SALT_SIZE + NONCE_SIZE]
        ciphertext = raw[SALT_SIZE + NONCE_SIZE :]
        try:
            plaintext = AESGCM(_derive_key(self.key, salt)).decrypt(nonce, ciphertext, None)
        except InvalidTag:
            logger.warning("Invalid encrypted text!")
            return False

        return plaintext == str(get_timestamp(now)).encode("ascii")
