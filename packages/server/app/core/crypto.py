"""
Symmetric encryption for secrets stored at rest (the workspace Linear token).
"""

from __future__ import annotations

import base64
import binascii
from hashlib import sha256

from cryptography.fernet import Fernet, InvalidToken

from app.core.config import get_settings


class TokenDecryptionError(Exception):
    """Ciphertext could not be decrypted with the configured key."""


def _fernet_key(key_material: str) -> bytes:
    """Use ``key_material`` as-is if it is a Fernet key, else derive one from it."""
    raw = key_material.encode("utf-8")
    try:
        if len(base64.urlsafe_b64decode(raw)) == 32:
            return raw
    except (binascii.Error, ValueError):
        pass
    return base64.urlsafe_b64encode(sha256(raw).digest())


class TokenCipher:
    """Encrypt and decrypt short secrets with Fernet."""

    def __init__(self, key_material: str):
        self._fernet = Fernet(_fernet_key(key_material))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        try:
            return self._fernet.decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise TokenDecryptionError("Stored token could not be decrypted") from exc


def get_token_cipher() -> TokenCipher:
    return TokenCipher(get_settings().encryption_key)
