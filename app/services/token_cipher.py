"""Symmetric encryption for OAuth tokens stored at rest."""

from __future__ import annotations

import base64
import hashlib
from typing import Iterable

from cryptography.fernet import Fernet, InvalidToken, MultiFernet


def _derive_fernet(secret: str) -> Fernet:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


class TokenCipherService:
    """
    Encrypt and decrypt token strings with keys derived from secrets.

    Several secrets may be supplied to rotate keys: the first one encrypts new
    values, and every secret is tried when decrypting.
    """

    def __init__(self, *, secret: str | Iterable[str]) -> None:
        if isinstance(secret, str):
            secrets = [part.strip() for part in secret.split(",")]
        else:
            secrets = [part.strip() for part in secret]
        secrets = [part for part in secrets if part]
        if not secrets:
            raise ValueError("Token encryption secret must be provided.")
        self._fernet = MultiFernet([_derive_fernet(part) for part in secrets])

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; invalid ciphertext or unknown key."
            ) from exc
        return plaintext.decode("utf-8")


__all__ = ["TokenCipherService"]
