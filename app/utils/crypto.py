"""Fernet-based encryption for stored provider credentials."""

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken

from app.config import settings


def _get_fernet() -> Fernet:
    key = settings.secret_key.encode()
    # Fernet key must be 32-byte base64-encoded. A passphrase is stretched
    # into one deterministically (dev convenience).
    try:
        return Fernet(key)
    except ValueError:
        derived = base64.urlsafe_b64encode(hashlib.sha256(key).digest())
        return Fernet(derived)


def encrypt(plaintext: str) -> str:
    return _get_fernet().encrypt(plaintext.encode()).decode()


def decrypt(ciphertext: str) -> str:
    """Decrypt a stored value; raises ValueError if the key has changed."""
    try:
        return _get_fernet().decrypt(ciphertext.encode()).decode()
    except InvalidToken as exc:
        raise ValueError("Stored credential cannot be decrypted with the current secret key") from exc


def mask(value: str) -> str:
    """Mask a secret for display: first 4 and last 4 chars."""
    if len(value) <= 8:
        return "****"
    return value[:4] + "..." + value[-4:]
