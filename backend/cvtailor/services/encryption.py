"""
AES-256-GCM encryption for stored API keys.

Payload layout (base64): salt(16) | iv(16) | auth tag(16) | ciphertext.
The key is derived per payload with scrypt from settings.encryption_key.
"""
import base64
import os

from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..config import get_settings

SALT_LENGTH = 16
IV_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32


def _derive_key(salt: bytes) -> bytes:
    secret = get_settings().encryption_key
    if not secret:
        raise ValueError("ENCRYPTION_KEY environment variable is not set")
    kdf = Scrypt(salt=salt, length=KEY_LENGTH, n=2 ** 14, r=8, p=1)
    return kdf.derive(secret.encode("utf-8"))


def encrypt(text: str) -> str:
    salt = os.urandom(SALT_LENGTH)
    iv = os.urandom(IV_LENGTH)
    sealed = AESGCM(_derive_key(salt)).encrypt(iv, text.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return base64.b64encode(salt + iv + tag + ciphertext).decode("ascii")


def decrypt(payload: str) -> str:
    data = base64.b64decode(payload)
    salt = data[:SALT_LENGTH]
    iv = data[SALT_LENGTH:SALT_LENGTH + IV_LENGTH]
    tag = data[SALT_LENGTH + IV_LENGTH:SALT_LENGTH + IV_LENGTH + TAG_LENGTH]
    ciphertext = data[SALT_LENGTH + IV_LENGTH + TAG_LENGTH:]
    plain = AESGCM(_derive_key(salt)).decrypt(iv, ciphertext + tag, None)
    return plain.decode("utf-8")
