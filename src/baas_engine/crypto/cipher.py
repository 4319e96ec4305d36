"""AES-256-CBC encryption of tenant owner passwords at rest."""

import os
from dataclasses import dataclass

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from baas_engine.common.exceptions import DecryptionError

IV_LENGTH = 16
KEY_LENGTH = 32


@dataclass(frozen=True)
class EncryptedMessage:
    """Hex encoded IV and ciphertext."""
    iv: str
    payload: str


class SecretCipher:
    def __init__(self, key_hex: str):
        key = bytes.fromhex(key_hex)
        if len(key) != KEY_LENGTH:
            raise ValueError("Encryption key must be 32 bytes (64 hex characters)")
        self._key = key

    def encrypt(self, plaintext: str) -> EncryptedMessage:
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        payload = encryptor.update(padded) + encryptor.finalize()
        return EncryptedMessage(iv=iv.hex(), payload=payload.hex())

    def decrypt(self, message: EncryptedMessage) -> str:
        try:
            iv = bytes.fromhex(message.iv)
            payload = bytes.fromhex(message.payload)
            decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(payload) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return plaintext.decode("utf-8")
        except (ValueError, TypeError) as exc:
            raise DecryptionError() from exc
