"""AES-256-CBC 对称加密工具 - 用于加密存储敏感数据（账户密码、TOTP 密钥）"""

import logging
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher as _AESCipher, algorithms, modes

from otpvault.common.errors import DecryptError

logger = logging.getLogger(__name__)

KEY_SIZE = 32  # AES-256
IV_SIZE = 16
BLOCK_BITS = algorithms.AES.block_size
SEPARATOR = ":"


class Cipher:
    """
    Encrypts single strings into ``hex(iv):hex(ciphertext)`` blobs.

    The empty string is a sentinel for "no secret set": it is stored as-is
    and never run through AES.
    """

    def __init__(self, key: bytes):
        if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_SIZE:
            raise ValueError(f"Cipher key must be exactly {KEY_SIZE} bytes")
        self._key = bytes(key)

    def __repr__(self) -> str:
        return "<Cipher aes-256-cbc>"

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            return ""

        iv = os.urandom(IV_SIZE)
        padder = padding.PKCS7(BLOCK_BITS).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = _AESCipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return iv.hex() + SEPARATOR + ciphertext.hex()

    def decrypt(self, blob: str) -> str:
        if not blob:
            return ""

        iv_hex, sep, ct_hex = blob.partition(SEPARATOR)
        if not sep:
            raise DecryptError("Encrypted value is missing the IV separator")
        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(ct_hex)
        except ValueError:
            raise DecryptError("Encrypted value is not hex encoded")

        if len(iv) != IV_SIZE:
            raise DecryptError(f"IV must be {IV_SIZE} bytes, got {len(iv)}")
        if not ciphertext or len(ciphertext) % (BLOCK_BITS // 8):
            raise DecryptError("Ciphertext length is not a multiple of the block size")

        decryptor = _AESCipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        unpadder = padding.PKCS7(BLOCK_BITS).unpadder()
        try:
            data = unpadder.update(padded) + unpadder.finalize()
            return data.decode("utf-8")
        except ValueError:
            # Bad padding or non-UTF-8 output: wrong key or corrupted data
            raise DecryptError("Encrypted value does not match the configured key")
