"""Credential encryption for stored endpoint secrets."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class Encryptor(ABC):
    """Encrypt/decrypt contract for stored credentials."""

    @abstractmethod
    def encrypt(self, plaintext: str) -> str:
        """Encrypt a credential for storage."""
        pass

    @abstractmethod
    def decrypt(self, ciphertext: str) -> Optional[str]:
        """Decrypt a stored credential, returning None when it cannot be decrypted."""
        pass


class FernetEncryptor(Encryptor):
    """Fernet (AES-128-CBC + HMAC) implementation."""

    def __init__(self, key: str) -> None:
        """
        Initialize the encryptor.

        Raises:
            ValueError: If the key is not a valid Fernet key
        """
        if not key or not key.strip():
            raise ValueError("Encryption key is empty")
        try:
            self._fernet = Fernet(key.encode())
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid encryption key: {e}")

    @staticmethod
    def generate_key() -> str:
        """Generate a new key."""
        return Fernet.generate_key().decode()

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a credential."""
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> Optional[str]:
        """Decrypt a credential."""
        if not ciphertext:
            return None
        try:
            return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError):
            logger.warning("Stored credential could not be decrypted")
            return None
