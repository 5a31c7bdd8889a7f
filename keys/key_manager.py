import os
from datetime import datetime, timedelta

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from core.logging_config import get_logger

logger = get_logger(__name__)


class KeyManager:
    """
    Owns the RSA key pair that signs and verifies storefront auth tokens.

    Keys live as PEM files in ``key_dir``. A pair is generated when either
    file is missing, or when the private key is older than
    ``key_refresh_days``. Rotating the pair invalidates every token signed
    with the previous key, so the refresh window should stay well above the
    token lifetime.
    """

    PRIVATE_KEY_FILE = "private_key.pem"
    PUBLIC_KEY_FILE = "public_key.pem"

    def __init__(self, key_dir: str = "keys", key_refresh_days: int = 30):
        self.key_dir = key_dir
        self.key_refresh_days = key_refresh_days
        self.private_key_path = os.path.join(key_dir, self.PRIVATE_KEY_FILE)
        self.public_key_path = os.path.join(key_dir, self.PUBLIC_KEY_FILE)
        self._ensure_keys()

    def _ensure_keys(self) -> None:
        os.makedirs(self.key_dir, exist_ok=True)
        if self._keys_missing() or self._keys_need_refresh():
            self._generate_keys()

    def _keys_missing(self) -> bool:
        return not (
            os.path.exists(self.private_key_path)
            and os.path.exists(self.public_key_path)
        )

    def _keys_need_refresh(self) -> bool:
        """
        True when the private key is older than the refresh window.
        """
        file_time = datetime.fromtimestamp(os.path.getmtime(self.private_key_path))
        return datetime.now() - file_time > timedelta(days=self.key_refresh_days)

    def _generate_keys(self) -> None:
        logger.info("Generating new RSA signing key pair in %s", self.key_dir)
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

        pem_private = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        pem_public = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

        self._write(self.private_key_path, pem_private, mode=0o600)
        self._write(self.public_key_path, pem_public, mode=0o644)

    @staticmethod
    def _write(path: str, data: bytes, mode: int) -> None:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "wb") as f:
            f.write(data)

    def get_private_key(self) -> bytes:
        with open(self.private_key_path, "rb") as f:
            return f.read()

    def get_public_key(self) -> bytes:
        with open(self.public_key_path, "rb") as f:
            return f.read()
