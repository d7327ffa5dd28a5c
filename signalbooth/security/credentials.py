"""
Credential store for registered usernames.

Users are persisted to a JSON file. Passwords are never stored in
clear: each one is run through Scrypt with its own random salt.
"""

import asyncio
import json
import logging
import os
from pathlib import Path

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from pydantic import BaseModel

logger = logging.getLogger(__name__)

SALT_SIZE = 16
KEY_SIZE = 32
# Scrypt cost parameters (interactive-login strength)
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1


class RegisteredUser(BaseModel):
    """A user record as stored on disk."""
    username: str
    password_hash: str
    salt: str
    public_key: str


def _kdf(salt: bytes) -> Scrypt:
    return Scrypt(salt=salt, length=KEY_SIZE, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)


def hash_password(password: str, salt: bytes | None = None) -> tuple[str, str]:
    """Return (hash_hex, salt_hex) for a password."""
    salt = salt or os.urandom(SALT_SIZE)
    digest = _kdf(salt).derive(password.encode("utf-8"))
    return digest.hex(), salt.hex()


def verify_password(password: str, password_hash: str, salt: str) -> bool:
    try:
        _kdf(bytes.fromhex(salt)).verify(password.encode("utf-8"), bytes.fromhex(password_hash))
        return True
    except (InvalidKey, ValueError):
        return False


class UserExistsError(Exception):
    """Raised when registering a username that is already taken."""


class CredentialStore:
    """Persists registered users and checks their passwords."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._users: dict[str, RegisteredUser] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._users)

    def load(self) -> None:
        if not self._path.exists():
            logger.info(f"[USERS] No user file at {self._path}, creating a new one")
            self._save()
            return

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            self._users = {
                username: RegisteredUser(**record)
                for username, record in data.items()
            }
            logger.info(f"[USERS] Loaded {len(self._users)} users")
        except Exception as e:
            logger.error(f"[USERS] Failed to load users from {self._path}: {e}")

    def _save(self) -> None:
        try:
            data = {
                username: user.model_dump()
                for username, user in self._users.items()
            }
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"[USERS] Failed to save users: {e}")

    async def register(self, username: str, password: str, public_key: str) -> RegisteredUser:
        # Scrypt runs in a worker thread, never on the event loop
        password_hash, salt = await asyncio.to_thread(hash_password, password)
        async with self._lock:
            if username in self._users:
                raise UserExistsError(username)
            user = RegisteredUser(
                username=username,
                password_hash=password_hash,
                salt=salt,
                public_key=public_key,
            )
            self._users[username] = user
            self._save()
        logger.info(f"[USERS] Registered user: {username}")
        return user

    async def authenticate(self, username: str, password: str) -> RegisteredUser | None:
        """Return the user if the password matches, else None."""
        async with self._lock:
            user = self._users.get(username)
        if user is None:
            return None
        if not await asyncio.to_thread(verify_password, password, user.password_hash, user.salt):
            return None
        return user
