"""Application-wide configuration constants."""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# --- Networking ---
API_HOST = os.environ.get("SIGNALBOOTH_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("SIGNALBOOTH_PORT", os.environ.get("PORT", 5000)))
TRUST_FORWARDED = _env_bool("SIGNALBOOTH_TRUST_FORWARDED", True)
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("SIGNALBOOTH_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# --- Liveness ---
SWEEP_INTERVAL = float(os.environ.get("SIGNALBOOTH_SWEEP_INTERVAL", 30))  # seconds
EVICTION_TIMEOUT = float(os.environ.get("SIGNALBOOTH_EVICTION_TIMEOUT", 90))  # seconds
DISCOVERY_TIMEOUT = float(os.environ.get("SIGNALBOOTH_DISCOVERY_TIMEOUT", 120))  # seconds
# "heartbeat": only HEARTBEAT refreshes activity, "any": every inbound message does
ACTIVITY_POLICY = os.environ.get("SIGNALBOOTH_ACTIVITY_POLICY", "heartbeat")

# --- Presence ---
BROADCAST_PRESENCE = _env_bool("SIGNALBOOTH_BROADCAST_PRESENCE", True)
MAX_DISPLAY_NAME_LENGTH = 64
MAX_ID_ATTEMPTS = 5

# --- Storage ---
_BASE_DIR = Path.cwd()
USERS_FILE = Path(os.environ.get("SIGNALBOOTH_USERS_FILE", _BASE_DIR / "users.json"))
STATIC_DIR = Path(os.environ.get("SIGNALBOOTH_STATIC_DIR", _BASE_DIR / "public"))
DOWNLOADS_DIR = Path(os.environ.get("SIGNALBOOTH_DOWNLOADS_DIR", _BASE_DIR / "downloads"))

# --- Logging ---
LOG_LEVEL = os.environ.get("SIGNALBOOTH_LOG_LEVEL", "INFO").upper()


class ServerSettings(BaseModel):
    """Session tunables handed to the registry-facing components."""
    sweep_interval: float = SWEEP_INTERVAL
    eviction_timeout: float = EVICTION_TIMEOUT
    discovery_timeout: float = DISCOVERY_TIMEOUT
    activity_policy: Literal["heartbeat", "any"] = ACTIVITY_POLICY
    broadcast_presence: bool = BROADCAST_PRESENCE
    trust_forwarded: bool = TRUST_FORWARDED
    users_file: Path = USERS_FILE
    static_dir: Path = STATIC_DIR
    downloads_dir: Path = DOWNLOADS_DIR
    cors_origins: list[str] = CORS_ORIGINS
