"""REST API routes for Signal Booth."""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from signalbooth.discovery.service import DiscoveryService
from signalbooth.security.credentials import CredentialStore, UserExistsError
from signalbooth.sessions.registry import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependencies (services live on app.state, wired by create_app) ---

def get_discovery_service(request: Request) -> DiscoveryService:
    return request.app.state.discovery_service


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credential_store


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


# --- Discovery ---

@router.get("/peers")
async def list_peers(discovery: DiscoveryService = Depends(get_discovery_service)):
    """Return the peers that can currently be connected to."""
    peers = await discovery.list_peers()
    return {"peers": [p.model_dump(by_alias=True) for p in peers]}


@router.get("/status")
async def status(request: Request, registry: SessionRegistry = Depends(get_registry)):
    """Health check with the number of connected peers."""
    return {
        "status": "ok",
        "peers": len(registry),
        "uptime": round(time.monotonic() - request.app.state.started_at, 1),
    }


# --- Accounts ---

class RegisterBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = ""
    password: str = ""
    public_key: str = Field(default="", alias="publicKey")


class LoginBody(BaseModel):
    username: str = ""
    password: str = ""


@router.post("/register")
async def register(body: RegisterBody, store: CredentialStore = Depends(get_credential_store)):
    if not body.username or not body.password or not body.public_key:
        raise HTTPException(status_code=400, detail="Missing fields.")
    try:
        await store.register(body.username, body.password, body.public_key)
    except UserExistsError:
        raise HTTPException(status_code=409, detail="Username is already registered.")
    return {"message": "User registered successfully.", "username": body.username}


@router.post("/login")
async def login(body: LoginBody, store: CredentialStore = Depends(get_credential_store)):
    user = await store.authenticate(body.username, body.password)
    if user is None:
        logger.info(f"[USERS] Failed login for {body.username!r}")
        raise HTTPException(status_code=401, detail="Invalid credentials.")
    return {"message": "Login successful.", "username": user.username, "publicKey": user.public_key}
