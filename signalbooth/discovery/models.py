"""Pydantic models for peer discovery."""

from pydantic import BaseModel, Field


class DiscoveredPeer(BaseModel):
    """A connected peer that has announced itself and is still active."""
    session_id: str = Field(serialization_alias="sessionId")
    display_name: str = Field(serialization_alias="displayName")
    host: str
    port: int
