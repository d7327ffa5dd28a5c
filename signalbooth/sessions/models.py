"""Pydantic models for peer sessions and the signaling wire protocol."""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from signalbooth.config import MAX_DISPLAY_NAME_LENGTH


class MessageType(str, Enum):
    """All message types understood or emitted by the server."""
    # Server -> peer
    YOUR_ID = "YOUR_ID"
    NEW_PEER = "NEW_PEER"
    PEER_LEFT = "PEER_LEFT"
    # Peer -> server
    HEARTBEAT = "HEARTBEAT"
    IDENTIFY = "IDENTIFY"
    WEBRTC_OFFER = "WEBRTC_OFFER"
    WEBRTC_ANSWER = "WEBRTC_ANSWER"
    ICE_CANDIDATE = "ICE_CANDIDATE"


RELAY_TYPES = frozenset({
    MessageType.WEBRTC_OFFER,
    MessageType.WEBRTC_ANSWER,
    MessageType.ICE_CANDIDATE,
})


class PeerSession(BaseModel):
    """Server-side record of one connected peer."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    session_id: str
    connection: Any = Field(exclude=True, repr=False)
    remote_address: str
    last_activity: float  # monotonic
    connected_at: float  # monotonic
    advertised_port: int | None = None
    display_name: str | None = None

    @property
    def is_announced(self) -> bool:
        return self.advertised_port is not None and self.display_name is not None


class IdentifyPayload(BaseModel):
    """
    Body of an IDENTIFY message.

    Invalid fields collapse to None instead of failing validation, so a
    bad port never discards a good name (and vice versa).
    """
    model_config = ConfigDict(extra="ignore")

    display_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("displayName", "username", "name"),
    )
    advertised_port: int | None = Field(
        default=None,
        validation_alias=AliasChoices("advertisedPort", "port", "p2pPort"),
    )

    @field_validator("display_name", mode="before")
    @classmethod
    def _clean_name(cls, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        value = value.strip()
        if not value:
            return None
        return value[:MAX_DISPLAY_NAME_LENGTH]

    @field_validator("advertised_port", mode="before")
    @classmethod
    def _clean_port(cls, value: Any) -> int | None:
        # bool is an int subclass; "true" is not a port
        if isinstance(value, bool):
            return None
        if isinstance(value, float):
            if not value.is_integer():
                return None
            value = int(value)
        elif isinstance(value, str):
            value = value.strip()
            # isdecimal rejects superscripts; five digits bounds int()
            if not value.isdecimal() or len(value) > 5:
                return None
            value = int(value)
        elif not isinstance(value, int):
            return None
        if not 0 < value < 65536:
            return None
        return value


class RelayEnvelope(BaseModel):
    """The one field the router needs from a negotiation message."""
    model_config = ConfigDict(extra="allow")

    type: MessageType
    to: str
