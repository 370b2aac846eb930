"""Data models for nostk.

Data classes for events, relay flags, profile metadata and publish outcomes.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum


@dataclass
class UnsignedEvent:
    """Draft event ready for signing via nak.

    Fields id, sig, pubkey, created_at are omitted (signer provides).
    """

    kind: int
    content: str
    tags: list[list[str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"kind": self.kind, "content": self.content, "tags": self.tags}


@dataclass(frozen=True)
class SignedEvent:
    """Event as returned by the signer, immutable from here on."""

    id: str
    pubkey: str
    created_at: int
    kind: int
    tags: tuple[tuple[str, ...], ...]
    content: str
    sig: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
            "sig": self.sig,
        }


@dataclass
class RelayFlags:
    """Read/write intent for a single relay in relays.json."""

    read: bool = True
    write: bool = True

    def to_dict(self) -> dict:
        return {"read": self.read, "write": self.write}


@dataclass
class ProfileMetadata:
    """Kind 0 profile fields, in the order they are written to profile.json."""

    name: str = ""
    display_name: str = ""
    about: str = ""
    website: str = ""
    picture: str = ""
    banner: str = ""
    nip05: str = ""
    lud16: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class KeyPair:
    """Secret and public key in hex and bech32 form."""

    hsec: str
    hpub: str
    nsec: str
    npub: str


class RelayAttemptState(str, Enum):
    """Terminal states of a single relay attempt."""

    PUBLISHED = "published"
    PUBLISH_FAILED = "publish_failed"
    CONNECT_FAILED = "connect_failed"


@dataclass(frozen=True)
class PublishOutcome:
    """Result of one publish attempt against one relay."""

    url: str
    success: bool
    state: RelayAttemptState
    error: str | None = None
