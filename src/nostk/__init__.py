"""nostk: a command-line client for publishing Nostr events."""

__version__ = "0.1.0"
