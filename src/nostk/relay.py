"""Relay URL validation and warnings."""

import sys
from collections.abc import Iterable
from urllib.parse import urlparse

from .errors import InvalidRelayURLError

LOCALHOST_HOSTS = {"localhost", "127.0.0.1", "::1"}


def validate_relay_url(url: str) -> bool:
    """Return True if url uses the ws:// or wss:// scheme (case-sensitive)."""
    return isinstance(url, str) and url.startswith(("wss://", "ws://"))


def require_relay_url(url: str) -> str:
    """Return url unchanged, or raise InvalidRelayURLError if it is not a WebSocket URL."""
    if not validate_relay_url(url):
        raise InvalidRelayURLError(f"Invalid relay URL (must be ws:// or wss://): {url!r}")
    return url


def is_localhost_relay(url: str) -> bool:
    """Return True if the relay host is a loopback name or address."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return False
    if not hostname:
        return False
    return hostname.lower() in LOCALHOST_HOSTS


def warn_insecure_relays(relays: Iterable[str]) -> None:
    """Write a warning to stderr for ws:// relays that are not on localhost."""
    insecure = [url for url in relays if url.startswith("ws://") and not is_localhost_relay(url)]
    if insecure:
        sys.stderr.write(
            f"WARNING: Unencrypted ws:// relay(s) on non-localhost hosts: {', '.join(insecure)}. "
            "Consider using wss:// instead.\n"
        )
