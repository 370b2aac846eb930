"""Nak subprocess invocation for signing, key handling and per-relay publishing.

Handles external process communication with the nak CLI tool.
"""

import json
import re
import subprocess

from .errors import (
    InvalidRelayURLError,
    NakInvocationError,
    PublishTimeoutError,
    RelayConnectError,
    RelayPublishError,
    SigningError,
)
from .models import SignedEvent, UnsignedEvent
from .relay import require_relay_url

DEFAULT_TIMEOUT = 30

SIGNING_ERROR_KEYWORDS = ("rejected", "deny", "denied", "signing", "signer", "invalid secret")
CONNECT_ERROR_KEYWORDS = ("failed to connect", "connection refused", "no such host", "dial tcp")

CONNECT_STATUS_PATTERN = re.compile(r"connecting to (\S+?)\.\.\.\s*(.*)$")
PUBLISH_STATUS_PATTERN = re.compile(r"publishing to (\S+?)\.\.\.\s*(.*)$")


def run_nak(args: list[str], stdin: str | None = None, timeout: int = DEFAULT_TIMEOUT) -> tuple[int, str, str]:
    """Run nak with args and return (returncode, stdout, stderr).

    CONTRACT:
      Inputs:
        - args: nak arguments, excluding the "nak" binary name
        - stdin: optional text written to nak stdin
        - timeout: positive integer, seconds to wait for nak completion

      Outputs:
        - (returncode, stdout, stderr)

      Invariants:
        - nak runs as a separate subprocess with piped stdio
        - On timeout the process is killed and reaped before raising

      Raises:
        - NakInvocationError: nak binary missing, failed to start, rejected arguments, or communication error
        - PublishTimeoutError: nak did not complete within timeout
    """
    cmd = ["nak", *args]

    try:
        process = subprocess.Popen(
            cmd, stdin=subprocess.PIPE, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True
        )
    except FileNotFoundError:
        raise NakInvocationError("nak binary not found in system PATH") from None
    except OSError as e:
        raise NakInvocationError(f"Failed to start nak subprocess: {e}") from None
    except ValueError as e:
        raise NakInvocationError(f"Invalid nak arguments: {e}") from None

    try:
        stdout, stderr = process.communicate(input=stdin, timeout=timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()
        raise PublishTimeoutError(f"Nak subprocess timed out after {timeout} seconds") from None
    except Exception as e:
        process.kill()
        process.wait()
        raise NakInvocationError(f"Failed to communicate with nak subprocess: {e}") from None

    return process.returncode, stdout or "", stderr or ""


def sign_event(event: UnsignedEvent, secret: str, timeout: int = DEFAULT_TIMEOUT) -> SignedEvent:
    """Sign a draft event with nak without publishing it anywhere.

    CONTRACT:
      Inputs:
        - event: UnsignedEvent, already validated
        - secret: hex secret key (or any value nak accepts for --sec)
        - timeout: positive integer, seconds

      Outputs:
        - signed: SignedEvent with id, pubkey, created_at and sig populated

      Invariants:
        - Event JSON ({"kind", "content", "tags"}) passed to nak via stdin
        - No relay URLs are passed, so nak only signs and prints the event
        - Signer rejections raise SigningError, other failures NakInvocationError

      Raises:
        - SigningError: signer rejected the event
        - NakInvocationError: nak failed or produced unusable output
        - PublishTimeoutError: nak did not complete within timeout
    """
    event_json = json.dumps(event.to_dict(), ensure_ascii=False)

    returncode, stdout, stderr = run_nak(["event", "--sec", secret], stdin=event_json, timeout=timeout)

    if returncode != 0:
        stderr_lower = stderr.lower()
        if any(keyword in stderr_lower for keyword in SIGNING_ERROR_KEYWORDS):
            raise SigningError(stderr.strip() if stderr else "Signing rejected")
        raise NakInvocationError(stderr.strip() if stderr else f"Nak exited with code {returncode}")

    return parse_signed_event(stdout)


def parse_signed_event(stdout: str) -> SignedEvent:
    """Parse the signed event JSON line from nak stdout.

    nak may print status lines around the event; the first line that looks
    like a JSON object is taken.

    Raises:
      - NakInvocationError: no JSON line, invalid JSON, or missing required fields
    """
    json_line = None
    for line in stdout.strip().split("\n"):
        line = line.strip()
        if line.startswith("{") and line.endswith("}"):
            json_line = line
            break

    if not json_line:
        raise NakInvocationError("No JSON event found in nak output")

    try:
        data = json.loads(json_line)
    except json.JSONDecodeError as e:
        raise NakInvocationError(f"Failed to parse nak output as JSON: {e}") from e

    if not isinstance(data, dict):
        raise NakInvocationError("Nak output is not a JSON object")

    for key in ("id", "pubkey", "sig"):
        value = data.get(key)
        if not value or not isinstance(value, str) or not value.strip():
            raise NakInvocationError(f"Nak output missing required field: {key}")

    created_at = data.get("created_at")
    if not isinstance(created_at, int) or isinstance(created_at, bool):
        raise NakInvocationError("Nak output missing required field: created_at")

    kind = data.get("kind")
    if not isinstance(kind, int) or isinstance(kind, bool):
        raise NakInvocationError("Nak output missing required field: kind")

    tags = data.get("tags") or []
    if not isinstance(tags, list) or not all(isinstance(tag, list) for tag in tags):
        raise NakInvocationError("Nak output has malformed tags")

    return SignedEvent(
        id=data["id"],
        pubkey=data["pubkey"],
        created_at=created_at,
        kind=kind,
        tags=tuple(tuple(str(value) for value in tag) for tag in tags),
        content=str(data.get("content", "")),
        sig=data["sig"],
    )


def publish_event(event: SignedEvent, relay_url: str, timeout: int = DEFAULT_TIMEOUT) -> None:
    """Send an already signed event to exactly one relay through nak.

    The unmodified signed event is piped to ``nak event <relay_url>``, which
    rebroadcasts it as-is.

    Raises:
      - RelayConnectError: nak could not reach the relay
      - RelayPublishError: the relay did not accept the event
      - NakInvocationError / PublishTimeoutError: nak itself failed or hung
    """
    event_json = json.dumps(event.to_dict(), ensure_ascii=False)
    returncode, stdout, stderr = run_nak(["event", relay_url], stdin=event_json, timeout=timeout)
    classify_publish_output(relay_url, returncode, stdout + "\n" + stderr)


def classify_publish_output(relay_url: str, returncode: int, output: str) -> None:
    """Map nak publish output for one relay to success or a relay error.

    nak reports relay status as human-readable lines such as
    "publishing to relay.example.com... success." rather than as JSON.
    """
    statuses = []
    connect_failures = []
    status_lines = []
    for line in output.splitlines():
        line = line.strip()
        if not line or (line.startswith("{") and line.endswith("}")):
            continue
        status_lines.append(line)
        match = PUBLISH_STATUS_PATTERN.search(line)
        if match:
            statuses.append(match.group(2).strip())
            continue
        match = CONNECT_STATUS_PATTERN.search(line)
        if match and not match.group(2).strip().lower().startswith("ok"):
            connect_failures.append(match.group(2).strip())

    if any(status.lower().startswith("success") for status in statuses):
        return

    remainder = "\n".join(status_lines)
    lowered = remainder.lower()
    if returncode == 0 and not statuses and not connect_failures and "fail" not in lowered and "error" not in lowered:
        return

    message = next((status for status in connect_failures + statuses if status), "") or remainder
    if not message:
        message = f"Nak exited with code {returncode}"

    if connect_failures or any(keyword in message.lower() for keyword in CONNECT_ERROR_KEYWORDS):
        raise RelayConnectError(f"{relay_url}: {message}")
    raise RelayPublishError(f"{relay_url}: {message}")


class NakRelayConnection:
    """A relay endpoint reached through nak; each publish is one subprocess."""

    def __init__(self, url: str, timeout: int = DEFAULT_TIMEOUT):
        self.url = url
        self.timeout = timeout

    def publish(self, event: SignedEvent) -> None:
        publish_event(event, self.url, self.timeout)

    def close(self) -> None:
        pass


class NakRelayTransport:
    """Opens NakRelayConnection objects for relay URLs."""

    def __init__(self, timeout: int = DEFAULT_TIMEOUT):
        self.timeout = timeout

    def connect(self, url: str) -> NakRelayConnection:
        """Return a connection for url.

        Raises:
          - RelayConnectError: url is not a ws:// or wss:// URL
        """
        try:
            require_relay_url(url)
        except InvalidRelayURLError as e:
            raise RelayConnectError(str(e)) from None
        return NakRelayConnection(url, self.timeout)


def generate_secret_key(timeout: int = DEFAULT_TIMEOUT) -> str:
    """Generate a new hex secret key via ``nak key generate``."""
    return _single_line_output(["key", "generate"], timeout, "key generate")


def derive_public_key(secret: str, timeout: int = DEFAULT_TIMEOUT) -> str:
    """Derive the hex public key for secret via ``nak key public``."""
    return _single_line_output(["key", "public", secret], timeout, "key public")


def encode_bech32(prefix: str, hex_key: str, timeout: int = DEFAULT_TIMEOUT) -> str:
    """Encode a hex key as nsec/npub via ``nak encode``.

    Raises:
      - NakInvocationError: unsupported prefix, nak failure, or output without the prefix
    """
    if prefix not in ("nsec", "npub"):
        raise NakInvocationError(f"Unsupported bech32 prefix: {prefix}")

    encoded = _single_line_output(["encode", prefix, hex_key], timeout, f"encode {prefix}")
    validate_bech32(encoded, prefix)
    return encoded


def validate_bech32(value: str, prefix: str) -> None:
    """Validate bech32 shape without decoding.

    Raises:
      - NakInvocationError: whitespace, wrong prefix, or non-bech32 characters
    """
    if not value or any(c.isspace() for c in value):
        raise NakInvocationError(f"{prefix} must be a non-empty string without whitespace")

    hrp = prefix + "1"
    if not value.startswith(hrp) or len(value) <= len(hrp):
        raise NakInvocationError(f"{prefix} must start with '{hrp}', got: {value[:10]}")

    bech32_chars = set("023456789acdefghjklmnpqrstuvwxyz")
    for char in value[len(hrp) :]:
        if char not in bech32_chars:
            raise NakInvocationError(f"{prefix} contains invalid bech32 character: '{char}'")


def _single_line_output(args: list[str], timeout: int, label: str) -> str:
    returncode, stdout, stderr = run_nak(args, timeout=timeout)
    if returncode != 0:
        raise NakInvocationError(stderr.strip() if stderr.strip() else f"nak {label} exited with code {returncode}")

    value = stdout.strip()
    if not value:
        raise NakInvocationError(f"nak {label} produced empty output")
    return value
