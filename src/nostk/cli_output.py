"""Console output for publish results."""

import json
from collections.abc import Sequence

from .models import PublishOutcome, RelayFlags, UnsignedEvent


def format_outcome(outcome: PublishOutcome) -> str:
    """Format one relay outcome as a single console line.

    Success yields "published to <url>"; failure yields the error text as-is.
    """
    if outcome.success:
        return f"published to {outcome.url}"
    return outcome.error or f"failed to publish to {outcome.url}"


def format_summary(outcomes: Sequence[PublishOutcome]) -> str:
    """Format the aggregate line, e.g. "published to 2 of 3 relays"."""
    succeeded = sum(1 for outcome in outcomes if outcome.success)
    noun = "relay" if len(outcomes) == 1 else "relays"
    return f"published to {succeeded} of {len(outcomes)} {noun}"


def format_dry_run(event: UnsignedEvent, relays: Sequence[str]) -> str:
    """Format the event JSON and target relays for --dry-run (two lines)."""
    return f"{json.dumps(event.to_dict(), ensure_ascii=False)}\nRelays: {json.dumps(list(relays))}"


def format_relay_line(url: str, flags: RelayFlags) -> str:
    """Format one relays.json entry as "<url> R:<bool> W:<bool>"."""
    return f"{url} R:{str(flags.read).lower()} W:{str(flags.write).lower()}"
