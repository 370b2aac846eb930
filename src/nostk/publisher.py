"""Multi-relay publish fan-out.

Every relay is attempted exactly once; a failure on one relay never stops
the attempts on the others.
"""

import sys
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from .errors import NostkError, RelayConnectError
from .models import PublishOutcome, RelayAttemptState, SignedEvent


class RelayConnection(Protocol):
    def publish(self, event: SignedEvent) -> None: ...

    def close(self) -> None: ...


class RelayTransport(Protocol):
    def connect(self, url: str) -> RelayConnection: ...


OutcomeCallback = Callable[[PublishOutcome], None]


class RelayPublisher:
    """Publish a signed event to an ordered list of relays.

    max_workers=1 contacts relays strictly one after another. A larger value
    runs attempts on a bounded thread pool; outcomes are still reported in
    input order.
    """

    def __init__(self, transport: RelayTransport, max_workers: int = 1):
        if max_workers < 1:
            raise ValueError("max_workers must be a positive integer")
        self.transport = transport
        self.max_workers = max_workers

    def publish(
        self,
        event: SignedEvent,
        relay_urls: Sequence[str],
        on_outcome: OutcomeCallback | None = None,
    ) -> list[PublishOutcome]:
        """Attempt to publish event to every relay in relay_urls.

        CONTRACT:
          Inputs:
            - event: SignedEvent, never mutated
            - relay_urls: ordered relay URLs (duplicates are attempted as given)
            - on_outcome: optional callback invoked once per outcome, in input order

          Outputs:
            - outcomes: list of PublishOutcome, one per URL, same order as relay_urls

          Invariants:
            - Each URL is attempted exactly once (no retries, no backoff)
            - A connect or publish failure of any type is recorded and never aborts the loop
            - A failing close() is reported as a warning and keeps the recorded outcome
            - No aggregate verdict is computed here

          State machine per relay:
            NotAttempted -> Connecting -> Connected -> Publishing -> Published | PublishFailed
                                       -> ConnectFailed
        """
        urls = list(relay_urls)

        if self.max_workers == 1 or len(urls) <= 1:
            outcomes = []
            for url in urls:
                outcome = self.attempt(event, url)
                if on_outcome is not None:
                    on_outcome(outcome)
                outcomes.append(outcome)
            return outcomes

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(urls))) as pool:
            futures = [pool.submit(self.attempt, event, url) for url in urls]
            outcomes = []
            for future in futures:
                outcome = future.result()
                if on_outcome is not None:
                    on_outcome(outcome)
                outcomes.append(outcome)
            return outcomes

    def attempt(self, event: SignedEvent, url: str) -> PublishOutcome:
        """Run one connect-then-publish attempt and return its terminal outcome.

        Never raises: any error from the transport becomes a failed outcome.
        """
        try:
            connection = self.transport.connect(url)
        except Exception as e:
            return PublishOutcome(url=url, success=False, state=RelayAttemptState.CONNECT_FAILED, error=_describe(e))

        try:
            connection.publish(event)
        except RelayConnectError as e:
            outcome = PublishOutcome(url=url, success=False, state=RelayAttemptState.CONNECT_FAILED, error=str(e))
        except Exception as e:
            outcome = PublishOutcome(url=url, success=False, state=RelayAttemptState.PUBLISH_FAILED, error=_describe(e))
        else:
            outcome = PublishOutcome(url=url, success=True, state=RelayAttemptState.PUBLISHED)

        try:
            connection.close()
        except Exception as e:
            sys.stderr.write(f"WARNING: Failed to close connection to {url}: {_describe(e)}\n")

        return outcome


def _describe(error: Exception) -> str:
    if isinstance(error, (NostkError, OSError)):
        return str(error)
    return f"{type(error).__name__}: {error}"
