"""Exception hierarchy for nostk.

Pre-flight errors abort a command before anything is signed or sent.
Relay errors are caught per relay and recorded in a PublishOutcome.
"""


class NostkError(Exception):
    """Base class for all nostk errors."""


class UnsupportedSubcommandError(NostkError):
    """Subcommand is not registered, or an argument position has no tag binding."""


class MissingArgumentError(NostkError):
    """A required positional argument is absent or empty."""


class InvalidArgumentError(NostkError):
    """A positional argument value has the wrong shape for its tag."""


class InvalidTagError(NostkError):
    """Tag name is not allowed for the event kind."""

    def __init__(self, kind: int, tag_name: str):
        self.kind = kind
        self.tag_name = tag_name
        super().__init__(f"Inclusion of invalid tag in specified kind (kind: {kind}, tag: {tag_name!r})")


class PrivateKeyLeakError(NostkError):
    """Event content or tags carry something shaped like a private key."""


class KeyMaterialError(NostkError):
    """Key files are missing, unreadable, or malformed."""


class RelayListError(NostkError):
    """relays.json is missing or malformed."""


class NoRelaysError(NostkError):
    """Relay list contains no usable relay URLs."""


class InvalidRelayURLError(NostkError):
    """Relay URL is not a ws:// or wss:// URL."""


class ProfileError(NostkError):
    """profile.json is missing or malformed."""


class EditorError(NostkError):
    """$EDITOR is unset, the target file is missing, or the editor failed."""


class NakInvocationError(NostkError):
    """nak could not be started, or it failed or produced unusable output."""


class SigningError(NostkError):
    """nak refused to sign the event."""


class PublishTimeoutError(NostkError):
    """nak did not finish within the timeout."""


class RelayConnectError(NostkError):
    """Connection to a relay could not be established."""


class RelayPublishError(NostkError):
    """Relay was reached but did not accept the event."""
