"""Tag schema: which tag names are legal for each event kind.

Unknown kinds allow no tags at all.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .errors import InvalidTagError

KIND_PROFILE_METADATA = 0
KIND_TEXT_NOTE = 1
KIND_REPOST = 6
KIND_MUTE_LIST = 10000
KIND_PIN_LIST = 10001
KIND_RELAY_LIST_METADATA = 10002
KIND_USER_STATUS = 30315

INDEX_TAG_NAME = 0

DEFAULT_ALLOWED_TAGS: dict[int, tuple[str, ...]] = {
    KIND_PROFILE_METADATA: (),
    KIND_TEXT_NOTE: ("content-warning", "client", "e", "emoji", "expiration", "p", "q", "r", "t"),
    KIND_REPOST: ("e", "p"),
    KIND_MUTE_LIST: ("e", "p", "t", "word"),
    KIND_PIN_LIST: ("e",),
    KIND_RELAY_LIST_METADATA: ("r",),
    KIND_USER_STATUS: ("d", "emoji", "expiration", "r"),
}

_EMPTY: frozenset[str] = frozenset()


class TagSchema:
    """Immutable kind -> allowed tag names table."""

    __slots__ = ("_allowed",)

    def __init__(self, table: Mapping[int, Iterable[str]]):
        self._allowed = MappingProxyType({kind: frozenset(names) for kind, names in table.items()})

    def allowed(self, kind: int) -> frozenset[str]:
        """Return the allowed tag names for kind (empty set for unknown kinds)."""
        return self._allowed.get(kind, _EMPTY)

    def kinds(self) -> frozenset[int]:
        return frozenset(self._allowed)

    def validate(self, kind: int, tags: Iterable[Iterable[str]]) -> None:
        """Validate every tag name against the allowed set for kind.

        CONTRACT:
          Inputs:
            - kind: integer event kind
            - tags: sequence of tags, each a sequence of strings with the name at position 0

          Outputs:
            - None on success

          Invariants:
            - Fails on the first tag whose name is not allowed for kind
            - A tag with no elements fails with an empty tag name
            - Neither the schema nor the tags are mutated

          Properties:
            - Idempotent: validating the same tags twice gives the same result
            - Fail-closed: unknown kinds accept only an empty tag list

          Raises:
            - InvalidTagError: carrying the kind and the offending tag name
        """
        allowed = self.allowed(kind)
        for tag in tags:
            tag = list(tag)
            name = tag[INDEX_TAG_NAME] if tag else ""
            if name not in allowed:
                raise InvalidTagError(kind, name)

    def __repr__(self) -> str:
        return f"TagSchema(kinds={sorted(self._allowed)})"


def default_tag_schema() -> TagSchema:
    """Build the tag schema for the kinds nostk publishes or knows about."""
    return TagSchema(DEFAULT_ALLOWED_TAGS)
