"""Unsigned event construction.

Builds draft events from command-line arguments, relay lists and profiles,
and validates their tags before anything is signed.
"""

from collections.abc import Mapping, Sequence

from .errors import InvalidArgumentError, MissingArgumentError, PrivateKeyLeakError, UnsupportedSubcommandError
from .models import RelayFlags, UnsignedEvent
from .registry import FIRST_TAG_INDEX, INDEX_CONTENT, INDEX_SUBCOMMAND, SubcommandRegistry, default_registry
from .scanner import NSEC_PREFIX, ContentScanner, tags_have_prefix
from .schema import KIND_PROFILE_METADATA, KIND_RELAY_LIST_METADATA, TagSchema, default_tag_schema
from .store import is_hex_key

# Positional tags whose value is a hex public key
HEX_KEY_TAGS = frozenset({"p"})


def build_event(
    subcommand: str,
    args: Sequence[str],
    registry: SubcommandRegistry | None = None,
    schema: TagSchema | None = None,
    scanner: ContentScanner | None = None,
) -> UnsignedEvent:
    """Construct an unsigned event for a message subcommand from positional arguments.

    CONTRACT:
      Inputs:
        - subcommand: registered subcommand name (e.g. "pubMessage")
        - args: full positional argument list
          [program, subcommand, content, tagArg...]
        - registry, schema, scanner: optional collaborators (defaults built fresh)

      Outputs:
        - event: UnsignedEvent with kind from the registry

      Invariants:
        - kind comes from the registry, never from argument content
        - content equals args[2] exactly
        - args[i] for i >= 3 becomes [tag name bound to (subcommand, i), args[i]]
        - every position the subcommand marks required is present and non-empty
        - "p" values are 64-character hex public keys
        - hashtag tags ["t", value] follow the positional tags, in content order
        - every tag name is allowed for kind (validated before returning)

      Properties:
        - Deterministic: same inputs yield an identical event
        - Fail-closed: an unbound argument position is an error, never dropped
        - No I/O

      Algorithm:
        1. Look up subcommand in registry (UnsupportedSubcommandError if absent)
        2. Require args[2] to be present and non-empty
        3. Require every position in spec.required
        4. Convert each remaining argument to a tag via its binding
        5. Append hashtag tags scanned from content
        6. Validate tags against schema for kind
        7. Return UnsignedEvent

      Raises:
        - UnsupportedSubcommandError: unknown subcommand or unbound argument position
        - MissingArgumentError: content or a required argument missing or empty
        - InvalidArgumentError: a "p" value is not a 64-character hex key
        - InvalidTagError: a tag name not allowed for the kind
    """
    registry = registry if registry is not None else default_registry()
    schema = schema if schema is not None else default_tag_schema()
    scanner = scanner if scanner is not None else ContentScanner()

    spec = registry.get(subcommand)

    if len(args) > INDEX_SUBCOMMAND and args[INDEX_SUBCOMMAND] != subcommand:
        raise UnsupportedSubcommandError(
            f"Argument subcommand {args[INDEX_SUBCOMMAND]!r} does not match {subcommand!r}"
        )

    if len(args) <= INDEX_CONTENT or not args[INDEX_CONTENT]:
        raise MissingArgumentError("Not set text message")

    content = args[INDEX_CONTENT]

    for index in spec.required:
        if len(args) <= index or not args[index]:
            raise MissingArgumentError(f"Not set {spec.tag_name_for(index)} argument at position {index}")

    tags = []
    for index in range(FIRST_TAG_INDEX, len(args)):
        tag_name = registry.tag_name_for(subcommand, index)
        if tag_name in HEX_KEY_TAGS and not is_hex_key(args[index]):
            raise InvalidArgumentError(
                f"Argument for tag {tag_name!r} must be a 64-character hex key: {args[index]!r}"
            )
        tags.append([tag_name, args[index]])

    tags.extend(scanner.hashtag_tags(content))

    schema.validate(spec.kind, tags)
    return UnsignedEvent(kind=spec.kind, content=content, tags=tags)


def build_relay_list_event(relays: Mapping[str, RelayFlags], schema: TagSchema | None = None) -> UnsignedEvent:
    """Construct a kind 10002 relay list event.

    Each relay becomes ["r", url], with "read" or "write" appended when only
    that one flag is set.
    """
    schema = schema if schema is not None else default_tag_schema()

    tags = []
    for url, flags in relays.items():
        tag = ["r", url]
        if flags.read and not flags.write:
            tag.append("read")
        elif flags.write and not flags.read:
            tag.append("write")
        tags.append(tag)

    schema.validate(KIND_RELAY_LIST_METADATA, tags)
    return UnsignedEvent(kind=KIND_RELAY_LIST_METADATA, content="", tags=tags)


def build_profile_event(profile_json: str, schema: TagSchema | None = None) -> UnsignedEvent:
    """Construct a kind 0 profile metadata event with the profile JSON as content."""
    schema = schema if schema is not None else default_tag_schema()
    schema.validate(KIND_PROFILE_METADATA, [])
    return UnsignedEvent(kind=KIND_PROFILE_METADATA, content=profile_json, tags=[])


def check_private_key_leak(event: UnsignedEvent, scanner: ContentScanner | None = None) -> None:
    """Refuse to publish an event whose content or tags carry a private key.

    Raises:
      - PrivateKeyLeakError: content contains an nsec key, or a tag field starts with nsec1
    """
    scanner = scanner if scanner is not None else ContentScanner()

    if scanner.contains_private_key(event.content):
        raise PrivateKeyLeakError("Content contains a private key (nsec); refusing to publish")

    if tags_have_prefix(event.tags, NSEC_PREFIX):
        raise PrivateKeyLeakError("A tag contains a private key (nsec); refusing to publish")
