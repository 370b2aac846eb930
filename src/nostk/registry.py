"""Subcommand registry for message-publishing subcommands.

Each entry declares the event kind a subcommand produces and which
positional argument becomes which tag.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from .errors import UnsupportedSubcommandError
from .schema import KIND_TEXT_NOTE

INDEX_PROGRAM = 0
INDEX_SUBCOMMAND = 1
INDEX_CONTENT = 2
FIRST_TAG_INDEX = 3


@dataclass(frozen=True)
class SubcommandSpec:
    """Kind and positional tag bindings for one subcommand.

    bindings is an ordered tuple of (argument index, tag name) pairs.
    required lists the argument indexes that must be present.
    """

    kind: int
    bindings: tuple[tuple[int, str], ...] = ()
    required: tuple[int, ...] = ()

    def tag_name_for(self, index: int) -> str | None:
        for bound_index, tag_name in self.bindings:
            if bound_index == index:
                return tag_name
        return None


DEFAULT_SUBCOMMANDS: dict[str, SubcommandSpec] = {
    "pubMessage": SubcommandSpec(kind=KIND_TEXT_NOTE, bindings=((3, "content-warning"),)),
    "pubMessageTo": SubcommandSpec(kind=KIND_TEXT_NOTE, bindings=((3, "p"),), required=(3,)),
}


class SubcommandRegistry:
    """Read-only mapping of subcommand name to SubcommandSpec."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, SubcommandSpec]):
        self._entries = MappingProxyType(dict(entries))

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def names(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def get(self, name: str) -> SubcommandSpec:
        """Return the spec for name.

        Raises:
          - UnsupportedSubcommandError: name is not registered
        """
        try:
            return self._entries[name]
        except KeyError:
            raise UnsupportedSubcommandError(f"Not supported subcommand {name}") from None

    def kind_for(self, name: str) -> int:
        return self.get(name).kind

    def tag_name_for(self, name: str, index: int) -> str:
        """Return the tag name bound to argument index for subcommand name.

        Raises:
          - UnsupportedSubcommandError: subcommand unknown or index unbound
        """
        tag_name = self.get(name).tag_name_for(index)
        if tag_name is None:
            raise UnsupportedSubcommandError(f"Subcommand {name} does not accept an argument at position {index}")
        return tag_name


def default_registry() -> SubcommandRegistry:
    return SubcommandRegistry(DEFAULT_SUBCOMMANDS)
