"""Free-text content analysis.

Hashtag extraction, exclusion of paired-delimiter tokens that look like
markup rather than hashtags, and detection of bech32 private keys.
"""

import re
from collections.abc import Iterable

NSEC_PREFIX = "nsec1"
NSEC_BODY_LENGTH = 58

# ASCII "#", small number sign, fullwidth number sign
HASH_CHARS = "#﹟＃"

HASHTAG_PATTERN = rf"(?:^|\s)([{HASH_CHARS}][^\s{HASH_CHARS}]+[^\s|$])"
PAIRED_HASHTAG_PATTERN = rf"(?:^|\s)([{HASH_CHARS}][^{HASH_CHARS}]\S*[{HASH_CHARS}]\S*)"
HASHTAG_STRIP_PATTERN = rf"[\s{HASH_CHARS}]"
PRIVATE_KEY_PATTERN = rf"{NSEC_PREFIX}[a-zA-Z0-9]{{{NSEC_BODY_LENGTH}}}"


class ContentScanner:
    """Regex scanner over event content; patterns are compiled once per instance."""

    def __init__(self):
        self._hashtag = re.compile(HASHTAG_PATTERN)
        self._paired = re.compile(PAIRED_HASHTAG_PATTERN)
        self._strip = re.compile(HASHTAG_STRIP_PATTERN)
        self._private_key = re.compile(PRIVATE_KEY_PATTERN)

    def exclude_paired_hashtags(self, text: str) -> str:
        """Remove tokens like ``#foo#bar#`` (and their leading whitespace) from text."""
        return self._paired.sub("", text)

    def extract_hashtags(self, text: str) -> list[str]:
        """Return hashtag values in order of appearance, delimiters and whitespace stripped.

        CONTRACT:
          Inputs:
            - text: content string

          Outputs:
            - hashtags: list of strings, possibly empty

          Invariants:
            - A hashtag starts at the beginning of text or after whitespace
            - Accepted delimiters: "#", U+FE5F, U+FF03
            - Returned values contain no delimiter and no whitespace characters
            - Paired-delimiter tokens are NOT excluded here (see hashtag_tags)
        """
        return [self._strip.sub("", match.group(0)) for match in self._hashtag.finditer(text)]

    def hashtag_tags(self, text: str) -> list[list[str]]:
        """Build ["t", value] tags from text after dropping paired-delimiter tokens."""
        return [["t", value] for value in self.extract_hashtags(self.exclude_paired_hashtags(text))]

    def contains_private_key(self, text: str) -> bool:
        """Report whether text contains an nsec1-prefixed bech32 private key.

        A match whose body is itself made of the prefix (e.g. "nsec1nsec1...")
        is not counted.
        """
        for match in self._private_key.findall(text):
            if NSEC_PREFIX not in match[len(NSEC_PREFIX) :]:
                return True
        return False


def tags_have_prefix(tags: Iterable[Iterable[str]], prefix: str) -> bool:
    """Return True if any field of any tag starts with prefix."""
    return any(value.startswith(prefix) for tag in tags for value in tag)
