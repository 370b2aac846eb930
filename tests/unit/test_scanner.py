"""Unit tests for content scanning.

Hashtag extraction, paired-delimiter exclusion and private key detection.
"""

from hypothesis import given
from hypothesis import strategies as st

from nostk.scanner import ContentScanner, tags_have_prefix

SCANNER = ContentScanner()

word = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789", min_size=2, max_size=15)
bech32_body = st.text(alphabet="023456789acdefghjklmnpqrstuvwxyz", min_size=58, max_size=58)


class TestExtractHashtags:
    def test_single_hashtag(self):
        assert SCANNER.hashtag_tags("hello #world") == [["t", "world"]]

    def test_hashtag_at_start(self):
        assert SCANNER.extract_hashtags("#nostr rocks") == ["nostr"]

    def test_order_of_appearance(self):
        assert SCANNER.extract_hashtags("#bb then #aa then #cc") == ["bb", "aa", "cc"]

    def test_unicode_hash_variants(self):
        assert SCANNER.extract_hashtags("x ＃fullwidth y ﹟small") == ["fullwidth", "small"]

    def test_hash_inside_word_ignored(self):
        assert SCANNER.extract_hashtags("issue#42 is fixed") == []

    def test_bare_hash_ignored(self):
        assert SCANNER.extract_hashtags("a # b ## c") == []

    def test_no_hashtags(self):
        assert SCANNER.hashtag_tags("plain text") == []

    def test_newline_separated(self):
        assert SCANNER.extract_hashtags("line one\n#tagged line") == ["tagged"]

    @given(words=st.lists(word, min_size=1, max_size=8))
    def test_extracts_every_simple_hashtag(self, words):
        """Property: space-separated #word tokens are all extracted, in order."""
        text = " ".join(f"#{w}" for w in words)
        assert SCANNER.extract_hashtags(text) == words

    @given(text=st.text(max_size=200))
    def test_values_never_contain_delimiters_or_whitespace(self, text):
        """Property: extracted values are stripped of hash variants and whitespace."""
        for value in SCANNER.extract_hashtags(text):
            assert value
            assert not any(c in "#﹟＃" for c in value)
            assert not any(c.isspace() for c in value)


class TestPairedHashtags:
    def test_paired_form_yields_no_tag(self):
        assert SCANNER.hashtag_tags("cite #foo#bar# here") == []

    def test_paired_form_removed_from_text(self):
        assert SCANNER.exclude_paired_hashtags("cite #foo#bar# here") == "cite here"

    def test_simple_hashtag_kept(self):
        assert SCANNER.exclude_paired_hashtags("hello #world") == "hello #world"

    def test_mixed(self):
        assert SCANNER.hashtag_tags("#real and #ref#1# and #other") == [["t", "real"], ["t", "other"]]

    @given(a=word, b=word)
    def test_any_paired_token_excluded(self, a, b):
        """Property: #a#b# tokens never become tags."""
        assert SCANNER.hashtag_tags(f"x #{a}#{b}# y") == []


class TestContainsPrivateKey:
    def test_leak_detected(self):
        token = "nsec1" + "a" * 58
        assert len(token) == 63
        assert SCANNER.contains_private_key(f"my key is {token}") is True

    def test_repeated_prefix_not_a_leak(self):
        assert SCANNER.contains_private_key("nsec1" * 20) is False

    def test_bare_prefix_not_a_leak(self):
        assert SCANNER.contains_private_key("what is an nsec1?") is False

    def test_too_short_not_a_leak(self):
        assert SCANNER.contains_private_key("nsec1" + "a" * 57) is False

    def test_public_key_not_a_leak(self):
        assert SCANNER.contains_private_key("npub1" + "a" * 58) is False

    @given(body=bech32_body, prefix=st.text(max_size=20), suffix=st.text(max_size=20))
    def test_embedded_key_always_detected(self, body, prefix, suffix):
        """Property: a real-looking nsec anywhere in the text is reported."""
        assert SCANNER.contains_private_key(f"{prefix} nsec1{body} {suffix}") is True

    @given(text=st.text(alphabet=st.characters(blacklist_characters="nN"), max_size=200))
    def test_no_prefix_no_leak(self, text):
        assert SCANNER.contains_private_key(text) is False


class TestTagsHavePrefix:
    def test_prefix_in_value(self):
        assert tags_have_prefix([["t", "x"], ["p", "nsec1abc"]], "nsec1") is True

    def test_prefix_in_name(self):
        assert tags_have_prefix([["nsec1", "x"]], "nsec1") is True

    def test_prefix_absent(self):
        assert tags_have_prefix([["t", "nostr"], ["p", "abc nsec1"]], "nsec1") is False

    def test_empty_tags(self):
        assert tags_have_prefix([], "nsec1") is False


class TestScannerConstruction:
    def test_patterns_compiled_once_per_instance(self):
        scanner = ContentScanner()
        pattern = scanner._hashtag
        scanner.extract_hashtags("#one #two")
        assert scanner._hashtag is pattern
