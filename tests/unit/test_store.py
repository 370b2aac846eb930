"""Unit tests for the local key and JSON store."""

import json
import stat

import pytest

from nostk.errors import KeyMaterialError, NoRelaysError, ProfileError, RelayListError
from nostk.models import KeyPair, RelayFlags
from nostk.store import (
    EMOJI_FILE,
    HSEC_FILE,
    NPUB_FILE,
    PROFILE_FILE,
    RELAYS_FILE,
    init_store,
    read_private_key,
    read_profile,
    read_relay_list,
    relay_urls,
    resolve_store_dir,
    save_key_pair,
)

SECRET = "0123456789abcdef" * 4


class TestResolveStoreDir:
    def test_explicit_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NOSTK_DIR", str(tmp_path / "env"))
        assert resolve_store_dir(str(tmp_path / "explicit")) == tmp_path / "explicit"

    def test_env_used(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NOSTK_DIR", str(tmp_path / "env"))
        assert resolve_store_dir(None) == tmp_path / "env"

    def test_home_default(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NOSTK_DIR", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert resolve_store_dir(None) == tmp_path / ".nostk"


class TestInitStore:
    def test_creates_skeletons(self, tmp_path):
        store = tmp_path / "store"
        created = init_store(store)

        assert {p.name for p in created} == {PROFILE_FILE, RELAYS_FILE, EMOJI_FILE}
        assert stat.S_IMODE(store.stat().st_mode) & 0o077 == 0
        profile = json.loads((store / PROFILE_FILE).read_text())
        assert list(profile) == ["name", "display_name", "about", "website", "picture", "banner", "nip05", "lud16"]
        assert json.loads((store / RELAYS_FILE).read_text()) == {"": {"read": True, "write": True}}
        assert json.loads((store / EMOJI_FILE).read_text()) == {"name": "url"}

    def test_existing_files_untouched(self, tmp_path):
        (tmp_path / PROFILE_FILE).write_text('{"name": "alice"}')
        created = init_store(tmp_path)
        assert tmp_path / PROFILE_FILE not in created
        assert json.loads((tmp_path / PROFILE_FILE).read_text()) == {"name": "alice"}


class TestPrivateKey:
    def test_reads_first_non_empty_line(self, tmp_path):
        (tmp_path / HSEC_FILE).write_text(f"\n{SECRET}\nignored\n")
        assert read_private_key(tmp_path) == SECRET

    def test_missing(self, tmp_path):
        with pytest.raises(KeyMaterialError, match="genkey"):
            read_private_key(tmp_path)

    def test_empty(self, tmp_path):
        (tmp_path / HSEC_FILE).write_text("\n\n")
        with pytest.raises(KeyMaterialError, match="empty"):
            read_private_key(tmp_path)

    def test_not_hex(self, tmp_path):
        (tmp_path / HSEC_FILE).write_text("nsec1" + "q" * 58)
        with pytest.raises(KeyMaterialError, match="64-character hex"):
            read_private_key(tmp_path)

    def test_save_key_pair_owner_only(self, tmp_path):
        keys = KeyPair(hsec=SECRET, hpub="b" * 64, nsec="nsec1xyz", npub="npub1xyz")
        save_key_pair(tmp_path, keys)
        assert read_private_key(tmp_path) == SECRET
        assert (tmp_path / NPUB_FILE).read_text() == "npub1xyz"
        assert stat.S_IMODE((tmp_path / HSEC_FILE).stat().st_mode) == 0o600


class TestRelayList:
    def test_preserves_file_order(self, tmp_path):
        (tmp_path / RELAYS_FILE).write_text(
            '{"wss://z.example.com": {"read": true, "write": false},'
            ' "wss://a.example.com": {"read": false, "write": true}}'
        )
        relays = read_relay_list(tmp_path)
        assert list(relays) == ["wss://z.example.com", "wss://a.example.com"]
        assert relays["wss://z.example.com"] == RelayFlags(read=True, write=False)

    def test_keys_are_stripped(self, tmp_path):
        (tmp_path / RELAYS_FILE).write_text(
            '{" wss://a.example.com ": {"read": true, "write": false},'
            ' "wss://a.example.com": {"read": false, "write": true},'
            ' " ": {"read": true, "write": true}}'
        )
        relays = read_relay_list(tmp_path)
        assert list(relays) == ["wss://a.example.com", ""]
        assert relays["wss://a.example.com"] == RelayFlags(read=True, write=False)

    def test_missing(self, tmp_path):
        with pytest.raises(RelayListError, match="not found"):
            read_relay_list(tmp_path)

    def test_invalid_json(self, tmp_path):
        (tmp_path / RELAYS_FILE).write_text("{nope")
        with pytest.raises(RelayListError, match="not valid JSON"):
            read_relay_list(tmp_path)

    def test_not_an_object(self, tmp_path):
        (tmp_path / RELAYS_FILE).write_text('["wss://a"]')
        with pytest.raises(RelayListError):
            read_relay_list(tmp_path)

    def test_non_boolean_flags(self, tmp_path):
        (tmp_path / RELAYS_FILE).write_text('{"wss://a": {"read": "yes"}}')
        with pytest.raises(RelayListError, match="booleans"):
            read_relay_list(tmp_path)

    def test_relay_urls_skip_placeholder(self):
        relays = {"": RelayFlags(), "wss://a": RelayFlags(), "wss://b": RelayFlags()}
        assert relay_urls(relays) == ["wss://a", "wss://b"]

    def test_relay_urls_empty(self):
        with pytest.raises(NoRelaysError):
            relay_urls({"": RelayFlags()})


class TestProfile:
    def test_newlines_removed(self, tmp_path):
        (tmp_path / PROFILE_FILE).write_text('{\n"name": "alice",\n"about": "hi"\n}\n')
        assert read_profile(tmp_path) == '{"name": "alice","about": "hi"}'

    def test_missing(self, tmp_path):
        with pytest.raises(ProfileError, match="editProfile"):
            read_profile(tmp_path)

    def test_invalid(self, tmp_path):
        (tmp_path / PROFILE_FILE).write_text("[1, 2]")
        with pytest.raises(ProfileError, match="JSON object"):
            read_profile(tmp_path)
