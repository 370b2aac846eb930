"""Local JSON and key file storage under the nostk directory (default ~/.nostk)."""

import json
import os
import re
from pathlib import Path

from .errors import KeyMaterialError, NoRelaysError, ProfileError, RelayListError
from .models import KeyPair, ProfileMetadata, RelayFlags
from .utils import deduplicate_preserving_order

ENV_STORE_DIR = "NOSTK_DIR"
DEFAULT_DIR_NAME = ".nostk"

HSEC_FILE = ".hsec"
NSEC_FILE = ".nsec"
HPUB_FILE = ".hpub"
NPUB_FILE = ".npub"
RELAYS_FILE = "relays.json"
PROFILE_FILE = "profile.json"
EMOJI_FILE = "customemoji.json"

HEX_KEY_PATTERN = re.compile(r"[a-fA-F0-9]{64}")


def resolve_store_dir(explicit: str | None = None) -> Path:
    """Pick the store directory: explicit path, then $NOSTK_DIR, then ~/.nostk."""
    if explicit:
        return Path(explicit).expanduser()
    env_dir = os.environ.get(ENV_STORE_DIR)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / DEFAULT_DIR_NAME


def ensure_store_dir(store_dir: Path) -> Path:
    """Create store_dir with mode 0700 if it does not exist."""
    store_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    return store_dir


def is_hex_key(value: str) -> bool:
    return bool(HEX_KEY_PATTERN.fullmatch(value))


def read_private_key(store_dir: Path) -> str:
    """Read the hex secret key from the first non-empty line of .hsec.

    Raises:
      - KeyMaterialError: file missing, unreadable, empty, or not 64 hex characters
    """
    path = store_dir / HSEC_FILE
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise KeyMaterialError(f"Private key not found: {path}. Make a key pair with 'nostk genkey'") from None
    except OSError as e:
        raise KeyMaterialError(f"Cannot read private key {path}: {e}") from None

    lines = [line.strip() for line in text.split("\n") if line.strip()]
    if not lines:
        raise KeyMaterialError(f"Private key file is empty: {path}")

    key = lines[0]
    if not is_hex_key(key):
        raise KeyMaterialError(f"Private key in {path} is not a 64-character hex string")
    return key


def save_key_pair(store_dir: Path, keys: KeyPair) -> None:
    """Write the four key files, each readable by the owner only."""
    ensure_store_dir(store_dir)
    for name, value in ((HSEC_FILE, keys.hsec), (HPUB_FILE, keys.hpub), (NSEC_FILE, keys.nsec), (NPUB_FILE, keys.npub)):
        _write_private(store_dir / name, value)


def read_relay_list(store_dir: Path) -> dict[str, RelayFlags]:
    """Load relays.json as an insertion-ordered mapping of URL to RelayFlags.

    URL keys are stripped of surrounding whitespace; when two keys collapse to
    the same URL the first entry wins.

    Raises:
      - RelayListError: file missing, not JSON, or not {url: {"read": bool, "write": bool}}
    """
    path = store_dir / RELAYS_FILE
    data = _load_json(path, RelayListError, "relay list")

    if not isinstance(data, dict):
        raise RelayListError(f"Relay list must be a JSON object: {path}")

    relays = {}
    for url, flags in data.items():
        if not isinstance(flags, dict):
            raise RelayListError(f"Relay entry for {url!r} must be an object with read/write flags")
        read = flags.get("read", False)
        write = flags.get("write", False)
        if not isinstance(read, bool) or not isinstance(write, bool):
            raise RelayListError(f"Relay flags for {url!r} must be booleans")
        relays.setdefault(url.strip(), RelayFlags(read=read, write=write))
    return relays


def relay_urls(relays: dict[str, RelayFlags]) -> list[str]:
    """Return relay URLs in file order, skipping the empty placeholder key.

    Raises:
      - NoRelaysError: no non-empty URL remains
    """
    urls = deduplicate_preserving_order(url.strip() for url in relays if url.strip())
    if not urls:
        raise NoRelaysError("Relay list is empty. Add relays with 'nostk editRelays'")
    return urls


def read_profile(store_dir: Path) -> str:
    """Return profile.json content with newlines removed.

    Raises:
      - ProfileError: file missing or not a JSON object
    """
    path = store_dir / PROFILE_FILE
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ProfileError(f"Profile not found: {path}. Use 'nostk init' and 'nostk editProfile'") from None
    except OSError as e:
        raise ProfileError(f"Cannot read profile {path}: {e}") from None

    content = text.replace("\n", "")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ProfileError(f"Profile is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ProfileError("Profile must be a JSON object")
    return content


def init_store(store_dir: Path) -> list[Path]:
    """Create skeleton profile, relay list and custom emoji files.

    Existing files are left untouched. Returns the paths that were created.
    """
    ensure_store_dir(store_dir)
    skeletons = {
        PROFILE_FILE: ProfileMetadata().to_dict(),
        RELAYS_FILE: {"": RelayFlags(read=True, write=True).to_dict()},
        EMOJI_FILE: {"name": "url"},
    }

    created = []
    for name, payload in skeletons.items():
        path = store_dir / name
        if path.exists():
            continue
        path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        created.append(path)
    return created


def _load_json(path: Path, error_cls: type[Exception], label: str):
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise error_cls(f"{label.capitalize()} not found: {path}. Use 'nostk init'") from None
    except OSError as e:
        raise error_cls(f"Cannot read {label} {path}: {e}") from None

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise error_cls(f"{label.capitalize()} is not valid JSON: {e}") from e


def _write_private(path: Path, value: str) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as fp:
        fp.write(value)
