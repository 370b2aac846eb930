"""CLI entrypoint for nostk.

Command-line interface orchestrating event construction, signing and the
relay publish fan-out, plus the local store maintenance subcommands.
"""

import argparse
import sys
from pathlib import Path

from . import __version__
from .cli_output import format_dry_run, format_outcome, format_relay_line, format_summary
from .editor import open_in_editor
from .errors import KeyMaterialError, NostkError
from .event import build_event, build_profile_event, build_relay_list_event, check_private_key_leak
from .models import KeyPair, PublishOutcome, UnsignedEvent
from .nak import NakRelayTransport, derive_public_key, encode_bech32, generate_secret_key, sign_event
from .publisher import RelayPublisher
from .registry import default_registry
from .relay import warn_insecure_relays
from .scanner import ContentScanner
from .schema import default_tag_schema
from .store import (
    HSEC_FILE,
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

PROG = "nostk"


def main(argv: list[str] | None = None) -> int:
    """Main CLI entrypoint.

    CONTRACT:
      Inputs:
        - argv: list of command-line argument strings (or None to use sys.argv)

      Outputs:
        - exit_code: integer, 0 for success, non-zero for failure

      Invariants:
        - No arguments or "help" prints usage and returns 0
        - Pre-flight failures (unsupported subcommand, invalid tag, missing
          argument, key material, leak guard) return 1 before any network call
        - Individual relay failures never change the exit code
        - Errors are printed to stderr as "ERROR: {error_type}: {message}"

      Error Handling:
        - Catch all NostkError exceptions and common OS errors
        - Return non-zero exit code

      Raises:
        - SystemExit only from argparse (--help, --version, usage errors)
    """
    argv = list(argv if argv is not None else sys.argv[1:])

    if not argv or argv[0] == "help":
        build_parser().print_help()
        return 0

    try:
        args = parse_arguments(argv)
        handler = COMMANDS[args["command"]]
        return handler(args)

    except NostkError as e:
        error_type = type(e).__name__
        sys.stderr.write(f"ERROR: {error_type}: {str(e)}\n")
        return 1
    except PermissionError as e:
        sys.stderr.write(f"ERROR: PermissionError: {str(e)}\n")
        return 1
    except UnicodeDecodeError as e:
        sys.stderr.write(f"ERROR: UnicodeDecodeError: {str(e)}\n")
        return 1
    except SystemExit:
        raise
    except Exception as e:
        sys.stderr.write(f"ERROR: {type(e).__name__}: {str(e)}\n")
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=PROG, description="Publish Nostr events to your relays")

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--dir",
        dest="store_dir",
        default=None,
        help="Directory holding keys, relays.json and profile.json (default: $NOSTK_DIR or ~/.nostk)",
    )
    parser.add_argument(
        "--timeout",
        dest="timeout",
        type=int,
        default=30,
        help="Timeout in seconds for each nak call, including each relay publish (default: 30)",
    )
    parser.add_argument(
        "--workers",
        dest="workers",
        type=int,
        default=1,
        help="Number of relays contacted in parallel (default: 1, strictly sequential)",
    )
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        help="Build and validate the event, print it with the relay list, and exit without signing",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="sub-command")

    subparsers.add_parser("init", help="Initialize the nostk environment")
    genkey = subparsers.add_parser("genkey", help="Create a private key and public key")
    genkey.add_argument("--force", action="store_true", help="Overwrite an existing key pair")
    subparsers.add_parser("lsRelays", help="Show relay list")
    subparsers.add_parser("editRelays", help="Edit relay list")
    subparsers.add_parser("pubRelays", help="Publish relay list")
    subparsers.add_parser("editProfile", help="Edit your profile")
    subparsers.add_parser("pubProfile", help="Publish your profile")

    registry = default_registry()
    message_help = {
        "pubMessage": ("Publish message to relays", "content-warning reason"),
        "pubMessageTo": ("Publish message mentioning another user", "hex pubkey of the mentioned user"),
    }
    for name in registry.names():
        summary, tag_help = message_help.get(name, (f"Publish {name}", "tag values"))
        sub = subparsers.add_parser(name, help=summary)
        sub.add_argument("content", nargs="?", default=None, help="Text message")
        sub.add_argument("tag_args", nargs="*", default=[], help=tag_help)

    return parser


def parse_arguments(argv: list[str]) -> dict:
    """Parse CLI arguments into structured dictionary.

    CONTRACT:
      Inputs:
        - argv: list of command-line argument strings (excluding program name)

      Outputs:
        - args: dictionary with keys:
          * command: subcommand name
          * store_dir: Path to the store directory
          * timeout: positive integer
          * workers: positive integer
          * dry_run: boolean
          * force: boolean (genkey only, False otherwise)
          * content: string or None (message subcommands)
          * tag_args: list of strings (message subcommands)

      Invariants:
        - A subcommand is required
        - --timeout and --workers must be positive integers
        - Invalid arguments cause error with usage message
    """
    parser = build_parser()
    parsed = parser.parse_args(argv)

    if not parsed.command:
        parser.error("a sub-command is required")

    if parsed.timeout <= 0:
        parser.error("--timeout must be a positive integer")

    if parsed.workers <= 0:
        parser.error("--workers must be a positive integer")

    return {
        "command": parsed.command,
        "store_dir": resolve_store_dir(parsed.store_dir),
        "timeout": parsed.timeout,
        "workers": parsed.workers,
        "dry_run": parsed.dry_run,
        "force": getattr(parsed, "force", False),
        "content": getattr(parsed, "content", None),
        "tag_args": list(getattr(parsed, "tag_args", []) or []),
    }


def publish_draft(event: UnsignedEvent, args: dict, scanner: ContentScanner | None = None) -> int:
    """Guard, sign and fan out a validated draft event.

    Pre-flight steps (leak guard, relay list, key) run before any network
    activity. Once signing succeeds every relay is attempted and the command
    returns 0 regardless of individual relay outcomes.
    """
    check_private_key_leak(event, scanner)

    store_dir: Path = args["store_dir"]
    relays = relay_urls(read_relay_list(store_dir))
    warn_insecure_relays(relays)

    if args["dry_run"]:
        print(format_dry_run(event, relays))
        return 0

    secret = read_private_key(store_dir)
    signed = sign_event(event, secret, args["timeout"])

    publisher = RelayPublisher(NakRelayTransport(args["timeout"]), max_workers=args["workers"])
    outcomes = publisher.publish(signed, relays, on_outcome=print_outcome)

    sys.stderr.write(format_summary(outcomes) + "\n")
    return 0


def print_outcome(outcome: PublishOutcome) -> None:
    if outcome.success:
        print(format_outcome(outcome))
    else:
        sys.stderr.write(format_outcome(outcome) + "\n")


def cmd_message(args: dict) -> int:
    command = args["command"]
    positional = [PROG, command]
    if args["content"] is not None:
        positional.append(args["content"])
    positional.extend(args["tag_args"])

    scanner = ContentScanner()
    event = build_event(command, positional, default_registry(), default_tag_schema(), scanner)
    return publish_draft(event, args, scanner)


def cmd_pub_profile(args: dict) -> int:
    event = build_profile_event(read_profile(args["store_dir"]))
    return publish_draft(event, args)


def cmd_pub_relays(args: dict) -> int:
    relays = {url: flags for url, flags in read_relay_list(args["store_dir"]).items() if url}
    event = build_relay_list_event(relays)
    return publish_draft(event, args)


def cmd_init(args: dict) -> int:
    for path in init_store(args["store_dir"]):
        print(f"created {path}")
    return 0


def cmd_genkey(args: dict) -> int:
    store_dir: Path = args["store_dir"]
    if (store_dir / HSEC_FILE).exists() and not args["force"]:
        raise KeyMaterialError(f"Key pair already exists in {store_dir}. Use 'genkey --force' to overwrite")

    timeout = args["timeout"]
    hsec = generate_secret_key(timeout)
    hpub = derive_public_key(hsec, timeout)
    keys = KeyPair(
        hsec=hsec,
        hpub=hpub,
        nsec=encode_bech32("nsec", hsec, timeout),
        npub=encode_bech32("npub", hpub, timeout),
    )
    save_key_pair(store_dir, keys)
    print(keys.npub)
    return 0


def cmd_ls_relays(args: dict) -> int:
    for url, flags in read_relay_list(args["store_dir"]).items():
        print(format_relay_line(url, flags))
    return 0


def cmd_edit_relays(args: dict) -> int:
    open_in_editor(args["store_dir"] / RELAYS_FILE)
    return 0


def cmd_edit_profile(args: dict) -> int:
    open_in_editor(args["store_dir"] / PROFILE_FILE)
    return 0


COMMANDS = {
    "init": cmd_init,
    "genkey": cmd_genkey,
    "lsRelays": cmd_ls_relays,
    "editRelays": cmd_edit_relays,
    "editProfile": cmd_edit_profile,
    "pubProfile": cmd_pub_profile,
    "pubRelays": cmd_pub_relays,
    **{name: cmd_message for name in default_registry().names()},
}


if __name__ == "__main__":
    sys.exit(main())
