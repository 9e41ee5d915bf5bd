"""
pspk - Command line entry point.

Parses arguments, resolves the active identity from --name or the
configured current name, and runs one command against the HTTP
directory.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .cipher import encode
from .client import PspkClient
from .config import Config
from .constants import LOG_DATE_FORMAT, LOG_FORMAT
from .directory import HttpDirectory
from .errors import ConfigError, ConfigMissingError, ErrorCode, GroupError, PspkError
from .identity import IdentityStore

logger = logging.getLogger(__name__)

console = Console(highlight=False, emoji=False)
error_console = Console(stderr=True, highlight=False, emoji=False)


def _out(text: str) -> None:
    console.print(text, markup=False, soft_wrap=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pspk",
        description="Encrypt and decrypt data with keys published to a public key directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pspk --name alice publish          # generate and publish alice's key pair
  pspk --name alice use-current      # make alice the default identity
  pspk encrypt bob hello there       # encrypt for bob with the shared secret
  pspk ephemeral-encrypt bob hello   # encrypt for bob with a throw-away key
  pspk --name G1 group               # publish a base point for group G1
  pspk start-group G1 bob carol      # contribute to group G1
  pspk secret-group G1 bob carol     # resolve the group secret
        """,
    )
    parser.add_argument("--version", action="version", version=f"pspk {__version__}")
    parser.add_argument("--name", default=None, help="key name (defaults to the configured current name)")
    parser.add_argument("--config", type=Path, default=None, help="configuration file path")
    parser.add_argument("--data-dir", type=Path, default=None, help="directory holding local key material")
    parser.add_argument("--url", default=None, help="public key directory base URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")

    sub = parser.add_subparsers(dest="command", metavar="<command>")
    sub.required = True

    sub.add_parser("publish", aliases=["p"], help="generate an X25519 key pair and publish it")

    p = sub.add_parser("secret", aliases=["s"], help="compute the shared secret with a published key")
    p.add_argument("peer")

    p = sub.add_parser("encrypt", aliases=["e"], help="encrypt a message with the shared secret")
    p.add_argument("peer")
    p.add_argument("message", nargs="+")

    p = sub.add_parser("ephemeral-encrypt", aliases=["ee"], help="encrypt a message with a throw-away key")
    p.add_argument("peer")
    p.add_argument("message", nargs="+")

    p = sub.add_parser("decrypt", aliases=["d"], help="decrypt a message with the shared secret")
    p.add_argument("peer")
    p.add_argument("payload", metavar="base64")

    p = sub.add_parser("ephemeral-decrypt", aliases=["ed"], help="decrypt a message sent with a throw-away key")
    p.add_argument("payload", metavar="base64")

    sub.add_parser("use-current", help="save --name as the default identity")

    p = sub.add_parser("group", help="create a group base point and publish it")
    p.add_argument("group_name", nargs="?", default=None)

    p = sub.add_parser("start-group", help="calculate intermediate keys, including the full composite")
    p.add_argument("group_name")
    p.add_argument("peers", nargs="*")

    p = sub.add_parser("finish-group", help="calculate intermediate keys")
    p.add_argument("group_name")
    p.add_argument("peers", nargs="+")

    p = sub.add_parser("secret-group", help="resolve and store the group secret")
    p.add_argument("group_name")
    p.add_argument("peers", nargs="+")

    p = sub.add_parser("encrypt-group", aliases=["eg"], help="encrypt a message for a group")
    p.add_argument("group_name")
    p.add_argument("message", nargs="+")

    p = sub.add_parser("ephemeral-encrypt-group", aliases=["eeg"], help="encrypt for a group with a throw-away key")
    p.add_argument("group_name")
    p.add_argument("message", nargs="+")

    p = sub.add_parser("decrypt-group", aliases=["dg"], help="decrypt a group message")
    p.add_argument("group_name")
    p.add_argument("payload", metavar="base64")

    p = sub.add_parser("ephemeral-decrypt-group", aliases=["edg"], help="decrypt a group message sent with a throw-away key")
    p.add_argument("group_name")
    p.add_argument("payload", metavar="base64")

    return parser


ALIASES = {
    "p": "publish",
    "s": "secret",
    "e": "encrypt",
    "ee": "ephemeral-encrypt",
    "d": "decrypt",
    "ed": "ephemeral-decrypt",
    "eg": "encrypt-group",
    "eeg": "ephemeral-encrypt-group",
    "dg": "decrypt-group",
    "edg": "ephemeral-decrypt-group",
}


def setup_logging(level: str) -> None:
    """Route the package's log records to stderr through rich.

    Raises:
        ConfigError: level is not a standard logging level name
    """
    level_name = str(level).upper()
    if level_name not in logging.getLevelNamesMapping():
        raise ConfigError(
            ErrorCode.E703_CONFIG_INVALID_VALUE,
            f"Unknown logging level: {level!r}",
            {"section": "logging", "key": "level", "value": level},
        )

    handler = RichHandler(console=error_console, show_path=False)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    package_logger = logging.getLogger("pspk")
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(level_name)
    package_logger.propagate = False


def _cmd_publish(client: PspkClient, config: Config, args) -> None:
    fingerprint = client.publish(config.resolve_name(args.name))
    _out("Generate key pair on x25519")
    _out(f"Fingerprint: {fingerprint}")


def _cmd_secret(client: PspkClient, config: Config, args) -> None:
    _out(encode(client.secret(config.resolve_name(args.name), args.peer)))


def _cmd_encrypt(client: PspkClient, config: Config, args) -> None:
    _out(client.encrypt(config.resolve_name(args.name), args.peer, " ".join(args.message)))


def _cmd_ephemeral_encrypt(client: PspkClient, config: Config, args) -> None:
    _out(client.ephemeral_encrypt(args.peer, " ".join(args.message)))


def _cmd_decrypt(client: PspkClient, config: Config, args) -> None:
    _out(client.decrypt(config.resolve_name(args.name), args.peer, args.payload))


def _cmd_ephemeral_decrypt(client: PspkClient, config: Config, args) -> None:
    _out(client.ephemeral_decrypt(config.resolve_name(args.name), args.payload))


def _cmd_use_current(client: PspkClient, config: Config, args) -> None:
    if not args.name:
        raise ConfigMissingError("empty name use --name")
    config.current_name = args.name
    config.save()
    _out(f"Current name set to {args.name}")


def _cmd_group(client: PspkClient, config: Config, args) -> None:
    group = args.group_name or args.name
    if not group:
        raise GroupError(
            ErrorCode.E501_INVALID_GROUP,
            "empty group name, pass it as an argument or use --name",
        )
    client.group(group)
    _out(f"Published base point for group {group}")


def _cmd_start_group(client: PspkClient, config: Config, args) -> None:
    for composite in client.start_group(config.resolve_name(args.name), args.group_name, args.peers):
        _out(f"Published {composite}")


def _cmd_finish_group(client: PspkClient, config: Config, args) -> None:
    for composite in client.finish_group(config.resolve_name(args.name), args.group_name, args.peers):
        _out(f"Published {composite}")


def _cmd_secret_group(client: PspkClient, config: Config, args) -> None:
    client.secret_group(config.resolve_name(args.name), args.group_name, args.peers)
    _out(f"Stored secret for group {args.group_name}")


def _cmd_encrypt_group(client: PspkClient, config: Config, args) -> None:
    _out(client.encrypt_group(config.resolve_name(args.name), args.group_name, " ".join(args.message)))


def _cmd_ephemeral_encrypt_group(client: PspkClient, config: Config, args) -> None:
    _out(client.ephemeral_encrypt_group(config.resolve_name(args.name), args.group_name, " ".join(args.message)))


def _cmd_decrypt_group(client: PspkClient, config: Config, args) -> None:
    _out(client.decrypt_group(config.resolve_name(args.name), args.group_name, args.payload))


def _cmd_ephemeral_decrypt_group(client: PspkClient, config: Config, args) -> None:
    _out(client.ephemeral_decrypt_group(config.resolve_name(args.name), args.group_name, args.payload))


COMMANDS: Dict[str, Callable[[PspkClient, Config, argparse.Namespace], None]] = {
    "publish": _cmd_publish,
    "secret": _cmd_secret,
    "encrypt": _cmd_encrypt,
    "ephemeral-encrypt": _cmd_ephemeral_encrypt,
    "decrypt": _cmd_decrypt,
    "ephemeral-decrypt": _cmd_ephemeral_decrypt,
    "use-current": _cmd_use_current,
    "group": _cmd_group,
    "start-group": _cmd_start_group,
    "finish-group": _cmd_finish_group,
    "secret-group": _cmd_secret_group,
    "encrypt-group": _cmd_encrypt_group,
    "ephemeral-encrypt-group": _cmd_ephemeral_encrypt_group,
    "decrypt-group": _cmd_decrypt_group,
    "ephemeral-decrypt-group": _cmd_ephemeral_decrypt_group,
}


def build_client(config: Config, args: argparse.Namespace) -> PspkClient:
    data_dir = args.data_dir.expanduser() if args.data_dir else config.data_dir
    base_url = args.url or config.get("directory", "base_url")
    directory = HttpDirectory(base_url, timeout=config.get("directory", "timeout"))
    return PspkClient(directory, IdentityStore(data_dir))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the pspk command line tool."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config(args.config)
        setup_logging("DEBUG" if args.verbose else config.get("logging", "level", "WARNING"))
        client = build_client(config, args)
        command = ALIASES.get(args.command, args.command)
        logger.debug(f"Running {command}")
        COMMANDS[command](client, config, args)
    except PspkError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        error_console.print(f"run has error: {e}", markup=False, soft_wrap=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
