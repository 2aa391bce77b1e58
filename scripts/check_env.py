"""Validate the auth service's environment file and detect drift.

``check`` loads ``AppSettings`` from the given ``.env`` file and prints the
resolved, non-secret configuration: callback URLs, state store backend and
whether the Airtable integration is enabled. ``record`` and ``verify`` do the
same validation and additionally store or compare a SHA256 checksum of the
file, so an edit that rotates ``JWT_SECRET`` (invalidating every issued
session token) does not go unnoticed.

Example usages::

    python -m scripts.check_env check --env-file /srv/auth/.env

    python -m scripts.check_env record --env-file /srv/auth/.env \
        --hash-file /srv/auth/.env.sha256

    python -m scripts.check_env verify --env-file /srv/auth/.env \
        --hash-file /srv/auth/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from app.core.config import AppSettings, _load_env_file
from app.core.logging import mask_secret

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5


def _compute_hash(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _load_settings(env_file: Path) -> AppSettings:
    """Load settings with values from ``env_file`` filling unset variables."""
    _load_env_file(str(env_file))
    return AppSettings()  # type: ignore[call-arg]


def describe_settings(settings: AppSettings) -> list[str]:
    """Summarize the resolved configuration without revealing secrets."""
    oauth = settings.oauth
    store = settings.state_store
    lines = [
        f"environment:        {settings.environment}",
        f"google client id:   {mask_secret(settings.google.client_id)}",
        f"primary callback:   {oauth.google_callback_url}",
        f"secondary callback: {oauth.airtable_callback_url}",
        f"airtable oauth:     {'enabled' if settings.airtable.configured else 'not configured'}",
        f"state store:        {store.backend}",
        f"state ttl:          {oauth.state_ttl_seconds}s",
        f"session ttl:        {oauth.session_ttl_seconds}s",
    ]
    if store.backend == "dynamodb":
        lines.append(f"dynamodb table:     {store.dynamodb_table_name or '(missing)'}")
    elif store.backend == "sqlite":
        lines.append(f"sqlite path:        {store.sqlite_path}")
    return lines


def _record_checksum(env_file: Path, hash_file: Path) -> int:
    checksum = _compute_hash(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify_checksum(env_file: Path, hash_file: Path) -> int:
    """Compare the current checksum to the recorded baseline."""
    if not hash_file.exists():
        print(
            f"Expected checksum file {hash_file} is missing. "
            "Re-run with the 'record' command to establish a baseline.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _compute_hash(env_file)
    if expected == actual:
        print("Environment checksum OK.")
        return EXIT_OK

    print(
        "Environment checksum mismatch!\n"
        f"  expected: {expected}\n"
        f"  actual:   {actual}\n"
        "A changed JWT_SECRET invalidates every issued session token; "
        "review the change before restarting.",
        file=sys.stderr,
    )
    return EXIT_CHECKSUM_ERROR


def _print_summary(settings: AppSettings) -> int:
    for line in describe_settings(settings):
        print(line)
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate auth service settings and detect .env drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_env_argument(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )

    def add_hash_argument(subparser: argparse.ArgumentParser, help_text: str) -> None:
        subparser.add_argument("--hash-file", required=True, type=Path, help=help_text)

    check_parser = subparsers.add_parser(
        "check", help="Validate settings and print the resolved configuration."
    )
    add_env_argument(check_parser)

    record_parser = subparsers.add_parser(
        "record", help="Validate settings and store the checksum baseline."
    )
    add_env_argument(record_parser)
    add_hash_argument(record_parser, "Location to write the checksum baseline.")

    verify_parser = subparsers.add_parser(
        "verify", help="Validate settings and compare the checksum with the baseline."
    )
    add_env_argument(verify_parser)
    add_hash_argument(verify_parser, "Location of the previously recorded checksum baseline.")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    env_file: Path = args.env_file
    if not env_file.exists():
        print(
            f"Environment file {env_file} does not exist. "
            "Ensure the path is correct or create it before running this tool.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Unexpected error during validation: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    handlers: dict[str, Callable[[], int]] = {
        "check": lambda: _print_summary(settings),
        "record": lambda: _record_checksum(env_file, args.hash_file),
        "verify": lambda: _verify_checksum(env_file, args.hash_file),
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
