"""Verify the add-on's environment configuration before deploying or restarting.

Two checks are available:

1. ``AppSettings`` is instantiated from the supplied ``.env`` file so missing
   HubSpot credentials or malformed values are reported with the environment
   variable names an operator needs to set.
2. A checksum of the ``.env`` file can be recorded and later verified to catch
   unexpected edits to the deployed configuration.

Example usages::

    python -m scripts.check_env check --env-file /srv/plant-care/.env

    python -m scripts.check_env record --env-file /srv/plant-care/.env \
        --hash-file /srv/plant-care/.env.sha256

    python -m scripts.check_env verify --env-file /srv/plant-care/.env \
        --hash-file /srv/plant-care/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Callable, Iterable

from pydantic import ValidationError

from app.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5

# Nested settings groups and the prefix their environment variables carry.
_ENV_PREFIXES = {
    "hubspot": "HUBSPOT_",
    "oauth": "OAUTH_",
    "database": "DATABASE_",
    "perenual": "PERENUAL_",
    "cors": "CORS_",
}


def _compute_hash(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _env_names(errors: Iterable[dict], group: str | None = None) -> list[str]:
    """Translate validation error locations into environment variable names."""
    prefix = _ENV_PREFIXES.get(group or "", "")
    names = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in _ENV_PREFIXES:
            prefix, loc = _ENV_PREFIXES[loc[0]], loc[1:]
        if loc:
            names.append(f"{prefix}{loc[0]}".upper())
    return sorted(set(names))


def _validate_settings(env_file: Path) -> None:
    _load_env_file(str(env_file))
    AppSettings()  # type: ignore[call-arg]


def _record_checksum(env_file: Path, hash_file: Path) -> int:
    checksum = _compute_hash(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify_checksum(env_file: Path, hash_file: Path) -> int:
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
        "Review the configuration change before restarting the service.",
        file=sys.stderr,
    )
    return EXIT_CHECKSUM_ERROR


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate plant care add-on settings and detect .env drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text, needs_hash in (
        ("record", "Validate settings and store the checksum baseline.", True),
        ("verify", "Validate settings and compare the checksum with the baseline.", True),
        ("check", "Validate settings without touching any checksum files.", False),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )
        if needs_hash:
            subparser.add_argument(
                "--hash-file",
                required=True,
                type=Path,
                help="Location of the checksum baseline.",
            )

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
        _validate_settings(env_file)
    except ValidationError as exc:
        group = exc.title.removesuffix("Settings").lower() if exc.title else None
        missing = ", ".join(_env_names(exc.errors(), group)) or "(unknown)"
        print(
            f"Settings validation failed. Check these variables: {missing}\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Unexpected error during validation: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    handlers: dict[str, Callable[[], int]] = {
        "record": lambda: _record_checksum(env_file, args.hash_file),
        "verify": lambda: _verify_checksum(env_file, args.hash_file),
        "check": lambda: EXIT_OK,
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
