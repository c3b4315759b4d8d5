"""Optimus CLI — package the working directory and submit it.

Entry point: ``optimus`` console script via ``cli()``.

Commands:
  send          check eligibility, confirm, build the archive, upload it
  init          write a default submission.yml
  competitions  list competitions known to the server
  update        install a newer release of this tool

Exit codes: 0 on success or a clean abort (not approved / declined),
1 on any fatal error (message on stderr).
"""

from __future__ import annotations

import argparse
import logging
import sys
import tempfile
from functools import partial
from pathlib import Path

from optimus.core.config import (
    CliOverrides,
    SubmissionConfig,
    load_config,
    parse_compression_level,
    resolve_target,
    write_default_config,
)
from optimus.core.errors import ConfigError, OptimusError
from optimus.core.logging import configure_structlog
from optimus.core.settings import get_settings
from optimus.eligibility.checker import check_eligibility, list_competitions
from optimus.packaging.bundler import build_archive
from optimus.packaging.uploader import upload_archive
from optimus.pipeline.orchestrator import run_submission
from optimus.update.feed import check_for_update, current_version, download_asset, select_asset
from optimus.update.installers import installer_for
from optimus.update.types import InstallOutcome

logger = logging.getLogger(__name__)


def ask_yes_no(prompt: str, default: bool = False) -> bool:
    """Interactive y/n prompt. EOF (no TTY) counts as the default."""
    suffix = " [Y/n] " if default else " [y/N] "
    try:
        answer = input(prompt + suffix)
    except EOFError:
        print(file=sys.stderr)
        return default
    answer = answer.strip().lower()
    if not answer:
        return default
    return answer in ("y", "yes")


def _config_path(args: argparse.Namespace) -> Path:
    return Path(args.config or get_settings().config_path)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_send(args: argparse.Namespace) -> int:
    settings = get_settings()
    config_path = _config_path(args)
    config = load_config(config_path)

    overrides = CliOverrides(
        api_key=args.api_key,
        server_url=args.server_url,
        competition_id=args.competition,
        compression_level=(
            parse_compression_level(args.compression) if args.compression is not None else None
        ),
        forced_format=args.format,
        auto_confirm=args.yes,
        extra_exclusions=list(args.exclude or []),
    )

    outcome = run_submission(
        Path(args.path),
        config,
        overrides,
        confirm=ask_yes_no,
        on_progress=print,
        fallback_api_key=settings.api_key,
        dry_run=args.dry_run,
        config_path=config_path,
        checker=partial(check_eligibility, timeout=settings.check_timeout),
        builder=build_archive,
        uploader=upload_archive,
    )
    print(outcome.message)
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    path = _config_path(args)
    overwrite = args.force
    if path.exists() and not overwrite:
        if not ask_yes_no(f"{path} already exists. Overwrite it?"):
            print("Kept existing configuration.")
            return 0
        overwrite = True

    write_default_config(path, overwrite=overwrite)
    print(f"Created {path}. Edit it to set your API key and preferences,")
    print("then run 'optimus send'.")
    return 0


def cmd_competitions(args: argparse.Namespace) -> int:
    settings = get_settings()
    path = _config_path(args)
    config = load_config(path) if path.is_file() else SubmissionConfig()
    target = resolve_target(
        config,
        CliOverrides(api_key=args.api_key, server_url=args.server_url),
        settings.api_key,
    )

    competitions = list_competitions(target.server_url, target.api_key, timeout=settings.check_timeout)
    if not competitions:
        print("No competitions available.")
        return 0

    width = max(len(c.id) for c in competitions)
    for competition in competitions:
        attempts = (
            f"{competition.max_attempts} attempts"
            if competition.max_attempts is not None
            else "unlimited attempts"
        )
        print(f"{competition.id.ljust(width)}  {competition.name} ({attempts})")
    return 0


def cmd_update(args: argparse.Namespace) -> int:
    settings = get_settings()
    installed = current_version()
    release = check_for_update(installed, settings.release_feed_url)
    if release is None:
        print(f"optimus {installed} is up to date.")
        return 0

    print(f"New version available: {installed} -> {release.version}")
    if args.check_only:
        return 0

    asset = select_asset(release, sys.platform)
    if asset is None:
        raise ConfigError(
            f"Release {release.tag_name} has no installer for platform '{sys.platform}'"
        )

    if not args.yes and not ask_yes_no(f"Download and install {asset.name}?"):
        print("Update cancelled.")
        return 0

    download_dir = Path(tempfile.mkdtemp(prefix="optimus-update-"))
    downloaded = download_asset(asset, download_dir)
    outcome = installer_for(downloaded, sys.platform).run()

    if outcome is InstallOutcome.EXECUTED:
        print(f"Installed optimus {release.version}.")
    elif outcome is InstallOutcome.NEEDS_MANUAL_EXTRACTION:
        print(f"Downloaded {downloaded}; extract it and place 'optimus' on your PATH.")
    else:
        print(f"Downloaded {downloaded}, but it cannot be installed automatically on this platform.")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _add_server_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--api-key", help="API key (overrides submission.yml / OPTIMUS_API_KEY)")
    parser.add_argument("--server-url", help="Submission server base URL")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="optimus",
        description="Zip a directory and submit it to a submission server",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to submission.yml. Env: OPTIMUS_CONFIG_PATH",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show progress logs on stderr",
    )
    sub = parser.add_subparsers(dest="command")

    # --- send ---
    send = sub.add_parser("send", help="Package and submit the directory")
    _add_server_args(send)
    send.add_argument("--competition", help="Competition identifier")
    send.add_argument(
        "--compression",
        help="Compression level 0-9, or store|fastest|normal|best",
    )
    send.add_argument(
        "--format",
        help="Force the archive format (repo|py) and skip the eligibility check",
    )
    send.add_argument(
        "--exclude",
        action="append",
        metavar="SUBSTRING",
        help="Extra exclusion substring (repeatable)",
    )
    send.add_argument("--path", default=".", help="Directory to submit (default: cwd)")
    send.add_argument("-y", "--yes", action="store_true", help="Skip the confirmation prompt")
    send.add_argument(
        "--dry-run",
        action="store_true",
        help="Build the archive but do not upload it",
    )
    send.set_defaults(handler=cmd_send)

    # --- init ---
    init = sub.add_parser("init", help="Create a default submission.yml")
    init.add_argument("--force", action="store_true", help="Overwrite without asking")
    init.set_defaults(handler=cmd_init)

    # --- competitions ---
    competitions = sub.add_parser("competitions", help="List competitions on the server")
    _add_server_args(competitions)
    competitions.set_defaults(handler=cmd_competitions)

    # --- update ---
    update = sub.add_parser("update", help="Update optimus to the latest release")
    update.add_argument("-y", "--yes", action="store_true", help="Install without asking")
    update.add_argument(
        "--check-only",
        action="store_true",
        help="Only report whether an update is available",
    )
    update.set_defaults(handler=cmd_update)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0=ok or clean abort, 1=error)."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_structlog(debug=args.verbose or get_settings().debug)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args) or 0
    except OptimusError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 1


def cli() -> None:  # pragma: no cover
    """Console-script wrapper that calls ``sys.exit``."""
    sys.exit(main())
