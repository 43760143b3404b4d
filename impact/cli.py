"""Command-line interface for impact."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from . import __version__


def _load_dotenv_files() -> None:
    """Load IMPACT_* overrides from .env files; real environment wins."""
    for candidate in (Path.cwd() / ".env", Path.home() / ".config" / "impact" / ".env"):
        if candidate.is_file():
            load_dotenv(candidate, override=False)


def build_parser() -> argparse.ArgumentParser:
    from .settings import default_config_path

    parser = argparse.ArgumentParser(
        prog="impact",
        description="Small music catalog and player",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"impact {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=default_config_path(),
        help="Settings path (default: ~/.config/impact/settings.json)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        help="Catalog DB path (overrides settings)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    add_parser = subparsers.add_parser(
        "add",
        help="Add an audio file to the catalog",
    )
    add_parser.add_argument(
        "path",
        help="Audio file to add",
    )

    remove_parser = subparsers.add_parser(
        "remove",
        help="Remove a track from the catalog",
    )
    remove_parser.add_argument(
        "reference",
        help="Track id, path, title or 'artist - title'",
    )
    remove_parser.add_argument(
        "--artist",
        help="Artist used to pick among tracks sharing a title",
    )

    list_parser = subparsers.add_parser(
        "list",
        help="List all cataloged tracks",
    )
    list_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON output",
    )

    show_parser = subparsers.add_parser(
        "show",
        help="Resolve a track reference and show the record",
    )
    show_parser.add_argument(
        "reference",
        help="Track id, path, title or 'artist - title'",
    )
    show_parser.add_argument(
        "--artist",
        help="Artist used to pick among tracks sharing a title",
    )
    show_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON output",
    )

    subparsers.add_parser(
        "shell",
        help="Interactive shell with playback (play, pause, resume, stop, ...)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        # Import here to avoid slow startup
        from .app import PlayerContext
        from .settings import load_settings

        _load_dotenv_files()
        settings = load_settings(args.config).with_overrides(
            catalog_path=args.db,
            log_level="DEBUG" if args.verbose else None,
        )
        logging.basicConfig(
            level=settings.log_level_value,
            format="%(levelname)s: %(message)s",
        )

        ctx = PlayerContext.create(settings)
        try:
            if args.command == "add":
                from .commands.catalog import add
                from .commands.requests import AddRequest
                print(add(AddRequest(args.path), ctx))
            elif args.command == "remove":
                from .commands.catalog import remove
                from .commands.requests import RemoveRequest
                print(remove(RemoveRequest(args.reference, args.artist), ctx))
            elif args.command == "list":
                from .commands.catalog import list_tracks
                from .commands.requests import ListRequest
                print(list_tracks(ListRequest(json_output=args.json), ctx))
            elif args.command == "show":
                from .commands.catalog import show
                from .commands.requests import ShowRequest
                print(show(ShowRequest(args.reference, args.artist, json_output=args.json), ctx))
            elif args.command == "shell":
                from .commands.shell import run_shell
                return run_shell(ctx)
            else:
                parser.print_help()
                return 1
        finally:
            ctx.close()
        return 0
    except Exception as exc:  # pragma: no cover - exercised in CLI tests
        from .errors import exit_code_for_exception

        print(str(exc), file=sys.stderr)
        return exit_code_for_exception(exc)


if __name__ == "__main__":
    sys.exit(main())
