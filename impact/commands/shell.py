"""Shell command - interactive loop that owns one playback session."""

from __future__ import annotations

import logging
import shlex
import sqlite3
from typing import Callable, Optional

from ..app import PlayerContext
from ..errors import Ambiguous, ImpactError, ValidationError
from . import catalog, playback
from .requests import AddRequest, ListRequest, PlayRequest, RemoveRequest, SelectRequest

logger = logging.getLogger(__name__)

PROMPT = "impact> "

HELP_LINES = (
    "Commands:",
    "  select <track> [--artist A]   remember a track (id, path, title or 'artist - title')",
    "  deselect                      forget the selected track",
    "  play [<track>] [--artist A]   play a track, or the selected one",
    "  pause | resume | stop         control the current track",
    "  add <path>                    catalog an audio file",
    "  remove [<track>] [--artist A] remove a track, or the selected one",
    "  list                          list all cataloged tracks",
    "  status                        show playback state",
    "  help                          show this text",
    "  quit | exit                   leave the shell",
    "Quote names that contain spaces or quotes: play \"Don't Stop\"",
)


def _split_artist(args: list[str]) -> tuple[Optional[str], Optional[str]]:
    """Split ``args`` into (reference, artist) honouring ``--artist``."""
    words: list[str] = []
    artist: Optional[str] = None
    index = 0
    while index < len(args):
        arg = args[index]
        if arg == "--artist":
            if index + 1 >= len(args):
                raise ValidationError("--artist needs a value")
            artist = args[index + 1]
            index += 2
            continue
        if arg.startswith("--artist="):
            artist = arg.split("=", 1)[1]
        else:
            words.append(arg)
        index += 1
    reference = " ".join(words) if words else None
    return reference, artist


def _no_args(name: str, args: list[str]) -> None:
    if args:
        raise ValidationError(f"{name} takes no arguments")


def dispatch(line: str, ctx: PlayerContext) -> Optional[str]:
    """Run one shell line and return the text to show (None for blank lines)."""
    try:
        parts = shlex.split(line)
    except ValueError:
        # Unbalanced quote, e.g. an apostrophe in "play Don't Stop"
        parts = line.split()
    if not parts:
        return None

    name, args = parts[0].lower(), parts[1:]
    if name == "select":
        reference, artist = _split_artist(args)
        return catalog.select(SelectRequest(reference or "", artist), ctx)
    if name == "deselect":
        _no_args(name, args)
        return catalog.deselect(ctx)
    if name == "play":
        reference, artist = _split_artist(args)
        return playback.play(PlayRequest(reference, artist), ctx)
    if name in ("pause", "resume", "stop", "status"):
        _no_args(name, args)
        return getattr(playback, name)(ctx)
    if name == "add":
        return catalog.add(AddRequest(" ".join(args)), ctx)
    if name == "remove":
        reference, artist = _split_artist(args)
        return catalog.remove(RemoveRequest(reference, artist), ctx)
    if name == "list":
        _no_args(name, args)
        return catalog.list_tracks(ListRequest(), ctx)
    if name == "help":
        return "\n".join(HELP_LINES)
    raise ValidationError(f"Unknown command: {name} (try 'help')")


def run_shell(
    ctx: PlayerContext,
    *,
    input_provider: Callable[[str], str] = input,
    output_sink=print,
) -> int:
    """Read commands until EOF or quit. Errors are shown and the loop continues."""
    try:
        while True:
            try:
                line = input_provider(PROMPT)
            except EOFError:
                output_sink("")
                break
            except KeyboardInterrupt:
                output_sink("")
                continue

            if line.strip().lower() in ("quit", "exit"):
                break

            try:
                result = dispatch(line, ctx)
            except Ambiguous as exc:
                output_sink(f"error: {exc}")
                output_sink("hint: repeat the command with --artist <name>")
                continue
            except ImpactError as exc:
                output_sink(f"error: {exc}")
                continue
            except (OSError, sqlite3.Error) as exc:
                logger.error("Command failed: %s", exc)
                output_sink(f"error: {exc}")
                continue

            if result:
                output_sink(result)
    finally:
        ctx.controller.shutdown()
    return 0
