"""Playback commands - play, pause, resume, stop and status."""

from __future__ import annotations

from ..app import PlayerContext
from ..core.models import PlaybackState
from .catalog import resolve_target
from .requests import PlayRequest


def play(request: PlayRequest, ctx: PlayerContext) -> str:
    """Play the referenced track, or the selected one when no reference is given."""
    record = resolve_target(request.reference, request.artist, ctx)
    ctx.controller.play(record)
    return f"Playing: {record.display()}"


def pause(ctx: PlayerContext) -> str:
    ctx.controller.pause()
    return "Paused"


def resume(ctx: PlayerContext) -> str:
    ctx.controller.resume()
    return "Resumed"


def stop(ctx: PlayerContext) -> str:
    ctx.controller.stop()
    return "Stopped"


def status(ctx: PlayerContext) -> str:
    state = ctx.controller.state
    current = ctx.controller.current
    if state is PlaybackState.IDLE or current is None:
        line = "Idle"
    else:
        line = f"{state.value.capitalize()}: {current.display()} (id {current.id})"
    if ctx.selected_id is not None:
        line += f"; selected id {ctx.selected_id}"
    return line
