"""Catalog commands - add, remove, list, show, select and deselect tracks."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from ..app import PlayerContext
from ..core.models import NewTrack, TrackRecord, normalize_path
from ..errors import DuplicatePath, ValidationError
from .output import render_output
from .requests import AddRequest, ListRequest, RemoveRequest, SelectRequest, ShowRequest

_COLUMN = "{:15} {:15} {:15} {:15}"


def add(request: AddRequest, ctx: PlayerContext) -> str:
    """Read tags from a file and catalog it.

    A path that is already cataloged is acknowledged, not reported as an error,
    and its file is not read again.
    """
    path = normalize_path(request.path)
    if ctx.store.find_by_path(path) is not None:
        return str(DuplicatePath(path))
    tags = ctx.tag_reader.read_tags(path)
    try:
        track_id = ctx.store.add(NewTrack.from_tags(path, tags))
    except DuplicatePath as exc:
        return str(exc)
    return f"Added {path} as id {track_id}"


def remove(request: RemoveRequest, ctx: PlayerContext) -> str:
    record = resolve_target(request.reference, request.artist, ctx)
    if ctx.controller.current is not None and ctx.controller.current.id == record.id:
        ctx.controller.stop()
    ctx.store.remove(record.id)
    if ctx.selected_id == record.id:
        ctx.selected_id = None
    return f"Removed: ID {record.id}"


def list_tracks(request: ListRequest, ctx: PlayerContext) -> str:
    tracks = ctx.store.list_all()
    human_lines = [_COLUMN.format("id", "title", "artist", "album")]
    human_lines.extend(
        _COLUMN.format(track.id, track.title, track.artist, track.album) for track in tracks
    )
    return render_output(
        command="list",
        payload={"count": len(tracks), "tracks": [asdict(track) for track in tracks]},
        json_output=request.json_output,
        human_lines=human_lines,
    )


def show(request: ShowRequest, ctx: PlayerContext) -> str:
    record = ctx.resolver.resolve(request.reference, request.artist)
    return render_output(
        command="show",
        payload=asdict(record),
        json_output=request.json_output,
        human_lines=(
            f"id:     {record.id}",
            f"title:  {record.title}",
            f"artist: {record.artist}",
            f"album:  {record.album}",
            f"path:   {record.path}",
        ),
    )


def select(request: SelectRequest, ctx: PlayerContext) -> str:
    record = ctx.resolver.resolve(request.reference, request.artist)
    ctx.selected_id = record.id
    return f"Selected {record.display()}"


def deselect(ctx: PlayerContext) -> str:
    ctx.selected_id = None
    return "Deselected"


def resolve_target(reference: Optional[str], artist: Optional[str], ctx: PlayerContext) -> TrackRecord:
    """Resolve an explicit reference, falling back to the selected track."""
    if reference is not None:
        return ctx.resolver.resolve(reference, artist)
    if ctx.selected_id is None:
        raise ValidationError("No selected track; give a reference or use select first")
    return ctx.store.get(ctx.selected_id)
