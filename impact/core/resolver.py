"""Resolver - turn a typed track reference into exactly one catalog record.

Rules are tried in a fixed order and the first rule whose pattern fits the
reference decides the outcome, even when it matches no record:

1. numeric id
2. existing filesystem path
3. "artist - title" (split on the first dash)
4. bare title, with an optional artist hint for disambiguation
"""

from __future__ import annotations

import logging
import os
import re
from typing import Optional, Protocol, Sequence

from impact.core.models import TrackRecord, normalize_path
from impact.errors import Ambiguous, NotFound, ValidationError

logger = logging.getLogger(__name__)

_NUMERIC_ID = re.compile(r"^[+-]?[0-9]+$")


class TrackSource(Protocol):
    """Anything that can hand out a snapshot of the catalog."""

    def list_all(self) -> list[TrackRecord]:
        ...


class TrackResolver:
    """Resolve references against a catalog snapshot."""

    def __init__(self, source: TrackSource) -> None:
        self._source = source

    def resolve(self, token: str, artist_hint: Optional[str] = None) -> TrackRecord:
        """Resolve ``token`` to a single record.

        Args:
            token: id, path, "artist - title" or title as typed by the user
            artist_hint: artist used to pick among several same-titled tracks

        Returns:
            The matching TrackRecord

        Raises:
            NotFound: the applicable rule matched no record
            Ambiguous: several records share the title and the hint does not
                narrow them to one
            ValidationError: the token is blank
        """
        if not token or not token.strip():
            raise ValidationError("Track reference must not be empty")

        # One snapshot per resolution
        tracks = self._source.list_all()

        if _NUMERIC_ID.match(token):
            logger.debug("Resolving %r by id", token)
            return _by_id(tracks, token)

        if os.path.exists(token):
            path = normalize_path(token)
            logger.debug("Resolving %r by path %s", token, path)
            return _first(tracks, token, lambda t: t.path == path)

        if "-" in token:
            artist, title = (part.strip() for part in token.split("-", 1))
            logger.debug("Resolving %r by artist=%r title=%r", token, artist, title)
            return _first(tracks, token, lambda t: t.artist == artist and t.title == title)

        title = token.strip()
        logger.debug("Resolving %r by title", title)
        return _by_title(tracks, title, artist_hint)


def _by_id(tracks: Sequence[TrackRecord], token: str) -> TrackRecord:
    track_id = int(token)
    for track in tracks:
        if track.id == track_id:
            return track
    raise NotFound(token, f"Unknown track id: {track_id}")


def _first(tracks: Sequence[TrackRecord], token: str, predicate) -> TrackRecord:
    for track in tracks:
        if predicate(track):
            return track
    raise NotFound(token)


def _by_title(
    tracks: Sequence[TrackRecord], title: str, artist_hint: Optional[str]
) -> TrackRecord:
    matches = [track for track in tracks if track.title == title]
    if not matches:
        raise NotFound(title)
    if len(matches) == 1:
        return matches[0]
    if artist_hint is None:
        raise Ambiguous(title, matches)

    artist = artist_hint.strip()
    narrowed = [track for track in matches if track.artist == artist]
    if not narrowed:
        raise NotFound(title, f"Unknown track: {title} by {artist}")
    if len(narrowed) > 1:
        raise Ambiguous(title, narrowed)
    return narrowed[0]
