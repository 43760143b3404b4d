"""Core data models for impact."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum


class PlaybackState(str, Enum):
    """Playback controller states."""

    IDLE = "IDLE"
    PLAYING = "PLAYING"
    PAUSED = "PAUSED"


@dataclass(frozen=True)
class TrackTags:
    """Title/artist/album as read from a file. Missing tags are empty strings."""

    title: str = ""
    artist: str = ""
    album: str = ""


@dataclass(frozen=True)
class NewTrack:
    """A track that has not been stored yet (no id)."""

    path: str
    title: str = ""
    artist: str = ""
    album: str = ""

    @classmethod
    def from_tags(cls, path: str, tags: TrackTags) -> NewTrack:
        return cls(path=path, title=tags.title, artist=tags.artist, album=tags.album)


@dataclass(frozen=True)
class TrackRecord:
    """A cataloged track keyed by its store-assigned id."""

    id: int
    path: str
    title: str = ""
    artist: str = ""
    album: str = ""

    def display(self) -> str:
        """Short human label: "artist - title", the title, or the file name."""
        if self.artist and self.title:
            return f"{self.artist} - {self.title}"
        if self.title:
            return self.title
        return os.path.basename(self.path)


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Return the absolute, normalized form of ``path``.

    Relative paths are anchored at the current working directory. Symlinks
    are not resolved, so two links to one file are two catalog entries.
    """
    return os.path.abspath(os.path.expanduser(os.fspath(path)))
