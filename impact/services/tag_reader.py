"""Read title/artist/album tags from audio files using mutagen."""

from __future__ import annotations

import os
from typing import Any, Optional, Protocol

from mutagen import File as MutagenFile
from mutagen import MutagenError
from mutagen.flac import FLAC
from mutagen.id3 import ID3, ID3NoHeaderError
from mutagen.mp4 import MP4
from mutagen.oggopus import OggOpus
from mutagen.oggvorbis import OggVorbis

from impact.core.models import TrackTags
from impact.errors import TagReadError


class TagReader(Protocol):
    """Extracts catalog tags from a file."""

    def read_tags(self, path: str) -> TrackTags:
        ...


class MetadataReader:
    """Read tags from audio files, dispatching on the file extension."""

    def read_tags(self, path: str) -> TrackTags:
        """Read tags from an audio file.

        Args:
            path: Path to audio file

        Returns:
            TrackTags; fields without a tag are empty strings

        Raises:
            TagReadError: file missing, unreadable or not a known audio format
        """
        if not os.path.isfile(path):
            raise TagReadError(path, "file not found")

        ext = os.path.splitext(path)[1].lower()
        try:
            if ext == ".mp3":
                return self._read_mp3(path)
            if ext == ".flac":
                return self._read_vorbis(FLAC(path))
            if ext == ".ogg":
                return self._read_vorbis(OggVorbis(path))
            if ext == ".opus":
                return self._read_vorbis(OggOpus(path))
            if ext in (".m4a", ".mp4"):
                return self._read_mp4(MP4(path))
            return self._read_generic(path)
        except (MutagenError, OSError) as exc:
            raise TagReadError(path, str(exc) or exc.__class__.__name__) from exc

    @staticmethod
    def _read_mp3(path: str) -> TrackTags:
        """Read ID3 frames. A file without an ID3 header has no tags."""
        try:
            tags = ID3(path)
        except ID3NoHeaderError:
            return TrackTags()

        def frame_text(frame_id: str) -> str:
            frame = tags.get(frame_id)
            if frame is None or not frame.text:
                return ""
            return str(frame.text[0])

        return TrackTags(
            title=frame_text("TIT2"),
            artist=frame_text("TPE1"),
            album=frame_text("TALB"),
        )

    @staticmethod
    def _read_vorbis(audio: Any) -> TrackTags:
        # Vorbis comment keys are case-insensitive
        return TrackTags(
            title=_get_first(audio, "TITLE"),
            artist=_get_first(audio, "ARTIST"),
            album=_get_first(audio, "ALBUM"),
        )

    @staticmethod
    def _read_mp4(audio: MP4) -> TrackTags:
        return TrackTags(
            title=_get_first(audio, "\xa9nam"),
            artist=_get_first(audio, "\xa9ART"),
            album=_get_first(audio, "\xa9alb"),
        )

    @staticmethod
    def _read_generic(path: str) -> TrackTags:
        audio = MutagenFile(path, easy=True)
        if audio is None:
            raise TagReadError(path, "unsupported audio format")
        if audio.tags is None:
            return TrackTags()
        return TrackTags(
            title=_get_first(audio.tags, "title"),
            artist=_get_first(audio.tags, "artist"),
            album=_get_first(audio.tags, "album"),
        )


def _get_first(tags: Optional[Any], *keys: str) -> str:
    """Get first non-empty value from a list of possible keys."""
    if tags is None:
        return ""
    for key in keys:
        try:
            values = tags.get(key, [])
        except (KeyError, ValueError):
            continue
        if values and values[0]:
            return str(values[0])
    return ""
