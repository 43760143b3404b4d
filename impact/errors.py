"""Error taxonomy and exit code mapping for CLI and shell."""

from __future__ import annotations

from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from impact.core.models import PlaybackState, TrackRecord


class ImpactError(Exception):
    """Base error for deterministic CLI exit codes."""

    exit_code: int = 1


class ValidationError(ImpactError):
    """Invalid user input or command usage."""

    exit_code = 2


class RuntimeFailure(ImpactError):
    """Unexpected runtime failure."""

    exit_code = 1


class IOFailure(ImpactError):
    """Filesystem or I/O failure."""

    exit_code = 3


class TagReadError(IOFailure):
    """Tags could not be extracted from an audio file."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot read tags from {path}: {reason}")
        self.path = path
        self.reason = reason


class NotFound(ImpactError):
    """No catalog record matches a reference."""

    exit_code = 4

    def __init__(self, token: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Unknown track: {token}")
        self.token = token


class Ambiguous(ImpactError):
    """Several catalog records match a title and no artist narrows them."""

    exit_code = 5

    def __init__(self, token: str, candidates: Sequence["TrackRecord"]) -> None:
        artists = ", ".join(sorted({c.artist or "<no artist>" for c in candidates}))
        super().__init__(
            f"Title {token!r} matches {len(candidates)} tracks (artists: {artists}); "
            "supply an artist to choose one"
        )
        self.token = token
        self.candidates = tuple(candidates)


class InvalidState(ImpactError):
    """Playback operation requested from a state that does not allow it."""

    exit_code = 6

    def __init__(self, operation: str, state: "PlaybackState") -> None:
        super().__init__(f"Cannot {operation} while {state.value.lower()}")
        self.operation = operation
        self.state = state


class PlaybackError(ImpactError):
    """The audio backend could not open or control a file."""

    exit_code = 7

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot play {path}: {reason}")
        self.path = path
        self.reason = reason


class DuplicatePath(ImpactError):
    """A track with the same normalized path is already cataloged."""

    exit_code = 8

    def __init__(self, path: str) -> None:
        super().__init__(f"This track is already stored: {path}")
        self.path = path


def exit_code_for_exception(exc: BaseException) -> int:
    """Resolve a deterministic exit code for an exception."""
    if isinstance(exc, ImpactError):
        return exc.exit_code
    if isinstance(exc, OSError):
        return IOFailure.exit_code
    return RuntimeFailure.exit_code
