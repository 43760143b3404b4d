"""Typed command requests, validated once when they are built."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..errors import ValidationError


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class SelectRequest:
    reference: str
    artist: Optional[str] = None

    def __post_init__(self) -> None:
        if not _clean(self.reference):
            raise ValidationError("select needs a track reference (id, path, title or 'artist - title')")
        object.__setattr__(self, "artist", _clean(self.artist))


@dataclass(frozen=True)
class PlayRequest:
    """Play ``reference``, or the selected track when reference is None."""

    reference: Optional[str] = None
    artist: Optional[str] = None

    def __post_init__(self) -> None:
        if self.reference is not None and not _clean(self.reference):
            object.__setattr__(self, "reference", None)
        object.__setattr__(self, "artist", _clean(self.artist))


@dataclass(frozen=True)
class RemoveRequest:
    """Remove ``reference``, or the selected track when reference is None."""

    reference: Optional[str] = None
    artist: Optional[str] = None

    def __post_init__(self) -> None:
        if self.reference is not None and not _clean(self.reference):
            object.__setattr__(self, "reference", None)
        object.__setattr__(self, "artist", _clean(self.artist))


@dataclass(frozen=True)
class AddRequest:
    path: str

    def __post_init__(self) -> None:
        if not _clean(self.path):
            raise ValidationError("add needs a file path")


@dataclass(frozen=True)
class ShowRequest:
    reference: str
    artist: Optional[str] = None
    json_output: bool = False

    def __post_init__(self) -> None:
        if not _clean(self.reference):
            raise ValidationError("show needs a track reference")
        object.__setattr__(self, "artist", _clean(self.artist))


@dataclass(frozen=True)
class ListRequest:
    json_output: bool = False
