"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

from impact.app import PlayerContext
from impact.core.models import TrackTags
from impact.errors import PlaybackError, TagReadError
from impact.infrastructure.catalog_store import CatalogStore


class FakeSession:
    """Records every call the controller makes on a session."""

    def __init__(self, path: str, fail_on: tuple[str, ...] = ()) -> None:
        self.path = path
        self.calls: list[str] = []
        self.fail_on = fail_on

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise PlaybackError(self.path, f"{name} failed")

    def play(self) -> None:
        self._record("play")

    def pause(self) -> None:
        self._record("pause")

    def stop(self) -> None:
        self._record("stop")

    @property
    def stopped(self) -> bool:
        return "stop" in self.calls


class FakeBackend:
    """In-memory audio backend; paths in ``broken`` fail to open."""

    def __init__(self) -> None:
        self.sessions: list[FakeSession] = []
        self.broken: set[str] = set()
        self.session_fail_on: tuple[str, ...] = ()

    def open(self, path: str) -> FakeSession:
        if path in self.broken:
            raise PlaybackError(path, "unsupported audio format")
        session = FakeSession(path, fail_on=self.session_fail_on)
        self.sessions.append(session)
        return session


class StubTagReader:
    """Serves tags from a dict and counts reads per path."""

    def __init__(self, tags: dict[str, TrackTags] | None = None) -> None:
        self.tags = dict(tags or {})
        self.calls: list[str] = []

    def read_tags(self, path: str) -> TrackTags:
        self.calls.append(path)
        if path not in self.tags:
            raise TagReadError(path, "file not found")
        return self.tags[path]


@pytest.fixture
def store(tmp_path: Path) -> Generator[CatalogStore, None, None]:
    catalog = CatalogStore(tmp_path / "tracks.db")
    try:
        yield catalog
    finally:
        catalog.close()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def tag_reader() -> StubTagReader:
    return StubTagReader()


@pytest.fixture
def ctx(tmp_path: Path, backend: FakeBackend, tag_reader: StubTagReader) -> Generator[PlayerContext, None, None]:
    context = PlayerContext(
        store=CatalogStore(tmp_path / "tracks.db"),
        backend=backend,
        tag_reader=tag_reader,
    )
    try:
        yield context
    finally:
        context.close()


@pytest.fixture
def music_dir(tmp_path: Path) -> Path:
    """A directory of empty stand-in audio files."""
    root = tmp_path / "music"
    root.mkdir()
    for name in ("song.mp3", "other.mp3", "intro.flac"):
        (root / name).write_bytes(b"\0" * 128)
    return root
