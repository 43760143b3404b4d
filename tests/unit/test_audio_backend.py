"""Unit tests for the mpv audio backend that do not need a real player."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

from impact.core.models import PlaybackState, TrackRecord
from impact.core.playback import PlaybackController
from impact.errors import PlaybackError
from impact.services import audio_backend
from impact.services.audio_backend import MpvBackend, MpvSession, probe_audio


def test_probe_rejects_missing_file(tmp_path: Path) -> None:
    with pytest.raises(PlaybackError, match="file not found"):
        probe_audio(str(tmp_path / "missing.mp3"))


def test_probe_rejects_non_audio(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("plain text")
    with pytest.raises(PlaybackError, match="unsupported audio format"):
        probe_audio(str(path))


def test_open_fails_cleanly_without_mpv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(audio_backend, "probe_audio", lambda path: None)
    monkeypatch.setattr(audio_backend.shutil, "which", lambda name: None)

    with pytest.raises(PlaybackError, match="mpv binary not found"):
        MpvBackend().open(str(tmp_path / "song.mp3"))


def test_open_reports_player_that_exits_immediately(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(audio_backend, "probe_audio", lambda path: None)
    monkeypatch.setattr(audio_backend.shutil, "which", lambda name: "/usr/bin/mpv")

    class ExitedProcess:
        returncode = 2
        pid = 1234

        def poll(self) -> int:
            return self.returncode

    monkeypatch.setattr(audio_backend.subprocess, "Popen", lambda *a, **kw: ExitedProcess())

    with pytest.raises(PlaybackError, match="exited with code 2"):
        MpvBackend(startup_timeout=0.5).open(str(tmp_path / "song.mp3"))


def test_open_reports_spawn_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(audio_backend, "probe_audio", lambda path: None)
    monkeypatch.setattr(audio_backend.shutil, "which", lambda name: "/usr/bin/mpv")

    def refuse(*args, **kwargs):
        raise PermissionError("not executable")

    monkeypatch.setattr(audio_backend.subprocess, "Popen", refuse)

    with pytest.raises(PlaybackError, match="cannot start mpv"):
        MpvBackend().open(str(tmp_path / "song.mp3"))


class RecordingChannel:
    def __init__(self) -> None:
        self.lines: list[bytes] = []
        self.closed = False

    def sendall(self, data: bytes) -> None:
        self.lines.append(data)

    def close(self) -> None:
        self.closed = True


class RunningProcess:
    def __init__(self) -> None:
        self.returncode = None
        self.terminated = False

    def poll(self):
        return self.returncode

    def terminate(self) -> None:
        self.terminated = True
        self.returncode = -15

    def wait(self, timeout=None) -> int:
        return self.returncode

    def kill(self) -> None:
        self.returncode = -9


@pytest.mark.skipif(audio_backend._is_windows(), reason="unix socket transport")
def test_session_sends_pause_commands_and_stops_process(tmp_path: Path) -> None:
    channel = RecordingChannel()
    process = RunningProcess()
    session = MpvSession("/music/a.mp3", process, str(tmp_path / "mpv.sock"), channel)

    session.play()
    session.pause()
    session.stop()
    session.stop()

    assert channel.lines[0] == b'{"command": ["set_property", "pause", false]}\n'
    assert channel.lines[1] == b'{"command": ["set_property", "pause", true]}\n'
    assert channel.lines[2] == b'{"command": ["quit"]}\n'
    assert len(channel.lines) == 3
    assert channel.closed
    assert process.terminated


def test_session_commands_fail_after_player_exit(tmp_path: Path) -> None:
    process = RunningProcess()
    session = MpvSession("/music/a.mp3", process, str(tmp_path / "mpv.sock"), RecordingChannel())
    process.returncode = 0

    with pytest.raises(PlaybackError, match="exited"):
        session.pause()


def test_popen_is_not_called_for_missing_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fail(*args, **kwargs):
        raise AssertionError("mpv must not be started")

    monkeypatch.setattr(subprocess, "Popen", fail)
    with pytest.raises(PlaybackError):
        MpvBackend().open(str(tmp_path / "missing.mp3"))


_FAKE_MPV = '''#!{python}
import json
import socket
import sys

mode = {mode!r}
endpoint = next(a.split("=", 1)[1] for a in sys.argv if a.startswith("--input-ipc-server="))
server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
server.bind(endpoint)
server.listen(1)
conn, _ = server.accept()
if mode == "crash":
    sys.exit(2)
if mode == "bad-file":
    event = {{"event": "end-file", "reason": "error", "file_error": "unrecognized file format"}}
    conn.sendall((json.dumps(event) + "\\n").encode())
    conn.makefile("rb").readline()
    sys.exit(2)
for raw in conn.makefile("rb"):
    request = json.loads(raw)
    if request["command"][0] == "quit":
        break
    if "request_id" in request:
        reply = {{"request_id": request["request_id"], "error": "success", "data": 1.5}}
        conn.sendall((json.dumps(reply) + "\\n").encode())
'''


def _fake_mpv(tmp_path: Path, mode: str) -> str:
    script = tmp_path / f"mpv-{mode}"
    script.write_text(_FAKE_MPV.format(python=sys.executable, mode=mode))
    script.chmod(0o755)
    return str(script)


@pytest.fixture
def audio_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setattr(audio_backend, "probe_audio", lambda path: None)
    path = tmp_path / "song.mp3"
    path.write_bytes(b"\0" * 64)
    return str(path)


unix_only = pytest.mark.skipif(audio_backend._is_windows(), reason="unix socket transport")


@unix_only
def test_open_waits_for_player_to_load_file(tmp_path: Path, audio_file: str) -> None:
    session = MpvBackend(mpv_path=_fake_mpv(tmp_path, "ok"), startup_timeout=10).open(audio_file)
    try:
        session.play()
        session.pause()
    finally:
        session.stop()
    assert session._process.poll() is not None


@unix_only
def test_open_fails_when_player_dies_after_connecting(tmp_path: Path, audio_file: str) -> None:
    backend = MpvBackend(mpv_path=_fake_mpv(tmp_path, "crash"), startup_timeout=10)
    with pytest.raises(PlaybackError, match="exited with code 2"):
        backend.open(audio_file)


@unix_only
def test_open_reports_load_error_from_player(tmp_path: Path, audio_file: str) -> None:
    backend = MpvBackend(mpv_path=_fake_mpv(tmp_path, "bad-file"), startup_timeout=10)
    with pytest.raises(PlaybackError, match="unrecognized file format"):
        backend.open(audio_file)


@unix_only
def test_dead_player_leaves_controller_state_unchanged(tmp_path: Path, audio_file: str) -> None:
    controller = PlaybackController(MpvBackend(mpv_path=_fake_mpv(tmp_path, "crash"), startup_timeout=10))

    with pytest.raises(PlaybackError):
        controller.play(TrackRecord(1, audio_file, "Song"))

    assert controller.state is PlaybackState.IDLE
    assert controller.current is None


@unix_only
def test_dead_player_keeps_previous_session_playing(tmp_path: Path, audio_file: str) -> None:
    good = MpvBackend(mpv_path=_fake_mpv(tmp_path, "ok"), startup_timeout=10)
    controller = PlaybackController(good)
    controller.play(TrackRecord(1, audio_file, "Song"))
    try:
        good.mpv_path = _fake_mpv(tmp_path, "crash")
        with pytest.raises(PlaybackError):
            controller.play(TrackRecord(2, audio_file, "Other"))

        assert controller.state is PlaybackState.PLAYING
        assert controller.current.id == 1
    finally:
        controller.shutdown()
