"""Audio output through mpv, one player process per session.

Each session is an ``mpv`` process started paused with a JSON IPC socket.
Commands are written to the socket as single JSON lines. Replies are only
read while a session is opening, to confirm mpv actually loaded the file;
after that the session writes without reading, so no reader thread is needed.
"""

from __future__ import annotations

import itertools
import json
import logging
import os
import shutil
import socket
import subprocess
import tempfile
import time
from typing import Any, Optional, Protocol

from mutagen import File as MutagenFile
from mutagen import MutagenError

from impact.errors import PlaybackError

logger = logging.getLogger(__name__)

_endpoint_counter = itertools.count(1)


class AudioSession(Protocol):
    """A live handle on one opened track."""

    def play(self) -> None:
        ...

    def pause(self) -> None:
        ...

    def stop(self) -> None:
        ...


class AudioBackend(Protocol):
    """Opens audio sessions. Sessions start paused."""

    def open(self, path: str) -> AudioSession:
        ...


def _is_windows() -> bool:
    return os.name == "nt"


def _new_ipc_endpoint() -> str:
    name = f"impact-mpv-{os.getpid()}-{next(_endpoint_counter)}"
    if _is_windows():
        return rf"\\.\pipe\{name}"
    return os.path.join(tempfile.gettempdir(), f"{name}.sock")


def _remove_unix_socket(path: str) -> None:
    if _is_windows():
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def _send_line(channel: Any, payload: dict[str, Any]) -> None:
    line = (json.dumps(payload) + "\n").encode("utf-8")
    if _is_windows():
        channel.write(line)
        channel.flush()
    else:
        channel.sendall(line)


def _receive(channel: Any, timeout: float) -> Optional[bytes]:
    """Read what the player sent. None on timeout, b"" once the player hung up."""
    if _is_windows():
        # Named pipes have no read timeout; mpv answers every request_id.
        return channel.readline()
    channel.settimeout(timeout)
    try:
        return channel.recv(4096)
    except socket.timeout:
        return None
    finally:
        channel.settimeout(None)


def _decode(line: bytes) -> Optional[dict[str, Any]]:
    line = line.strip()
    if not line:
        return None
    try:
        message = json.loads(line.decode("utf-8", errors="replace"))
    except ValueError:
        logger.debug("Ignoring malformed mpv line %r", line)
        return None
    return message if isinstance(message, dict) else None


def _exit_reason(process: subprocess.Popen) -> str:
    try:
        code = process.wait(timeout=0.5)
    except subprocess.TimeoutExpired:
        return "player closed the connection"
    return f"player exited with code {code}"


def probe_audio(path: str) -> None:
    """Fail with PlaybackError unless ``path`` is a readable, known audio file."""
    if not os.path.isfile(path):
        raise PlaybackError(path, "file not found")
    try:
        audio = MutagenFile(path)
    except (MutagenError, OSError) as exc:
        raise PlaybackError(path, f"cannot decode ({exc})") from exc
    if audio is None:
        raise PlaybackError(path, "unsupported audio format")


class MpvSession:
    """Controls a single mpv process over its IPC endpoint."""

    def __init__(
        self,
        path: str,
        process: subprocess.Popen,
        endpoint: str,
        channel: Any,
    ) -> None:
        self.path = path
        self._process = process
        self._endpoint = endpoint
        self._channel = channel
        self._closed = False

    def play(self) -> None:
        self._command("set_property", "pause", False)

    def pause(self) -> None:
        self._command("set_property", "pause", True)

    def stop(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            _send_line(self._channel, {"command": ["quit"]})
        except OSError:
            pass
        try:
            self._channel.close()
        except OSError:
            pass
        if self._process.poll() is None:
            self._process.terminate()
            try:
                self._process.wait(timeout=2.0)
            except subprocess.TimeoutExpired:
                self._process.kill()
                self._process.wait()
        _remove_unix_socket(self._endpoint)

    def _command(self, *args: Any) -> None:
        if self._closed:
            raise PlaybackError(self.path, "session already stopped")
        if self._process.poll() is not None:
            raise PlaybackError(
                self.path, f"player exited with code {self._process.returncode}"
            )
        logger.debug("mpv command %r", args)
        try:
            _send_line(self._channel, {"command": list(args)})
        except OSError as exc:
            raise PlaybackError(self.path, f"lost connection to player ({exc})") from exc


class MpvBackend:
    """Start mpv processes for playback.

    ``open`` returns only once mpv has loaded the file; a file mpv cannot
    decode, or an audio output it cannot open, makes the player quit and
    surfaces here as PlaybackError.

    Args:
        mpv_path: Explicit binary path; defaults to ``mpv`` on PATH
        startup_timeout: Seconds to wait for the player to load the file
    """

    def __init__(self, mpv_path: Optional[str] = None, startup_timeout: float = 3.0) -> None:
        self.mpv_path = mpv_path
        self.startup_timeout = startup_timeout

    def open(self, path: str) -> MpvSession:
        probe_audio(path)

        binary = shutil.which(self.mpv_path or "mpv")
        if not binary:
            raise PlaybackError(path, "mpv binary not found (set IMPACT_MPV_PATH)")

        endpoint = _new_ipc_endpoint()
        _remove_unix_socket(endpoint)
        args = [
            binary,
            "--no-video",
            "--audio-display=no",
            "--pause=yes",
            "--keep-open=no",
            "--terminal=no",
            "--msg-level=all=warn",
            f"--input-ipc-server={endpoint}",
            "--",
            path,
        ]
        creationflags = getattr(subprocess, "CREATE_NO_WINDOW", 0) if _is_windows() else 0
        try:
            process = subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                creationflags=creationflags,
            )
        except OSError as exc:
            raise PlaybackError(path, f"cannot start mpv ({exc})") from exc

        deadline = time.monotonic() + self.startup_timeout
        try:
            channel = self._connect(path, process, endpoint, deadline)
        except PlaybackError:
            self._discard(process, endpoint)
            raise

        try:
            self._wait_until_loaded(path, process, channel, deadline)
        except PlaybackError:
            try:
                channel.close()
            except OSError:
                pass
            self._discard(process, endpoint)
            raise

        logger.debug("Started mpv pid %d for %s", process.pid, path)
        return MpvSession(path, process, endpoint, channel)

    def _connect(
        self, path: str, process: subprocess.Popen, endpoint: str, deadline: float
    ) -> Any:
        last_err: Optional[OSError] = None
        while time.monotonic() < deadline:
            if process.poll() is not None:
                raise PlaybackError(path, f"player exited with code {process.returncode}")
            try:
                if _is_windows():
                    return open(endpoint, "r+b", buffering=0)
                sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                try:
                    sock.connect(endpoint)
                except OSError:
                    sock.close()
                    raise
                return sock
            except OSError as exc:
                last_err = exc
                time.sleep(0.05)
        raise PlaybackError(path, f"player did not come up in time ({last_err})")

    def _wait_until_loaded(
        self, path: str, process: subprocess.Popen, channel: Any, deadline: float
    ) -> None:
        """Poll ``duration`` until mpv answers with a value.

        mpv has no duration before the file is loaded and exits when loading
        fails, so a successful reply is the load confirmation.
        """
        buffer = b""
        request_ids = itertools.count(1)
        while time.monotonic() < deadline:
            if process.poll() is not None:
                raise PlaybackError(path, f"player exited with code {process.returncode}")
            request_id = next(request_ids)
            try:
                _send_line(
                    channel,
                    {"command": ["get_property", "duration"], "request_id": request_id},
                )
            except OSError as exc:
                raise PlaybackError(path, _exit_reason(process)) from exc

            reply: Optional[dict[str, Any]] = None
            while reply is None and time.monotonic() < deadline:
                try:
                    chunk = _receive(channel, 0.1)
                except OSError as exc:
                    raise PlaybackError(path, _exit_reason(process)) from exc
                if chunk is None:
                    continue
                if not chunk:
                    raise PlaybackError(path, _exit_reason(process))
                buffer += chunk
                while b"\n" in buffer:
                    line, buffer = buffer.split(b"\n", 1)
                    message = _decode(line)
                    if message is None:
                        continue
                    if message.get("event") == "end-file" and message.get("reason") == "error":
                        raise PlaybackError(
                            path, message.get("file_error") or "player could not load the file"
                        )
                    if message.get("request_id") == request_id:
                        reply = message

            if reply is not None and reply.get("error") == "success":
                logger.debug("mpv loaded %s (duration %s)", path, reply.get("data"))
                return
            time.sleep(0.05)
        raise PlaybackError(path, "player did not load the file in time")

    @staticmethod
    def _discard(process: subprocess.Popen, endpoint: str) -> None:
        if process.poll() is None:
            process.terminate()
            process.wait()
        _remove_unix_socket(endpoint)
