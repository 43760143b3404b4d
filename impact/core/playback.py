"""Playback controller - a single audio session driven by a small state machine.

Transitions:
    play    any state        -> PLAYING (replaces the current session)
    pause   PLAYING          -> PAUSED
    resume  PAUSED           -> PLAYING
    stop    PLAYING | PAUSED -> IDLE

Any other request raises InvalidState and leaves the controller untouched.
"""

from __future__ import annotations

import logging
from typing import Optional

from impact.core.models import PlaybackState, TrackRecord
from impact.errors import ImpactError, InvalidState
from impact.services.audio_backend import AudioBackend, AudioSession

logger = logging.getLogger(__name__)


class PlaybackController:
    """Own at most one audio session and track its state."""

    def __init__(self, backend: AudioBackend) -> None:
        self._backend = backend
        self._session: Optional[AudioSession] = None
        self._current: Optional[TrackRecord] = None
        self._state = PlaybackState.IDLE

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def current(self) -> Optional[TrackRecord]:
        """Record behind the active session, None when idle."""
        return self._current

    def play(self, record: TrackRecord) -> None:
        """Start ``record``, replacing whatever is playing.

        The new session is opened before the old one is touched, so a
        PlaybackError from the backend leaves the previous session running.
        """
        session = self._backend.open(record.path)

        if self._session is not None:
            self._release(self._session)

        try:
            session.play()
        except (ImpactError, OSError):
            # Old session is already gone; fall back to a clean idle state.
            self._release(session)
            self._session = None
            self._current = None
            self._state = PlaybackState.IDLE
            raise

        self._session = session
        self._current = record
        self._state = PlaybackState.PLAYING
        logger.info("Playing id %d (%s)", record.id, record.path)

    def pause(self) -> None:
        self._require("pause", PlaybackState.PLAYING)
        self._session.pause()
        self._state = PlaybackState.PAUSED
        logger.info("Paused")

    def resume(self) -> None:
        self._require("resume", PlaybackState.PAUSED)
        self._session.play()
        self._state = PlaybackState.PLAYING
        logger.info("Resumed")

    def stop(self) -> None:
        self._require("stop", PlaybackState.PLAYING, PlaybackState.PAUSED)
        session = self._session
        self._session = None
        self._current = None
        self._state = PlaybackState.IDLE
        session.stop()
        logger.info("Stopped")

    def shutdown(self) -> None:
        """Release any session without raising. Used at process exit."""
        if self._session is not None:
            self._release(self._session)
        self._session = None
        self._current = None
        self._state = PlaybackState.IDLE

    def _require(self, operation: str, *allowed: PlaybackState) -> None:
        if self._state not in allowed:
            raise InvalidState(operation, self._state)

    @staticmethod
    def _release(session: AudioSession) -> None:
        try:
            session.stop()
        except (ImpactError, OSError) as exc:
            logger.warning("Failed to stop previous session: %s", exc)
