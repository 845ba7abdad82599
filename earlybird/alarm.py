from __future__ import annotations

import logging
import threading
from typing import Callable

from playsound import playsound

logger = logging.getLogger(__name__)

RETRY_PAUSE_SECONDS = 1.0


class Alarm:
    """Plays a sound over and over on a background thread until stopped.

    `player` is called as player(path, block=True) and must return once
    playback is done; playsound does exactly that.
    """

    def __init__(self, sound_path: str, *, player: Callable[..., object] = playsound) -> None:
        self.sound_path = sound_path
        self._player = player
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.plays = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="alarm", daemon=True)
        self._thread.start()
        logger.info("Alarm started (%s)", self.sound_path)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        # The current playback finishes first; playsound cannot be interrupted.
        if self._thread is not None:
            self._thread.join(timeout)
        logger.info("Alarm stopped after %d plays", self.plays)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the alarm loop ends. Returns False if still running."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self._player(self.sound_path, block=True)
                self.plays += 1
            except Exception as e:
                logger.warning("Alarm playback failed (%s: %s)", type(e).__name__, e)
                self._stop.wait(RETRY_PAUSE_SECONDS)
