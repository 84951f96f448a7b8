# Copyright 2004-2025 Tom Rothamel <pytom@bishoujo.us>
#
# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS BE
# LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION
# OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION
# WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.

"""
Frame timing instrumentation

The host game ticks a FrameClock once per frame. The status route reads it
from the server thread, so the last frame time is kept under a lock.
"""

from __future__ import annotations

import os
import platform
import threading
import time
from typing import Optional

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame  # noqa: E402


def platform_name() -> str:
    """Identifier of the platform the game runs on, e.g. "Linux-x86_64"."""
    return "{}-{}".format(platform.system() or "Unknown", platform.machine() or "unknown")


class FrameClock(object):
    """
    Wraps pygame.time.Clock to expose per-frame timing to other threads.
    """

    def __init__(self, clock: Optional[pygame.time.Clock] = None):
        self._clock = clock if clock is not None else pygame.time.Clock()
        self._lock = threading.Lock()
        self._frame_ms = 0
        self._frames = 0
        self._started = time.monotonic()
        self.platform = platform_name()

    def tick(self, framerate: int = 0) -> int:
        """
        Advance one frame. Call this from the game loop only.

        Args:
            framerate: Cap passed to pygame; 0 means uncapped.

        Returns:
            int: Milliseconds since the previous tick.
        """
        elapsed = self._clock.tick(framerate)
        with self._lock:
            self._frame_ms = elapsed
            self._frames += 1
        return elapsed

    @property
    def frames(self) -> int:
        with self._lock:
            return self._frames

    @property
    def fps(self) -> float:
        """Frame rate derived from the last frame alone; 0.0 before any frame."""
        with self._lock:
            frame_ms = self._frame_ms
        if frame_ms <= 0:
            return 0.0
        return 1000.0 / frame_ms

    @property
    def session_length_seconds(self) -> float:
        """Real time since the clock was created."""
        return max(0.0, time.monotonic() - self._started)
