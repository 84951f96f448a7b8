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
Shared Game State

The state the host game owns and the API server reads and writes. The game's
frame loop and the server's accept thread both touch it, so every field goes
through one lock.
"""

from __future__ import annotations

import threading
from typing import NamedTuple


class Vector3(NamedTuple):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class GameState(object):
    """
    Player score and position, safe to use from any thread.

    Each read or write is a single atomic step; use update_score() when the
    new value depends on the old one.
    """

    def __init__(self, score=0, position=None):
        self._lock = threading.Lock()
        self._score = int(score)
        self._position = Vector3(*position) if position is not None else Vector3()

    @property
    def score(self) -> int:
        with self._lock:
            return self._score

    @score.setter
    def score(self, value: int) -> None:
        with self._lock:
            self._score = value

    def update_score(self, delta: int) -> int:
        """Add `delta` to the score and return the new value."""
        with self._lock:
            self._score += delta
            return self._score

    @property
    def position(self) -> Vector3:
        with self._lock:
            return self._position

    @position.setter
    def position(self, value) -> None:
        value = Vector3(*value)
        with self._lock:
            self._position = value

    def snapshot(self) -> dict:
        """Get score and position read under one lock acquisition."""
        with self._lock:
            return {"score": self._score, "position": self._position._asdict()}
