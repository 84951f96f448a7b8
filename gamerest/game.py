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
Demo Host Game

A minimal pygame game loop that owns a GameState and embeds the API server:
the server starts when the game starts and stops when the game quits. The
player runs laps along the x axis and scores a point per lap, so the state
changes on the game's own thread while tools poke at it over HTTP.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Optional

import pygame

from .clock import FrameClock
from .config import ListenerConfig
from .server import EmbeddedAPIServer
from .state import GameState, Vector3

log = logging.getLogger(__name__)

# Units per second.
PLAYER_SPEED = 4.0
LAP_LENGTH = 100.0

HEADLESS_WINDOW_SIZE = (320, 240)


def enable_headless() -> None:
    """Use SDL's dummy video and audio drivers unless told otherwise."""
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    os.environ.setdefault("SDL_AUDIODRIVER", "dummy")


class DemoGame(object):
    """
    The host application. run() is the frame loop and blocks until quit.
    """

    def __init__(self, config: Optional[ListenerConfig] = None, framerate: int = 60, headless: bool = True):
        self.state = GameState()
        self.clock = FrameClock()
        self.server = EmbeddedAPIServer(self.state, self.clock, config)
        self.framerate = framerate
        self.headless = headless

        self._quit = threading.Event()

    def start(self) -> bool:
        """Bring up pygame and the API server."""
        if self.headless:
            enable_headless()

        pygame.init()
        pygame.display.set_mode(HEADLESS_WINDOW_SIZE)
        pygame.display.set_caption("gamerest demo")

        log.info("Starting the embedded API server...")
        return self.server.start()

    def update(self, frame_ms: int) -> None:
        """Advance the player by one frame."""
        position = self.state.position
        x = position.x + PLAYER_SPEED * frame_ms / 1000.0

        if x >= LAP_LENGTH:
            x -= LAP_LENGTH
            self.state.update_score(1)

        self.state.position = Vector3(x, position.y, position.z)

    def request_quit(self) -> None:
        """Ask the frame loop to end. Safe from any thread."""
        self._quit.set()

    def run(self, max_frames: Optional[int] = None) -> None:
        """
        Run the frame loop.

        Args:
            max_frames: Stop after this many frames; None runs until quit.
        """
        self.start()

        try:
            while not self._quit.is_set():
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self.request_quit()

                self.update(self.clock.tick(self.framerate))

                if max_frames is not None and self.clock.frames >= max_frames:
                    break
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        log.info("Stopping the embedded API server...")
        self.server.stop()
        pygame.quit()
