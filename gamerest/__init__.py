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
Embedded REST API for games

This package runs a small HTTP server inside a running game so that external
tools can query and change live game state over localhost or the LAN.
"""

from __future__ import annotations

import atexit
from typing import Optional

from .clock import FrameClock
from .config import ListenerConfig
from .errors import ConfigError, GameRestError, ListenerClosed, PayloadError, StartupError
from .ports import PortChooseMethod
from .server import EmbeddedAPIServer, ServerState
from .state import GameState, Vector3

__version__ = "1.0.0"

__all__ = [
    "ConfigError",
    "EmbeddedAPIServer",
    "FrameClock",
    "GameRestError",
    "GameState",
    "ListenerClosed",
    "ListenerConfig",
    "PayloadError",
    "PortChooseMethod",
    "ServerState",
    "StartupError",
    "Vector3",
    "get_server",
    "get_server_url",
    "is_server_running",
    "start_server",
    "stop_server",
]

# One API server per process.
_server: Optional[EmbeddedAPIServer] = None
_shutdown_hook_registered = False


def get_server() -> Optional[EmbeddedAPIServer]:
    """Get the process-wide server, if one was started."""
    return _server


def start_server(state: GameState, clock: FrameClock, config: Optional[ListenerConfig] = None) -> Optional[EmbeddedAPIServer]:
    """
    Start the process-wide API server.

    If one already exists it is (re)started and returned as-is; the arguments
    are ignored in that case. The server is stopped automatically when the
    interpreter exits.

    Returns:
        EmbeddedAPIServer or None if the server failed to start.
    """
    global _server, _shutdown_hook_registered

    if _server is None:
        _server = EmbeddedAPIServer(state, clock, config)

    if not _shutdown_hook_registered:
        atexit.register(stop_server)
        _shutdown_hook_registered = True

    if not _server.start():
        return None

    return _server


def stop_server() -> None:
    """Stop the process-wide API server. Does nothing if none is running."""
    if _server is not None:
        _server.stop()


def is_server_running() -> bool:
    """Check if the process-wide API server is running."""
    return _server is not None and _server.is_running()


def get_server_url() -> Optional[str]:
    """Get the localhost URL of the process-wide API server."""
    if _server is None:
        return None
    return _server.get_url()
