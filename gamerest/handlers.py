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
Route handlers

Each handler takes the incoming request and a HandlerContext and returns the
response body as a string. An empty string means there is nothing to send
back, which the server turns into a 404.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from .clock import FrameClock
from .network import list_local_addresses
from .protocol import GameHealthCheck, IncomingRequest, PlayerScore, ServerInfo
from .state import GameState

log = logging.getLogger(__name__)


@dataclass
class HandlerContext:
    """What the handlers may touch: the game's state and instrumentation."""

    state: GameState
    clock: FrameClock
    addresses: Callable[[], list[str]] = field(default=list_local_addresses)


Handler = Callable[[IncomingRequest, HandlerContext], str]


def game_status(request: IncomingRequest, ctx: HandlerContext) -> str:
    """GET /status - read fresh from the clock on every call."""
    return GameHealthCheck(
        fps=ctx.clock.fps,
        platform=ctx.clock.platform,
        sessionLengthSeconds=ctx.clock.session_length_seconds,
    ).to_json()


def request_mirror(request: IncomingRequest, ctx: HandlerContext) -> str:
    """POST /ping - send the body straight back."""
    received = request.text()

    # Reads nicest when the client posts raw JSON.
    log.info("[API] Received this data on the ping route: %s", received)

    return received


def get_score(request: IncomingRequest, ctx: HandlerContext) -> str:
    """GET /score"""
    return PlayerScore(score=ctx.state.score).to_json()


def set_score(request: IncomingRequest, ctx: HandlerContext) -> str:
    """
    POST /score - replace the player's score.

    The payload is decoded and checked before anything is assigned, so a bad
    request leaves the current score alone.
    """
    received = request.text()
    log.debug("[API] Incoming score data looks like: %s", received)

    new_score = PlayerScore.from_json(received)
    ctx.state.score = new_score.score

    return "Score updated to {}".format(new_score.score)


def server_address(request: IncomingRequest, ctx: HandlerContext) -> str:
    """GET /address"""
    return ServerInfo(privateAddresses=list(ctx.addresses())).to_json()


def command_placeholder(request: IncomingRequest, ctx: HandlerContext) -> str:
    """Any verb on /commands/... ; only reports the path for now."""
    return "Route with multiple forward slashes detected! It was {}".format(request.path)
