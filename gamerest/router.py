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
Request routing

Routing is two lookups: the top-level path segment picks a route group, then
the HTTP verb picks the handler inside it. Names are matched exactly and
case-sensitively.
"""

from __future__ import annotations

from typing import Mapping, Optional

from . import handlers
from .handlers import Handler

ANY_VERB = "*"

# Routes whose whole path is a single segment, e.g. "/status".
ROUTES: dict[str, dict[str, Handler]] = {
    "status": {"GET": handlers.game_status},
    "ping": {"POST": handlers.request_mirror},
    "score": {"GET": handlers.get_score, "POST": handlers.set_score},
    "address": {"GET": handlers.server_address},
}

# Routes with more segments below them, e.g. "/commands/settimeofday/0800".
# The handler receives the full path.
NESTED_ROUTES: dict[str, dict[str, Handler]] = {
    "commands": {ANY_VERB: handlers.command_placeholder},
}


def split_route(path: str) -> tuple[str, bool]:
    """
    Get the top-level route name of a request path.

    Returns:
        (name, nested): nested is True when more segments follow the name.
    """
    if path.startswith("/"):
        path = path[1:]

    name, sep, _rest = path.partition("/")
    return name, bool(sep)


def _lookup(group: Optional[Mapping[str, Handler]], verb: str) -> Optional[Handler]:
    if group is None:
        return None
    return group.get(verb) or group.get(ANY_VERB)


def route(verb: str, path: str) -> Optional[Handler]:
    """Find the handler for a request, or None if nothing matches."""
    name, nested = split_route(path)

    if nested:
        return _lookup(NESTED_ROUTES.get(name), verb)

    return _lookup(ROUTES.get(name), verb)
