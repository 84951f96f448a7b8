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
Port selection

This module picks the port the embedded API server listens on. A game ships
with a documented pool of ports so that external tools know where to look;
the functions here find the first one nobody else is using.
"""

from __future__ import annotations

import enum
import logging
import socket
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

import psutil

if TYPE_CHECKING:
    from .config import ListenerConfig

log = logging.getLogger(__name__)

# Returned when no candidate port is available.
UNSET_PORT = 0


class PortChooseMethod(enum.Enum):
    """How the server's port is chosen on startup."""

    FIXED_OR_FAIL = "fixed"
    FIXED_OR_INCREMENT = "increment"
    FIRST_FREE_IN_LIST = "list"
    EPHEMERAL = "ephemeral"


def pick_fixed(default_port: int) -> int:
    """
    Return the configured port as-is.

    No availability check is made; if the port is taken, binding fails later.
    """
    return default_port


def bound_ports(candidates: Optional[Iterable[int]] = None) -> set[int]:
    """
    Get the local ports of every TCP socket in the LISTEN state.

    Args:
        candidates: Only used when the OS refuses to list connections. The
            candidates are then probed one by one with a bind attempt.

    Returns:
        set[int]: Ports that are already bound by a listener.
    """
    try:
        connections = psutil.net_connections(kind="tcp")
    except psutil.AccessDenied:
        log.warning("[API] Not allowed to list TCP listeners, probing candidate ports instead")
        return {port for port in (candidates or ()) if not _can_bind(port)}

    return {
        conn.laddr.port
        for conn in connections
        if conn.status == psutil.CONN_LISTEN and conn.laddr
    }


def _can_bind(port: int) -> bool:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind(("", port))
        return True
    except OSError:
        return False
    finally:
        sock.close()


def pick_first_free_in_list(candidates: Sequence[int], bound: Optional[set[int]] = None) -> int:
    """
    Find the first port of `candidates` that no listener on this machine holds.

    Args:
        candidates: Ports in order of preference. Only one will be chosen.
        bound: Ports known to be in use. Queried from the OS when omitted.

    Returns:
        int: The first available candidate, or UNSET_PORT if all are taken.
    """
    candidates = list(candidates)
    if bound is None:
        bound = bound_ports(candidates)

    for port in candidates:
        if port not in bound:
            return port

    return UNSET_PORT


def pick_increment_range(start: int, count: int, bound: Optional[set[int]] = None) -> int:
    """
    Find an available port among start, start + 1, ..., start + count - 1.

    For example, a start of 3000 and a count of 5 can return 3000 through
    3004, whichever comes first unbound.
    """
    return pick_first_free_in_list(range(start, start + max(count, 0)), bound)


def pick_ephemeral() -> int:
    """
    Ask the OS for an unused port.

    A throwaway socket is bound to port 0 and closed right away. Another
    process may grab the port before the real listener binds it.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind(("", 0))
        return sock.getsockname()[1]
    finally:
        sock.close()


def choose_port(config: ListenerConfig) -> int:
    """Resolve the listening port according to the configured method."""
    method = config.port_choose_method

    if method is PortChooseMethod.FIXED_OR_FAIL:
        return pick_fixed(config.default_port)
    elif method is PortChooseMethod.FIRST_FREE_IN_LIST:
        return pick_first_free_in_list(config.candidate_ports)
    elif method is PortChooseMethod.EPHEMERAL:
        return pick_ephemeral()

    return pick_increment_range(config.default_port, config.increment_limit)
