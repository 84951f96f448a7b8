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
Local network addresses

Lists the addresses this device is known by on the networks it is connected
to, so the API can be reached from other machines on the LAN as well as from
localhost.
"""

from __future__ import annotations

import ipaddress
import logging
import socket

log = logging.getLogger(__name__)


def list_local_addresses() -> list[str]:
    """
    Get the IPv4 addresses of this host, minus loopback.

    These are the 192.168.*.* / 10.*.*.* / 172.16.*.* style addresses a LAN
    assigns, never public ones. A device can be on several networks at once,
    so there may be more than one. Nothing is cached.

    Returns:
        list[str]: Dotted-decimal addresses in the order the system reports them.
    """
    hostname = socket.gethostname()

    try:
        _name, _aliases, addresses = socket.gethostbyname_ex(hostname)
    except (socket.gaierror, socket.herror) as e:
        log.warning("[API] Could not resolve host name %r: %s", hostname, e)
        return []

    result = []
    for address in addresses:
        ip = ipaddress.ip_address(address)
        if ip.version != 4 or ip.is_loopback:
            continue
        if address not in result:
            result.append(address)

    return result
