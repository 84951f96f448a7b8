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
Client for the embedded API, for tools that talk to a running game.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional

import requests

DEFAULT_TIMEOUT = 2.0


class APIClient(object):
    """Thin wrapper over requests for the game's routes."""

    def __init__(self, port: int, host: str = "localhost", timeout: float = DEFAULT_TIMEOUT):
        self.base_url = "http://{}:{}".format(host, port)
        self.timeout = timeout

    def _get(self, path: str) -> requests.Response:
        response = requests.get(self.base_url + path, timeout=self.timeout)
        response.raise_for_status()
        return response

    def _post(self, path: str, data: Any) -> requests.Response:
        response = requests.post(self.base_url + path, data=data, timeout=self.timeout)
        response.raise_for_status()
        return response

    def status(self) -> dict:
        return self._get("/status").json()

    def ping(self, text: str) -> str:
        return self._post("/ping", text.encode("utf-8")).text

    def get_score(self) -> int:
        return self._get("/score").json()["score"]

    def set_score(self, score: int) -> str:
        """Returns the server's confirmation text."""
        return self._post("/score", json.dumps({"score": score})).text

    def addresses(self) -> list[str]:
        return self._get("/address").json()["privateAddresses"]

    def command(self, path: str, method: str = "GET") -> str:
        """Call a route below /commands/."""
        url = "{}/commands/{}".format(self.base_url, path.lstrip("/"))
        response = requests.request(method, url, timeout=self.timeout)
        response.raise_for_status()
        return response.text

    def is_alive(self) -> bool:
        """Check if a game API answers on this address."""
        try:
            return requests.get(self.base_url + "/status", timeout=self.timeout).status_code == 200
        except requests.exceptions.RequestException:
            return False


def find_server(ports: Iterable[int], host: str = "localhost", timeout: float = 1.0) -> Optional[int]:
    """
    Look for a running game API among the published ports.

    Returns:
        The first port that answers /status, or None.
    """
    for port in ports:
        if APIClient(port, host, timeout).is_alive():
            return port
    return None
