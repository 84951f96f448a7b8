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
Listener configuration
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

from .errors import ConfigError
from .ports import PortChooseMethod

DEFAULT_PORT = 43000
DEFAULT_INCREMENT_LIMIT = 1000

ENV_METHOD = "GAMEREST_PORT_METHOD"
ENV_PORT = "GAMEREST_PORT"
ENV_PORTS = "GAMEREST_PORTS"
ENV_INCREMENT_LIMIT = "GAMEREST_INCREMENT_LIMIT"
ENV_BIND_LAN = "GAMEREST_BIND_LAN"


def parse_port_list(text: str) -> tuple[int, ...]:
    """Parse "43000,43001, 43010" into a tuple of ports."""
    try:
        return tuple(int(part) for part in text.split(",") if part.strip())
    except ValueError:
        raise ConfigError(f"Invalid port list: {text!r}")


def _parse_bool(text: str) -> bool:
    return text.strip().lower() not in ("", "0", "false", "no", "off")


@dataclass(frozen=True)
class ListenerConfig:
    """
    How the embedded API server picks its port and which addresses it binds.

    The candidate ports should be published in the game's modding
    documentation so other apps know where to find the API.
    """

    port_choose_method: PortChooseMethod = PortChooseMethod.FIXED_OR_INCREMENT
    default_port: int = DEFAULT_PORT
    candidate_ports: tuple[int, ...] = field(default_factory=tuple)
    increment_limit: int = DEFAULT_INCREMENT_LIMIT
    bind_local_addresses: bool = True  # Also listen on every LAN address

    def validate(self) -> "ListenerConfig":
        """Raise ConfigError if the method and its fields don't agree."""
        method = self.port_choose_method

        if not isinstance(method, PortChooseMethod):
            raise ConfigError(f"Unknown port choose method: {method!r}")

        if method in (PortChooseMethod.FIXED_OR_FAIL, PortChooseMethod.FIXED_OR_INCREMENT):
            if not 0 < self.default_port < 65536:
                raise ConfigError(f"Default port out of range: {self.default_port}")

        if method is PortChooseMethod.FIXED_OR_INCREMENT and self.increment_limit < 1:
            raise ConfigError("increment_limit must be at least 1")

        if method is PortChooseMethod.FIRST_FREE_IN_LIST:
            if not self.candidate_ports:
                raise ConfigError("FIRST_FREE_IN_LIST needs at least one candidate port")
            bad = [p for p in self.candidate_ports if not 0 < p < 65536]
            if bad:
                raise ConfigError(f"Candidate ports out of range: {bad}")

        return self

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "ListenerConfig":
        """
        Build a config from GAMEREST_* environment variables.

        Unset variables keep their defaults. The result is validated.
        """
        if environ is None:
            environ = os.environ

        config = cls()
        changes = {}

        if environ.get(ENV_METHOD):
            try:
                changes["port_choose_method"] = PortChooseMethod(environ[ENV_METHOD].strip().lower())
            except ValueError:
                raise ConfigError(f"Unknown port choose method: {environ[ENV_METHOD]!r}")

        try:
            if environ.get(ENV_PORT):
                changes["default_port"] = int(environ[ENV_PORT])
            if environ.get(ENV_INCREMENT_LIMIT):
                changes["increment_limit"] = int(environ[ENV_INCREMENT_LIMIT])
        except ValueError as e:
            raise ConfigError(f"Invalid number in environment: {e}")

        if environ.get(ENV_PORTS):
            changes["candidate_ports"] = parse_port_list(environ[ENV_PORTS])

        if ENV_BIND_LAN in environ:
            changes["bind_local_addresses"] = _parse_bool(environ[ENV_BIND_LAN])

        return replace(config, **changes).validate()
