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
Request, response and payload types for the embedded API.

Payloads are flat JSON objects with fixed field names; there is no envelope.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Optional

from .errors import PayloadError

JSON_CONTENT_TYPE = "application/json"
DEFAULT_ENCODING = "utf-8"


def charset_of(content_type: Optional[str]) -> str:
    """Get the charset declared in a Content-Type header, utf-8 if none."""
    if not content_type:
        return DEFAULT_ENCODING

    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"')

    return DEFAULT_ENCODING


@dataclass(frozen=True)
class IncomingRequest:
    """A request as received. Never modified once built."""

    verb: str
    path: str
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    encoding: str = DEFAULT_ENCODING

    def text(self) -> str:
        """Decode the whole body using the request's declared encoding."""
        return self.body.decode(self.encoding)


@dataclass(frozen=True)
class OutgoingResponse:
    """The single response written back for a request."""

    status_code: int
    content_type: Optional[str] = None
    body: bytes = b""

    @classmethod
    def ok(cls, text: str) -> "OutgoingResponse":
        return cls(200, JSON_CONTENT_TYPE, text.encode("utf-8"))

    @classmethod
    def not_found(cls) -> "OutgoingResponse":
        return cls(404)

    @classmethod
    def server_error(cls, error: BaseException) -> "OutgoingResponse":
        return cls(500, JSON_CONTENT_TYPE, error_payload(error).encode("utf-8"))


def error_payload(error: BaseException) -> str:
    """Serialize an exception for a 500 response."""
    return json.dumps({"error": type(error).__name__, "message": str(error)})


@dataclass
class PlayerScore:
    score: int = 0

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, text: str) -> "PlayerScore":
        """
        Decode {"score": <int>}.

        Raises:
            PayloadError: The text is not JSON, not an object, or the score is
                missing or not an integer.
        """
        try:
            data = json.loads(text)
        except ValueError as e:
            raise PayloadError(f"Score payload is not valid JSON: {e}")

        if not isinstance(data, dict):
            raise PayloadError("Score payload must be a JSON object")

        score = data.get("score")
        if isinstance(score, bool) or not isinstance(score, int):
            raise PayloadError(f"Score payload needs an integer 'score', got {score!r}")

        return cls(score=score)


@dataclass
class GameHealthCheck:
    fps: float
    platform: str
    sessionLengthSeconds: float

    def to_json(self) -> str:
        return json.dumps(asdict(self))


@dataclass
class ServerInfo:
    privateAddresses: list[str] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(asdict(self))

