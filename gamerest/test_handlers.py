"""
Test suite for the route handlers

Requests go through EmbeddedAPIServer.process_request, which is what the
accept loop calls, without opening any sockets.
"""

import json
import unittest
from unittest.mock import MagicMock, patch

from gamerest.clock import FrameClock
from gamerest.protocol import IncomingRequest, PlayerScore
from gamerest.server import EmbeddedAPIServer
from gamerest.state import GameState


class HandlerTestCase(unittest.TestCase):

    def setUp(self):
        self.pygame_clock = MagicMock()
        self.pygame_clock.tick.return_value = 20
        self.clock = FrameClock(self.pygame_clock)
        self.state = GameState(score=7)
        self.server = EmbeddedAPIServer(self.state, self.clock, addresses=lambda: ["192.168.1.20", "10.0.0.5"])

    def request(self, verb, path, body=b"", encoding="utf-8"):
        return self.server.process_request(IncomingRequest(verb, path, body, encoding=encoding))


class TestStatus(HandlerTestCase):

    def test_has_documented_fields(self):
        response = self.request("GET", "/status")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content_type, "application/json")
        data = json.loads(response.body)
        self.assertEqual(set(data), {"fps", "platform", "sessionLengthSeconds"})
        self.assertGreaterEqual(data["sessionLengthSeconds"], 0)
        self.assertIsInstance(data["platform"], str)

    def test_reads_clock_on_every_call(self):
        """Test the status is not cached between requests."""
        self.assertEqual(json.loads(self.request("GET", "/status").body)["fps"], 0.0)

        self.clock.tick()
        self.assertEqual(json.loads(self.request("GET", "/status").body)["fps"], 50.0)

    def test_post_is_not_found(self):
        self.assertEqual(self.request("POST", "/status").status_code, 404)


class TestPing(HandlerTestCase):

    def test_echoes_body(self):
        response = self.request("POST", "/ping", b"hello")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.body, b"hello")

    def test_uses_declared_encoding(self):
        response = self.request("POST", "/ping", "café".encode("latin-1"), encoding="latin-1")
        self.assertEqual(response.body.decode("utf-8"), "café")

    def test_empty_body_is_not_found(self):
        """Test nothing to echo means nothing to return."""
        self.assertEqual(self.request("POST", "/ping", b"").status_code, 404)


class TestScore(HandlerTestCase):

    def test_get(self):
        response = self.request("GET", "/score")
        self.assertEqual(json.loads(response.body), {"score": 7})

    def test_post_then_get(self):
        response = self.request("POST", "/score", b'{"score": 42}')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.body, b"Score updated to 42")
        self.assertEqual(self.state.score, 42)
        self.assertEqual(json.loads(self.request("GET", "/score").body), {"score": 42})

    def test_malformed_json_keeps_score(self):
        response = self.request("POST", "/score", b'{"score": ')

        self.assertEqual(response.status_code, 500)
        self.assertTrue(response.body)
        self.assertEqual(json.loads(response.body)["error"], "PayloadError")
        self.assertEqual(self.state.score, 7)

    def test_missing_field_keeps_score(self):
        """Test a parseable payload without a score is rejected, not zeroed."""
        response = self.request("POST", "/score", b'{"points": 3}')

        self.assertEqual(response.status_code, 500)
        self.assertEqual(self.state.score, 7)

    def test_non_integer_score_is_rejected(self):
        for body in (b'{"score": "3"}', b'{"score": 1.5}', b'{"score": true}', b"[1]"):
            self.assertEqual(self.request("POST", "/score", body).status_code, 500)
        self.assertEqual(self.state.score, 7)

    def test_score_round_trip(self):
        for value in (0, -12, 2 ** 40):
            self.assertEqual(PlayerScore.from_json(PlayerScore(value).to_json()).score, value)


class TestAddress(HandlerTestCase):

    def test_lists_addresses(self):
        response = self.request("GET", "/address")
        self.assertEqual(json.loads(response.body), {"privateAddresses": ["192.168.1.20", "10.0.0.5"]})


class TestCommandsAndMisses(HandlerTestCase):

    def test_nested_route_placeholder(self):
        response = self.request("PUT", "/commands/settimeofday/0800")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.body.decode("utf-8"),
            "Route with multiple forward slashes detected! It was /commands/settimeofday/0800",
        )

    def test_unknown_path(self):
        response = self.request("GET", "/nope")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.body, b"")

    def test_handler_exception_becomes_500(self):
        """Test any handler failure is answered, never raised."""
        with patch("gamerest.handlers.GameHealthCheck", side_effect=RuntimeError("boom")):
            response = self.request("GET", "/status")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(json.loads(response.body), {"error": "RuntimeError", "message": "boom"})

    def test_requests_after_failure_still_work(self):
        self.request("POST", "/score", b"garbage")
        self.assertEqual(self.request("GET", "/score").status_code, 200)


if __name__ == "__main__":
    unittest.main()
