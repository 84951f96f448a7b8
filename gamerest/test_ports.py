"""
Test suite for port selection

This module tests:
- Fixed, list, increment and ephemeral port picking
- Listing bound ports through psutil, and the probing fallback
- Dispatch on the configured port choose method
"""

import random
import socket
import sys
import unittest
from unittest.mock import patch

import psutil

from gamerest import ports
from gamerest.config import ListenerConfig
from gamerest.ports import PortChooseMethod


class TestPickFirstFreeInList(unittest.TestCase):
    """Test cases for pick_first_free_in_list."""

    def test_first_unbound_candidate_wins(self):
        """Test the scan keeps the order of the candidates."""
        self.assertEqual(ports.pick_first_free_in_list([5000, 5001, 5002], bound={5000}), 5001)

    def test_all_bound_returns_unset(self):
        """Test 0 comes back when every candidate is taken."""
        self.assertEqual(ports.pick_first_free_in_list([5000, 5001], bound={5000, 5001, 80}), ports.UNSET_PORT)

    def test_empty_candidates_returns_unset(self):
        """Test an empty list yields 0."""
        self.assertEqual(ports.pick_first_free_in_list([], bound=set()), ports.UNSET_PORT)

    def test_result_is_candidate_or_unset(self):
        """Test the result never falls outside the candidates."""
        rng = random.Random(1234)
        for _ in range(200):
            candidates = rng.sample(range(40000, 40050), rng.randint(0, 10))
            bound = set(rng.sample(range(40000, 40050), rng.randint(0, 40)))

            port = ports.pick_first_free_in_list(candidates, bound=bound)

            free = [p for p in candidates if p not in bound]
            if free:
                self.assertEqual(port, free[0])
            else:
                self.assertEqual(port, ports.UNSET_PORT)

    def test_queries_os_when_bound_not_given(self):
        """Test bound ports are looked up once when not supplied."""
        with patch.object(ports, "bound_ports", return_value={6000}) as bound_ports:
            self.assertEqual(ports.pick_first_free_in_list([6000, 6001]), 6001)
        bound_ports.assert_called_once_with([6000, 6001])


class TestPickIncrementRange(unittest.TestCase):
    """Test cases for pick_increment_range."""

    def test_matches_explicit_list(self):
        """Test the range behaves like the equivalent candidate list."""
        bound = {7000, 7001, 7003}
        for start, count in [(7000, 1), (7000, 2), (7000, 3), (7000, 10), (6998, 5), (7004, 0)]:
            expected = ports.pick_first_free_in_list(list(range(start, start + count)), bound=bound)
            self.assertEqual(ports.pick_increment_range(start, count, bound=bound), expected)

    def test_negative_count_returns_unset(self):
        """Test a negative count yields no candidates."""
        self.assertEqual(ports.pick_increment_range(7000, -3, bound=set()), ports.UNSET_PORT)


class TestOSQueries(unittest.TestCase):
    """Test cases that talk to the operating system."""

    def setUp(self):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(1)
        self.port = self.sock.getsockname()[1]

    def tearDown(self):
        self.sock.close()

    @unittest.skipIf(sys.platform == "darwin", "psutil needs root to list connections on macOS")
    def test_bound_ports_contains_our_listener(self):
        """Test a listening socket shows up as bound."""
        self.assertIn(self.port, ports.bound_ports())

    def test_listening_port_is_skipped(self):
        """Test a port in use is never picked."""
        self.assertNotEqual(ports.pick_first_free_in_list([self.port]), self.port)

    def test_access_denied_falls_back_to_probing(self):
        """Test probing is used when psutil may not list connections."""
        with patch.object(ports.psutil, "net_connections", side_effect=psutil.AccessDenied()):
            bound = ports.bound_ports([self.port])
        self.assertEqual(bound, {self.port})

    def test_ephemeral_port_is_usable(self):
        """Test the OS-assigned port can be bound right after."""
        port = ports.pick_ephemeral()
        self.assertGreater(port, 0)
        self.assertLess(port, 65536)

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.bind(("127.0.0.1", port))
        finally:
            sock.close()


class TestChoosePort(unittest.TestCase):
    """Test cases for choose_port dispatch."""

    def test_fixed_returns_default_verbatim(self):
        config = ListenerConfig(PortChooseMethod.FIXED_OR_FAIL, default_port=43210)
        with patch.object(ports, "bound_ports") as bound_ports:
            self.assertEqual(ports.choose_port(config), 43210)
        bound_ports.assert_not_called()

    def test_list_method(self):
        config = ListenerConfig(PortChooseMethod.FIRST_FREE_IN_LIST, candidate_ports=(43000, 43005))
        with patch.object(ports, "bound_ports", return_value={43000}):
            self.assertEqual(ports.choose_port(config), 43005)

    def test_increment_method(self):
        config = ListenerConfig(PortChooseMethod.FIXED_OR_INCREMENT, default_port=43000, increment_limit=5)
        with patch.object(ports, "bound_ports", return_value={43000, 43001}):
            self.assertEqual(ports.choose_port(config), 43002)

    def test_ephemeral_method(self):
        config = ListenerConfig(PortChooseMethod.EPHEMERAL)
        with patch.object(ports, "pick_ephemeral", return_value=51515):
            self.assertEqual(ports.choose_port(config), 51515)


if __name__ == "__main__":
    unittest.main()
