"""
Test suite for listener configuration and the command line front end.
"""

import unittest
from unittest.mock import patch

from gamerest import cli
from gamerest.config import ListenerConfig, parse_port_list
from gamerest.errors import ConfigError
from gamerest.ports import PortChooseMethod


class TestListenerConfig(unittest.TestCase):
    """Test cases for ListenerConfig validation."""

    def test_defaults_are_valid(self):
        config = ListenerConfig().validate()
        self.assertIs(config.port_choose_method, PortChooseMethod.FIXED_OR_INCREMENT)
        self.assertEqual(config.default_port, 43000)
        self.assertEqual(config.increment_limit, 1000)
        self.assertTrue(config.bind_local_addresses)

    def test_list_method_needs_candidates(self):
        """Test FIRST_FREE_IN_LIST without candidates is rejected."""
        with self.assertRaises(ConfigError):
            ListenerConfig(PortChooseMethod.FIRST_FREE_IN_LIST).validate()

    def test_list_method_rejects_bad_ports(self):
        with self.assertRaises(ConfigError):
            ListenerConfig(PortChooseMethod.FIRST_FREE_IN_LIST, candidate_ports=(80, 70000)).validate()

    def test_fixed_method_rejects_bad_default(self):
        with self.assertRaises(ConfigError):
            ListenerConfig(PortChooseMethod.FIXED_OR_FAIL, default_port=0).validate()

    def test_increment_method_needs_positive_limit(self):
        with self.assertRaises(ConfigError):
            ListenerConfig(PortChooseMethod.FIXED_OR_INCREMENT, increment_limit=0).validate()

    def test_ephemeral_ignores_default_port(self):
        """Test EPHEMERAL has no required fields."""
        ListenerConfig(PortChooseMethod.EPHEMERAL, default_port=0).validate()

    def test_unknown_method_is_rejected(self):
        with self.assertRaises(ConfigError):
            ListenerConfig("random").validate()

    def test_config_is_immutable(self):
        config = ListenerConfig()
        with self.assertRaises(AttributeError):
            config.default_port = 1


class TestFromEnviron(unittest.TestCase):
    """Test cases for ListenerConfig.from_environ."""

    def test_empty_environment_gives_defaults(self):
        self.assertEqual(ListenerConfig.from_environ({}), ListenerConfig())

    def test_reads_every_variable(self):
        config = ListenerConfig.from_environ({
            "GAMEREST_PORT_METHOD": "list",
            "GAMEREST_PORTS": "43000, 43001,43002",
            "GAMEREST_PORT": "44000",
            "GAMEREST_INCREMENT_LIMIT": "20",
            "GAMEREST_BIND_LAN": "false",
        })

        self.assertIs(config.port_choose_method, PortChooseMethod.FIRST_FREE_IN_LIST)
        self.assertEqual(config.candidate_ports, (43000, 43001, 43002))
        self.assertEqual(config.default_port, 44000)
        self.assertEqual(config.increment_limit, 20)
        self.assertFalse(config.bind_local_addresses)

    def test_bad_method(self):
        with self.assertRaises(ConfigError):
            ListenerConfig.from_environ({"GAMEREST_PORT_METHOD": "sometimes"})

    def test_bad_number(self):
        with self.assertRaises(ConfigError):
            ListenerConfig.from_environ({"GAMEREST_PORT": "forty"})

    def test_parse_port_list(self):
        self.assertEqual(parse_port_list("1,2, 3,"), (1, 2, 3))
        with self.assertRaises(ConfigError):
            parse_port_list("1,two")


class TestCommandLine(unittest.TestCase):
    """Test cases for building a config from command line arguments."""

    def parse(self, *argv):
        return cli.build_parser().parse_args(list(argv))

    def test_arguments_override_environment(self):
        args = self.parse("serve", "--method", "list", "--ports", "45000,45001", "--no-lan")

        with patch.dict("os.environ", {"GAMEREST_PORT": "44000"}, clear=True):
            config = cli.build_config(args)

        self.assertIs(config.port_choose_method, PortChooseMethod.FIRST_FREE_IN_LIST)
        self.assertEqual(config.candidate_ports, (45000, 45001))
        self.assertEqual(config.default_port, 44000)
        self.assertFalse(config.bind_local_addresses)

    def test_invalid_combination_exits_with_error(self):
        """Test main() reports a bad config instead of raising."""
        with patch.dict("os.environ", {}, clear=True):
            self.assertEqual(cli.main(["serve", "--method", "list"]), 2)

    def test_probe_rejects_non_integer_score(self):
        self.assertEqual(cli.main(["probe", "set-score", "lots"]), 2)


if __name__ == "__main__":
    unittest.main()
