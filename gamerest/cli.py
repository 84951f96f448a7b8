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
Command Line Interface

    gamerest serve    run the demo game with the API server embedded
    gamerest probe    talk to the API of a running game
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace

import requests

from .client import APIClient, find_server
from .config import ListenerConfig, parse_port_list
from .errors import ConfigError
from .game import DemoGame
from .ports import PortChooseMethod

log = logging.getLogger(__name__)


def build_config(args) -> ListenerConfig:
    """Layer command line options over the GAMEREST_* environment."""
    config = ListenerConfig.from_environ()
    changes = {}

    if args.method:
        changes["port_choose_method"] = PortChooseMethod(args.method)
    if args.port is not None:
        changes["default_port"] = args.port
    if args.ports:
        changes["candidate_ports"] = parse_port_list(args.ports)
    if args.increment_limit is not None:
        changes["increment_limit"] = args.increment_limit
    if args.no_lan:
        changes["bind_local_addresses"] = False

    return replace(config, **changes).validate()


def serve_command(args) -> int:
    game = DemoGame(build_config(args), framerate=args.fps, headless=not args.window)

    try:
        game.run(max_frames=args.frames)
    except KeyboardInterrupt:
        print("Interrupted, shutting down...")

    return 0


def probe_command(args) -> int:
    if args.ports:
        port = find_server(parse_port_list(args.ports), args.host)
        if port is None:
            print("No game API found on {} ports {}".format(args.host, args.ports), file=sys.stderr)
            return 1
    else:
        port = args.port

    score = None
    if args.action == "set-score":
        try:
            score = int(args.value)
        except (TypeError, ValueError):
            print("set-score needs an integer value", file=sys.stderr)
            return 2

    client = APIClient(port, args.host)

    try:
        if args.action == "status":
            result = client.status()
        elif args.action == "score":
            result = {"score": client.get_score()}
        elif args.action == "set-score":
            result = client.set_score(score)
        elif args.action == "ping":
            result = client.ping(args.value or "")
        else:
            result = {"privateAddresses": client.addresses()}
    except requests.exceptions.RequestException as e:
        print("Request failed: {}".format(e), file=sys.stderr)
        return 1

    if isinstance(result, str):
        print(result)
    else:
        print(json.dumps(result, indent=2))

    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="gamerest", description="Embedded REST API for games.")
    ap.add_argument("--log-level", default="INFO",
                    help="Logging level (default: INFO)")

    sub = ap.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the demo game with the API server")
    serve.add_argument("--method", choices=[m.value for m in PortChooseMethod],
                       help="How to choose the server port (default: increment)")
    serve.add_argument("--port", type=int,
                       help="Default port (default: 43000)")
    serve.add_argument("--ports", type=str,
                       help="Comma-separated candidate ports for --method list")
    serve.add_argument("--increment-limit", type=int,
                       help="Ports to try above the default for --method increment")
    serve.add_argument("--no-lan", action="store_true",
                       help="Only listen on localhost")
    serve.add_argument("--fps", type=int, default=60,
                       help="Frame rate cap of the demo game")
    serve.add_argument("--frames", type=int,
                       help="Quit after this many frames")
    serve.add_argument("--window", action="store_true",
                       help="Open a real window instead of running headless")
    serve.set_defaults(func=serve_command)

    probe = sub.add_parser("probe", help="Query a running game API")
    probe.add_argument("--host", default="localhost")
    probe.add_argument("--port", type=int, default=43000)
    probe.add_argument("--ports", type=str,
                       help="Comma-separated ports to search for a running server")
    probe.add_argument("action", choices=["status", "score", "set-score", "ping", "address"])
    probe.add_argument("value", nargs="?",
                       help="Score for set-score, text for ping")
    probe.set_defaults(func=probe_command)

    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args)
    except ConfigError as e:
        log.error("Invalid configuration: %s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
