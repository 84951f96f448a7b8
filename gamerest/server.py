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
Embedded API Server

This module runs the HTTP API inside the game process. One background thread
accepts connections on localhost and on every LAN address of the machine and
hands each request to the router. Requests are handled one at a time under a
single lock: the server is a single worker, throughput is not a goal.
"""

from __future__ import annotations

import enum
import logging
import selectors
import socket
import threading
from http.server import BaseHTTPRequestHandler
from typing import Callable, Optional
from urllib.parse import urlparse

from .clock import FrameClock
from .config import ListenerConfig
from .errors import ListenerClosed, StartupError
from .handlers import HandlerContext
from .network import list_local_addresses
from .ports import UNSET_PORT, choose_port
from .protocol import IncomingRequest, OutgoingResponse, charset_of
from .router import route
from .state import GameState

log = logging.getLogger(__name__)

LOCALHOST = "localhost"

# Seconds a client may take to send its request once connected.
REQUEST_READ_TIMEOUT = 10.0

# Seconds stop() waits for the accept thread to wind down.
STOP_JOIN_TIMEOUT = 1.0


class ServerState(enum.Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    LISTENING = "listening"
    STOPPING = "stopping"


class Listener(object):
    """
    Listening sockets for a set of hosts sharing one port.

    accept() waits on all of them at once. close() may be called from any
    thread; it wakes a blocked accept(), which then raises ListenerClosed.
    """

    def __init__(self, hosts, port: int):
        self.hosts = list(hosts)
        self.port = port

        self._sockets: list[socket.socket] = []
        self._selector: Optional[selectors.BaseSelector] = None
        self._wake_r: Optional[socket.socket] = None
        self._wake_w: Optional[socket.socket] = None

        self._lock = threading.Lock()
        self._closed = False
        self._accepting = False
        self._released = False

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> None:
        """
        Bind and listen on every host.

        Raises:
            StartupError: A host could not be bound. Nothing stays open.
        """
        self._selector = selectors.DefaultSelector()
        self._wake_r, self._wake_w = socket.socketpair()
        self._wake_r.setblocking(False)
        self._selector.register(self._wake_r, selectors.EVENT_READ)

        for host in self.hosts:
            try:
                sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
                self._sockets.append(sock)
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind((host, self.port))
                sock.listen(socket.SOMAXCONN)
                sock.setblocking(False)
                self._selector.register(sock, selectors.EVENT_READ, host)
            except OSError as e:
                self.close()
                raise StartupError("Could not listen on {}:{}: {}".format(host, self.port, e)) from e

    def accept(self) -> tuple[socket.socket, tuple]:
        """
        Block until a client connects.

        Raises:
            ListenerClosed: The listener was closed before or while waiting.
        """
        with self._lock:
            if self._closed:
                raise ListenerClosed()
            self._accepting = True

        try:
            while True:
                try:
                    events = self._selector.select()
                except (OSError, ValueError):
                    if self._closed:
                        raise ListenerClosed()
                    raise

                for key, _mask in events:
                    if key.fileobj is self._wake_r or self._closed:
                        raise ListenerClosed()

                    try:
                        conn, addr = key.fileobj.accept()
                    except BlockingIOError:
                        # The client gave up between select and accept.
                        continue
                    except OSError:
                        if self._closed:
                            raise ListenerClosed()
                        raise

                    conn.setblocking(True)
                    return conn, addr
        finally:
            with self._lock:
                self._accepting = False
                release = self._closed
            if release:
                self._release()

    def close(self) -> None:
        """Stop listening. Calling it again does nothing."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            accepting = self._accepting

        for sock in self._sockets:
            sock.close()

        if accepting:
            try:
                self._wake_w.send(b"\0")
            except OSError:
                # accept() already returned and released the wake-up pair.
                pass
        else:
            self._release()

    def _release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True

        if self._selector is not None:
            self._selector.close()
        for sock in (self._wake_r, self._wake_w):
            if sock is not None:
                sock.close()


class _APIRequestHandler(BaseHTTPRequestHandler):
    """Turns one HTTP exchange into an IncomingRequest / OutgoingResponse pair."""

    protocol_version = "HTTP/1.1"
    server_version = "gamerest/1.0"
    timeout = REQUEST_READ_TIMEOUT

    def __init__(self, api_server, *args, **kwargs):
        self.api_server = api_server
        super(_APIRequestHandler, self).__init__(*args, **kwargs)

    def _read_request(self) -> IncomingRequest:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length > 0 else b""

        return IncomingRequest(
            verb=self.command,
            path=urlparse(self.path).path,
            body=body,
            headers=dict(self.headers.items()),
            encoding=charset_of(self.headers.get("Content-Type")),
        )

    def _dispatch(self):
        try:
            request = self._read_request()
        except Exception as e:
            log.error("[API] Could not read request for %s: %s", self.path, e)
            response = OutgoingResponse.server_error(e)
        else:
            response = self.api_server.process_request(request)

        self._send(response)

    def __getattr__(self, name):
        # handle_one_request() looks up do_<VERB>; every verb goes to the router.
        if name.startswith("do_"):
            return self._dispatch
        raise AttributeError(name)

    def _send(self, response: OutgoingResponse):
        self.send_response(response.status_code)
        if response.content_type:
            self.send_header("Content-Type", response.content_type)
        self.send_header("Content-Length", str(len(response.body)))
        self.send_header("Connection", "close")
        self.end_headers()
        if response.body and self.command != "HEAD":
            self.wfile.write(response.body)

    def log_message(self, format, *args):
        log.debug("[API] %s - %s", self.address_string(), format % args)


class EmbeddedAPIServer(object):
    """
    HTTP API server living inside the game.

    Only one accept loop runs per instance. start() while it runs does
    nothing; stop() is safe to call at any time, from any thread, any number
    of times.
    """

    def __init__(
        self,
        state: GameState,
        clock: FrameClock,
        config: Optional[ListenerConfig] = None,
        addresses: Callable[[], list[str]] = list_local_addresses,
    ):
        self.config = (config or ListenerConfig()).validate()
        self.context = HandlerContext(state=state, clock=clock, addresses=addresses)

        self.port = UNSET_PORT
        self.prefixes: list[str] = []
        self.internal_ips: list[str] = []

        # Read by the accept thread, cleared by stop() from any thread.
        self._running = False

        self._listener: Optional[Listener] = None
        self._accept_thread: Optional[threading.Thread] = None
        self._state = ServerState.STOPPED

        self._lifecycle_lock = threading.RLock()
        self._request_lock = threading.Lock()

    @property
    def state(self) -> ServerState:
        return self._state

    def is_running(self) -> bool:
        """Check if the server is accepting requests."""
        return self._running and self._state is ServerState.LISTENING

    def get_url(self) -> str:
        """Get the localhost URL of the server."""
        return "http://{}:{}/".format(LOCALHOST, self.port)

    def start(self) -> bool:
        """
        Start listening, unless an accept loop is already active.

        Returns:
            bool: True if the server is listening after the call.
        """
        with self._lifecycle_lock:
            thread = self._accept_thread
            if self._listener is not None and thread is not None and thread.is_alive():
                return True

            self._state = ServerState.STARTING

            try:
                listener = self._open_listener()
            except Exception as e:
                log.error("[API] Game API server didn't start. Error: %s", e)
                self._running = False
                self.port = UNSET_PORT
                self.prefixes = []
                self.internal_ips = []
                self._state = ServerState.STOPPED
                return False

            self._listener = listener
            self._running = True
            self._accept_thread = threading.Thread(
                target=self._main_loop,
                args=(listener,),
                name="gamerest-accept",
                daemon=True,
            )
            self._state = ServerState.LISTENING
            self._accept_thread.start()

        log.info("[API] Starting game API server on %s", self.get_url())
        for prefix in self.prefixes[1:]:
            log.info("[API] Also listening on %s", prefix)

        return True

    def _open_listener(self) -> Listener:
        port = choose_port(self.config)
        if port == UNSET_PORT:
            raise StartupError("No free port among the configured candidates")

        internal_ips = list(self.context.addresses()) if self.config.bind_local_addresses else []
        hosts = [LOCALHOST] + internal_ips

        listener = Listener(hosts, port)
        listener.open()

        self.port = port
        self.internal_ips = internal_ips
        self.prefixes = ["http://{}:{}/".format(host, port) for host in hosts]
        return listener

    def stop(self) -> None:
        """Stop the server. A request already being handled runs to completion."""
        # Clear the flag first so a connection accepted right now is dropped.
        self._running = False

        with self._lifecycle_lock:
            listener = self._listener
            thread = self._accept_thread

            if listener is None:
                self._state = ServerState.STOPPED
                return

            self._state = ServerState.STOPPING
            listener.close()
            self._listener = None

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=STOP_JOIN_TIMEOUT)
            if thread.is_alive():
                log.warning("[API] Accept thread is still finishing a request")

        with self._lifecycle_lock:
            if self._listener is None:
                self._state = ServerState.STOPPED

        log.info("[API] Game API server stopped")

    def _main_loop(self, listener: Listener) -> None:
        """Accept connections until the listener is closed."""
        while self._running:
            try:
                conn, addr = listener.accept()
            except ListenerClosed:
                return
            except Exception as e:
                log.error("[API] Game API server encountered an error. Error: %s", e)
                continue

            with self._request_lock:
                # stop() may have run while accept() was blocked.
                if self._running and not listener.closed:
                    self._handle_connection(conn, addr)
                else:
                    conn.close()

    def _handle_connection(self, conn: socket.socket, addr) -> None:
        try:
            _APIRequestHandler(self, conn, addr, self)
        except Exception as e:
            log.error("[API] Connection from %s failed: %s", addr, e)
        finally:
            try:
                conn.shutdown(socket.SHUT_WR)
            except OSError:
                # The client is already gone.
                pass
            conn.close()

    def process_request(self, request: IncomingRequest) -> OutgoingResponse:
        """
        Route a request and build its response.

        Never raises: handler failures become a 500 carrying the error.
        """
        log.debug("[API] Received a game API request: %s %s", request.verb, request.path)

        try:
            handler = route(request.verb, request.path)
            body = handler(request, self.context) if handler is not None else ""

            if body and body.strip():
                return OutgoingResponse.ok(body)

            return OutgoingResponse.not_found()

        except Exception as e:
            log.error(
                "[API] The server encountered an error while processing a request. "
                "Attempted API path: %s Error: %s",
                request.path,
                e,
            )
            return OutgoingResponse.server_error(e)
