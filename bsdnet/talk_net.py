"""Sockets used by the talk client: the control channel to the daemons and
the stream socket the conversation itself runs over."""

from __future__ import annotations

import errno
import select
import socket
from dataclasses import replace

from .talkproto import TALK_VERSION, CtlResponse

CTL_WAIT = 2
IFACE_PORT = 60000
_MAX_PORT = 65535
_RESPONSE_SIZE = len(CtlResponse().pack())


class TalkNetError(Exception):
    """A network operation of the talk client failed."""


def format_addr(addr):
    """Describe an IPv4 socket address ``(family, host, port)`` for debugging."""
    family, host, port = addr
    raw = int.from_bytes(socket.inet_aton(host), "big")
    zero = "0 " * 8
    return f"addr = {raw:x}, port = {port:o}, family = {family:o} zero = {zero}"


def _bind_scanning(sock, host, port):
    """Bind ``sock`` to ``host``, moving up from ``port`` while it is in use."""
    while True:
        try:
            sock.bind((host, port))
            return
        except OSError as exc:
            if exc.errno != errno.EADDRINUSE or port >= _MAX_PORT:
                raise
            port += 1


def _connect_scanning(sock, host, port):
    while True:
        try:
            sock.connect((host, port))
            return
        except OSError as exc:
            if exc.errno != errno.EADDRINUSE or port >= _MAX_PORT:
                raise
            port += 1


def find_interface(dst):
    """Return the local address used to route packets to ``dst``.

    Raises OSError when no route can be found.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        _bind_scanning(sock, "0.0.0.0", IFACE_PORT)
        _connect_scanning(sock, dst, IFACE_PORT)
        return sock.getsockname()[0]


def resolve_daemon_port():
    """Return the UDP port of the ntalk service."""
    try:
        return socket.getservbyname("ntalk", "udp")
    except OSError:
        raise TalkNetError("ntalk/udp: service is not registered") from None


def open_stream_socket(addr):
    """Open a TCP socket bound to ``addr`` on a port the system chooses."""
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    except OSError as exc:
        raise TalkNetError("Bad socket") from exc
    try:
        sock.bind((addr, 0))
    except OSError as exc:
        sock.close()
        raise TalkNetError("Binding local socket") from exc
    try:
        sock.getsockname()
    except OSError as exc:
        sock.close()
        raise TalkNetError("Bad address for socket") from exc
    return sock


class ControlChannel:
    """A datagram socket for request/response exchanges with talk daemons."""

    def __init__(self, my_addr, daemon_port, wait=CTL_WAIT):
        self.daemon_port = daemon_port
        self.wait = wait
        try:
            self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as exc:
            raise TalkNetError("Bad socket") from exc
        try:
            self._sock.bind((my_addr, 0))
        except OSError as exc:
            self._sock.close()
            raise TalkNetError("Couldn't bind to control socket") from exc
        try:
            self.address = self._sock.getsockname()
        except OSError as exc:
            self._sock.close()
            raise TalkNetError("Bad address for ctl socket") from exc

    @property
    def closed(self):
        """True once the channel has been closed."""
        return self._sock.fileno() == -1

    def _ready(self, timeout):
        readable, _, _ = select.select([self._sock], [], [], timeout)
        return bool(readable)

    def _send(self, data, daemon):
        while True:
            try:
                sent = self._sock.sendto(data, daemon)
            except InterruptedError:
                continue
            except OSError as exc:
                raise TalkNetError("Error on write to talk daemon") from exc
            if sent != len(data):
                raise TalkNetError("Error on write to talk daemon")
            return

    def _receive(self):
        while True:
            try:
                data = self._sock.recv(_RESPONSE_SIZE)
            except InterruptedError:
                continue
            except OSError as exc:
                raise TalkNetError("Error on read from talk daemon") from exc
            if len(data) < _RESPONSE_SIZE:
                return None
            return CtlResponse.unpack(data)

    @staticmethod
    def _matches(response, request_type):
        return (
            response is not None
            and response.vers == TALK_VERSION
            and response.type == request_type
        )

    def transact(self, target, msg, request_type):
        """Send ``msg`` as ``request_type`` to the daemon at ``target``.

        The request is repeated until a response of the same type arrives;
        that response is returned. ``msg`` itself is left unchanged.
        """
        outgoing = replace(msg, type=request_type).pack()
        daemon = (target, self.daemon_port)
        while True:
            while True:
                self._send(outgoing, daemon)
                if self._ready(self.wait):
                    break
            while True:
                response = self._receive()
                if self._matches(response, request_type) or not self._ready(0):
                    break
            if self._matches(response, request_type):
                return response

    def close(self):
        """Close the control socket."""
        self._sock.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()