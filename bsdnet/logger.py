"""Send messages to the system log, locally or to a remote syslog host."""

from __future__ import annotations

import getopt
import getpass
import os
import re
import socket
import sys
import syslog
import time
from contextlib import ExitStack

BUF_SIZE = 1024
LOG_PRIMASK = 0x07
LOG_FACMASK = 0x03F8
LOG_PID = syslog.LOG_PID
LOG_PERROR = getattr(syslog, "LOG_PERROR", 0x20)
DEFAULT_PRIORITY = (1 << 3) | 5  # user.notice
DEFAULT_SERVICE = "syslog"
FALLBACK_PORT = "514"

USAGE = (
    "usage: logger [-46Ais] [-f file] [-h host] [-P port] [-p pri] [-t tag]\n"
    "              [-S addr:port] [message ...]"
)

PRIORITY_NAMES = {
    "alert": 1,
    "crit": 2,
    "debug": 7,
    "emerg": 0,
    "err": 3,
    "error": 3,
    "info": 6,
    "none": 0x10,
    "notice": 5,
    "panic": 0,
    "warn": 4,
    "warning": 4,
}

FACILITY_NAMES = {
    "auth": 4 << 3,
    "authpriv": 10 << 3,
    "console": 14 << 3,
    "cron": 9 << 3,
    "daemon": 3 << 3,
    "ftp": 11 << 3,
    "kern": 0,
    "lpr": 6 << 3,
    "mail": 2 << 3,
    "mark": 24 << 3,
    "news": 7 << 3,
    "ntp": 12 << 3,
    "security": 13 << 3,
    "syslog": 5 << 3,
    "user": 1 << 3,
    "uucp": 8 << 3,
    "local0": 16 << 3,
    "local1": 17 << 3,
    "local2": 18 << 3,
    "local3": 19 << 3,
    "local4": 20 << 3,
    "local5": 21 << 3,
    "local6": 22 << 3,
    "local7": 23 << 3,
}

_LEADING_DIGITS = re.compile(r"[0-9]+")


class LoggerError(Exception):
    """A fatal problem that stops the logger."""


class _UsageError(LoggerError):
    pass


def _warn(text):
    print(f"logger: {text}", file=sys.stderr)


def decode(name, table):
    """Turn a symbolic or numeric name into its value; None if unknown."""
    match = _LEADING_DIGITS.match(name)
    if match:
        return int(match.group())
    return table.get(name.lower())


def parse_priority(text):
    """Encode ``facility.level`` or ``level`` as a syslog priority."""
    fac_name, dot, level_name = text.partition(".")
    if dot:
        fac = decode(fac_name, FACILITY_NAMES)
        if fac is None:
            raise LoggerError(f"unknown facility name: {fac_name}")
    else:
        fac = 0
        level_name = text
    lev = decode(level_name, PRIORITY_NAMES)
    if lev is None:
        raise LoggerError(f"unknown priority name: {text}")
    return (lev & LOG_PRIMASK) | (fac & LOG_FACMASK)


def chunk_arguments(args, limit=BUF_SIZE):
    """Join words into messages that fit a buffer of ``limit`` bytes.

    A word too long for the buffer on its own is sent by itself.
    """
    end = limit - 2
    buf = ""
    for arg in args:
        if len(buf) + len(arg) > end and buf:
            yield buf
            buf = ""
        if len(arg) > limit - 1:
            yield arg
        else:
            if buf:
                buf += " "
            buf += arg
    if buf:
        yield buf


def parse_source(src):
    """Split a source address ``host:port``, ``[v6addr]:port`` or ``:port``.

    Returns (host, service); either may be None.
    """
    if src.startswith("["):
        close = src.find("]")
        if close < 0:
            raise LoggerError('"]" not found in src addr')
        inner, tail = src[1:close], src[close + 1 :]
    else:
        inner, tail = "", src
    host = service = None
    if inner:
        host = inner
        if ":" in tail:
            service = tail.split(":", 1)[1] or None
    elif tail:
        head, sep, after = tail.partition(":")
        host = head or None
        if sep:
            service = after or None
    return host, service


def format_remote_message(pri, timestamp, hostname, tag, message):
    """Build the line sent to a remote syslog server."""
    return f"<{pri}>{timestamp} {hostname} {tag}: {message}"


def _timestamp(now=None):
    return time.ctime(time.time() if now is None else now)[4:19]


def _resolve_sources(src, family):
    host, service = parse_source(src)
    try:
        infos = socket.getaddrinfo(
            host, service, family, socket.SOCK_DGRAM, 0, socket.AI_PASSIVE
        )
    except socket.gaierror as exc:
        raise LoggerError(f"{exc.strerror}: {src}") from None
    sources = {}
    for fam, _type, _proto, _canon, addr in infos:
        if fam in (socket.AF_INET, socket.AF_INET6):
            sources.setdefault(fam, addr)
    return sources


def _resolve_destination(dst, service, family):
    try:
        return socket.getaddrinfo(dst, service, family, socket.SOCK_DGRAM)
    except socket.gaierror as exc:
        if exc.errno != socket.EAI_SERVICE:
            raise LoggerError(f"{exc.strerror}: {dst}") from None
    _warn(f"{service}/udp: unknown service")
    try:
        return socket.getaddrinfo(dst, FALLBACK_PORT, family, socket.SOCK_DGRAM)
    except socket.gaierror as exc:
        raise LoggerError(f"{exc.strerror}: {dst}") from None


class _RemoteSink:
    """Datagram sockets towards a remote syslog server."""

    def __init__(self, src, dst, service, family, send_to_all):
        self.send_to_all = send_to_all
        self.endpoints = []
        sources = _resolve_sources(src, family) if src is not None else {}
        try:
            for fam, stype, proto, _canon, addr in _resolve_destination(dst, service, family):
                try:
                    sock = socket.socket(fam, stype, proto)
                except OSError:
                    continue
                self.endpoints.append((sock, addr))
                if src is not None and fam not in sources:
                    raise LoggerError("address family mismatch")
                if fam in sources:
                    try:
                        sock.bind(sources[fam])
                    except OSError as exc:
                        raise LoggerError(f"bind: {exc.strerror}") from None
            if not self.endpoints:
                raise LoggerError("socket")
        except BaseException:
            self.close()
            raise

    def send(self, line):
        data = line.encode("utf-8", "replace")
        sent = -1
        error = None
        for sock, addr in self.endpoints:
            try:
                sent = sock.sendto(data, addr)
                error = None
            except OSError as exc:
                sent = -1
                error = exc
            if sent == len(data) and not self.send_to_all:
                break
        if sent != len(data):
            if sent == -1:
                _warn(f"sendto: {error.strerror if error else 'failed'}")
            else:
                _warn(f"sendto: short send - {sent} bytes")

    def close(self):
        for sock, _addr in self.endpoints:
            sock.close()
        self.endpoints = []


def _login_name():
    try:
        return os.getlogin()
    except OSError:
        return getpass.getuser()


def _lines(stream):
    return iter(lambda: stream.readline(BUF_SIZE - 1), "")


def _parse_options(args):
    try:
        opts, rest = getopt.getopt(args, "46Af:H:h:iP:p:S:st:")
    except getopt.GetoptError:
        raise _UsageError(USAGE) from None
    settings = {
        "family": socket.AF_UNSPEC,
        "send_to_all": False,
        "file": None,
        "hostname": None,
        "host": None,
        "service": DEFAULT_SERVICE,
        "priority": None,
        "logflags": 0,
        "src": None,
        "tag": None,
    }
    for opt, value in opts:
        if opt == "-4":
            settings["family"] = socket.AF_INET
        elif opt == "-6":
            settings["family"] = socket.AF_INET6
        elif opt == "-A":
            settings["send_to_all"] = True
        elif opt == "-f":
            settings["file"] = value
        elif opt == "-H":
            settings["hostname"] = value
        elif opt == "-h":
            settings["host"] = value
        elif opt == "-i":
            settings["logflags"] |= LOG_PID
        elif opt == "-P":
            settings["service"] = value
        elif opt == "-p":
            settings["priority"] = value
        elif opt == "-s":
            settings["logflags"] |= LOG_PERROR
        elif opt == "-S":
            settings["src"] = value
        elif opt == "-t":
            settings["tag"] = value
    return settings, rest


def _run(args):
    os.environ.pop("TZ", None)
    if hasattr(time, "tzset"):
        time.tzset()
    opts, messages = _parse_options(args)

    with ExitStack() as stack:
        stream = sys.stdin
        if opts["file"] is not None:
            try:
                stream = stack.enter_context(open(opts["file"], encoding="utf-8", errors="replace"))
            except OSError as exc:
                raise LoggerError(f"{opts['file']}: {exc.strerror}") from None

        remote = None
        if opts["host"]:
            remote = _RemoteSink(
                opts["src"], opts["host"], opts["service"], opts["family"], opts["send_to_all"]
            )
            stack.callback(remote.close)
        elif opts["src"]:
            raise LoggerError("-h option is missing.")

        pri = DEFAULT_PRIORITY
        if opts["priority"] is not None:
            pri = parse_priority(opts["priority"])
        tag = opts["tag"] if opts["tag"] is not None else _login_name()

        if remote is None:
            syslog.openlog(ident=tag, logoption=opts["logflags"], facility=0)
        hostname = opts["hostname"]
        if hostname is None:
            hostname = socket.gethostname().split(".", 1)[0]

        def emit(message, timestamp):
            if remote is None:
                syslog.syslog(pri, message)
            else:
                remote.send(format_remote_message(pri, timestamp, hostname, tag, message))

        if messages:
            timestamp = _timestamp()
            for message in chunk_arguments(messages):
                emit(message, timestamp)
        else:
            for line in _lines(stream):
                emit(line, _timestamp())
    return 0


def main(argv=None):
    """Log the arguments, or each line of input, to the system log."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        return _run(args)
    except _UsageError as exc:
        print(exc, file=sys.stderr)
        return 1
    except LoggerError as exc:
        _warn(str(exc))
        return 1


if __name__ == "__main__":
    sys.exit(main())