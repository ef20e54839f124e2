"""Wire format of the talk daemon control protocol (version 1)."""

from __future__ import annotations

import socket
import struct
from dataclasses import dataclass
from enum import IntEnum

TALK_VERSION = 1
NAME_SIZE = 12
TTY_SIZE = 16
MAX_LIFE = 60
RING_WAIT = 30

# Address family value carried in the old-style socket address on the wire.
AF_INET = 2

_ADDR = struct.Struct("!HH4s8x")
_MSG = struct.Struct("!BBBxI16s16si12s12s16s")
_RESPONSE = struct.Struct("!BBBxI16s")

DEFAULT_ADDR = (AF_INET, "0.0.0.0", 0)


class RequestType(IntEnum):
    """Kinds of control requests."""

    LEAVE_INVITE = 0
    LOOK_UP = 1
    DELETE = 2
    ANNOUNCE = 3


class Answer(IntEnum):
    """Answers a daemon gives to a request."""

    SUCCESS = 0
    NOT_HERE = 1
    FAILED = 2
    MACHINE_UNKNOWN = 3
    PERMISSION_DENIED = 4
    UNKNOWN_REQUEST = 5
    BADVERSION = 6
    BADADDR = 7
    BADCTLADDR = 8


def _as_enum(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _pack_addr(addr) -> bytes:
    family, host, port = addr
    return _ADDR.pack(family & 0xFFFF, port & 0xFFFF, socket.inet_aton(host))


def _unpack_addr(data: bytes):
    family, port, raw = _ADDR.unpack(data)
    return (family, socket.inet_ntoa(raw), port)


def _pack_name(text: str, size: int) -> bytes:
    return text.encode("latin-1", "replace")[: size - 1]


def _unpack_name(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("latin-1")


@dataclass
class CtlMsg:
    """A control request; numbers are kept in host order."""

    type: int = RequestType.LEAVE_INVITE
    vers: int = TALK_VERSION
    answer: int = 0
    id_num: int = 0
    addr: tuple = DEFAULT_ADDR
    ctl_addr: tuple = DEFAULT_ADDR
    pid: int = 0
    l_name: str = ""
    r_name: str = ""
    r_tty: str = ""

    def pack(self) -> bytes:
        """Encode the request in network byte order."""
        return _MSG.pack(
            self.vers & 0xFF,
            int(self.type) & 0xFF,
            int(self.answer) & 0xFF,
            self.id_num & 0xFFFFFFFF,
            _pack_addr(self.addr),
            _pack_addr(self.ctl_addr),
            self.pid,
            _pack_name(self.l_name, NAME_SIZE),
            _pack_name(self.r_name, NAME_SIZE),
            _pack_name(self.r_tty, TTY_SIZE),
        )

    @classmethod
    def unpack(cls, data: bytes) -> "CtlMsg":
        """Decode a request; raises ValueError on a datagram of the wrong size."""
        if len(data) != _MSG.size:
            raise ValueError(f"control message must be {_MSG.size} bytes, got {len(data)}")
        vers, mtype, answer, id_num, addr, ctl_addr, pid, l_name, r_name, r_tty = _MSG.unpack(data)
        return cls(
            type=_as_enum(RequestType, mtype),
            vers=vers,
            answer=_as_enum(Answer, answer),
            id_num=id_num,
            addr=_unpack_addr(addr),
            ctl_addr=_unpack_addr(ctl_addr),
            pid=pid,
            l_name=_unpack_name(l_name),
            r_name=_unpack_name(r_name),
            r_tty=_unpack_name(r_tty),
        )


@dataclass
class CtlResponse:
    """A daemon's reply; numbers are kept in host order."""

    type: int = RequestType.LEAVE_INVITE
    answer: int = Answer.SUCCESS
    id_num: int = 0
    addr: tuple = DEFAULT_ADDR
    vers: int = TALK_VERSION

    def pack(self) -> bytes:
        """Encode the response in network byte order."""
        return _RESPONSE.pack(
            self.vers & 0xFF,
            int(self.type) & 0xFF,
            int(self.answer) & 0xFF,
            self.id_num & 0xFFFFFFFF,
            _pack_addr(self.addr),
        )

    @classmethod
    def unpack(cls, data: bytes) -> "CtlResponse":
        """Decode a response; raises ValueError on a datagram of the wrong size."""
        if len(data) != _RESPONSE.size:
            raise ValueError(
                f"control response must be {_RESPONSE.size} bytes, got {len(data)}"
            )
        vers, rtype, answer, id_num, addr = _RESPONSE.unpack(data)
        return cls(
            type=_as_enum(RequestType, rtype),
            answer=_as_enum(Answer, answer),
            id_num=id_num,
            addr=_unpack_addr(addr),
            vers=vers,
        )