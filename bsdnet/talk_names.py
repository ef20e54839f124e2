"""Working out who is talking to whom, and on which machines."""

from __future__ import annotations

import os
import pwd
import socket
from dataclasses import dataclass

from .talkproto import AF_INET, NAME_SIZE, TALK_VERSION, TTY_SIZE, CtlMsg

_DELIMITERS = "@:!"


class NamesError(Exception):
    """The local or remote party could not be determined."""


class UsageError(NamesError):
    """The command was given the wrong arguments."""

    def __init__(self):
        super().__init__("usage: talk person [ttyname]")


@dataclass
class TalkTarget:
    """Both parties of a conversation."""

    my_name: str
    his_name: str
    my_machine: str
    his_machine: str
    his_tty: str = ""

    def message(self):
        """Return the control message template for this conversation."""
        return CtlMsg(
            vers=TALK_VERSION,
            id_num=0,
            addr=(AF_INET, "0.0.0.0", 0),
            ctl_addr=(AF_INET, "0.0.0.0", 0),
            pid=os.getpid(),
            l_name=self.my_name[: NAME_SIZE - 1],
            r_name=self.his_name[: NAME_SIZE - 1],
            r_tty=self.his_tty[: TTY_SIZE - 1],
        )


def parse_person(spec):
    """Split ``user``, ``user@host``, ``host!user`` or ``host:user``.

    Returns (user, host); host is None for a local user.
    """
    cut = next((i for i, ch in enumerate(spec) if ch in _DELIMITERS), None)
    if cut is None:
        return spec, None
    head, tail = spec[:cut], spec[cut + 1 :]
    if spec[cut] == "@":
        return head, tail
    return tail, head


def _my_login():
    try:
        return os.getlogin()
    except OSError:
        pass
    try:
        return pwd.getpwuid(os.getuid()).pw_name
    except KeyError:
        raise NamesError("you don't exist. Go away") from None


def get_names(argv):
    """Determine both users and machines from ``person [ttyname]``."""
    args = list(argv)
    if not args:
        raise UsageError()
    if not os.isatty(0):
        raise NamesError("standard input must be a tty, not a pipe or a file")
    my_name = _my_login()
    his_name, his_machine = parse_person(args[0])
    if his_machine is None:
        my_machine = his_machine = "localhost"
    else:
        my_machine = socket.gethostname()
    his_tty = args[1] if len(args) > 1 else ""
    return TalkTarget(
        my_name=my_name,
        his_name=his_name,
        my_machine=my_machine,
        his_machine=his_machine,
        his_tty=his_tty,
    )