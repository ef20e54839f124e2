"""Ringing a local user's terminal to announce a talk request."""

from __future__ import annotations

import errno
import os
import select
import stat
import time
from datetime import datetime

from .talkproto import RING_WAIT, Answer

_PATH_DEV = "/dev/"
N_CHARS = 256

_CSTYLE = {"\r": "\\r", "\b": "\\b", "\a": "\\a", "\v": "\\v", "\f": "\\f"}


def _vis(text: str) -> str:
    """Make a user name safe to print, using C-style escapes."""
    out = []
    for index, ch in enumerate(text):
        code = ord(ch)
        if code > 0xFF:
            out.append(ch if ch.isprintable() else "?")
        elif 0x21 <= code <= 0x7E or ch in " \t\n":
            out.append("\\\\" if ch == "\\" else ch)
        elif ch in _CSTYLE:
            out.append(_CSTYLE[ch])
        elif code == 0:
            following = text[index + 1 : index + 2]
            out.append("\\000" if following and following in "01234567" else "\\0")
        else:
            piece = "\\"
            if code & 0x80:
                code &= 0x7F
                piece += "M"
            if code < 0x20 or code == 0x7F:
                piece += "^?" if code == 0x7F else "^" + chr(code + 0x40)
            else:
                piece += "-" + chr(code)
            out.append(piece)
    return "".join(out)


def build_announcement(hostname, user, remote_machine, when):
    """Return the blank-padded announcement block written to the terminal."""
    vis_user = _vis(user)
    lines = [
        " ",
        f"Message from Talk_Daemon@{hostname} at {when.hour}:{when.minute:02d} "
        f"on {when.year}/{when.month:02d}/{when.day:02d} ...",
        f"talk: connection requested by {vis_user}@{remote_machine}",
        f"talk: respond with:  talk {vis_user}@{remote_machine}",
        " ",
    ]
    lines = [line[: N_CHARS - 1] for line in lines]
    width = max(len(line) for line in lines) + 2
    return "\a\r\n" + "".join(line.ljust(width) + "\r\n" for line in lines)


def _write_tty(tty: str, data: bytes, timeout: float) -> None:
    if ".." in tty.split("/"):
        raise OSError(errno.EINVAL, f"bad tty name: {tty}")
    deadline = time.monotonic() + timeout
    fd = os.open(_PATH_DEV + tty, os.O_WRONLY | os.O_NONBLOCK | os.O_NOCTTY)
    try:
        view = memoryview(data)
        while view:
            try:
                written = os.write(fd, view)
            except BlockingIOError:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError(errno.ETIMEDOUT, f"{tty}: write timed out")
                select.select([], [fd], [], remaining)
                continue
            view = view[written:]
    finally:
        os.close(fd)


def announce(request, remote_machine, hostname):
    """Ring the requested terminal if it accepts messages; return an Answer."""
    full_tty = f"{_PATH_DEV}{request.r_tty}"[:31]
    try:
        mode = os.stat(full_tty).st_mode
    except OSError:
        return Answer.PERMISSION_DENIED
    if not mode & stat.S_IWGRP:
        return Answer.PERMISSION_DENIED
    text = build_announcement(hostname, request.l_name, remote_machine, datetime.now())
    try:
        _write_tty(request.r_tty, text.encode("latin-1", "replace"), RING_WAIT - 5)
    except OSError:
        return Answer.FAILED
    return Answer.SUCCESS