"""Handling of control requests received by the talk daemon."""

from __future__ import annotations

import logging
import os
import socket

import psutil

from .talkd_announce import announce
from .talkd_print import format_request, format_response
from .talkd_table import InvitationTable
from .talkproto import AF_INET, TALK_VERSION, Answer, CtlResponse, RequestType

_PATH_DEV = "/dev/"

log = logging.getLogger("talkd")


def _logged_in_sessions():
    """Yield (user, terminal line) for every user logged in on a terminal."""
    for user in psutil.users():
        if user.terminal:
            yield user.name, user.terminal


def _reverse_lookup(ip):
    return socket.gethostbyaddr(ip)[0]


def _is_printable(text):
    return all(0x20 <= ord(ch) <= 0x7E for ch in text)


def find_user(name, tty, sessions):
    """Find the terminal of a logged-in user.

    ``sessions`` yields (user, line) pairs.  When ``tty`` is empty the
    writable terminal used most recently is chosen.  Returns the answer
    together with the terminal that was settled on.
    """
    status = Answer.NOT_HERE
    best = 0
    for user, line in sessions:
        if user != name:
            continue
        if not tty or best:
            if not best:
                status = Answer.PERMISSION_DENIED
            try:
                info = os.stat(_PATH_DEV + line)
            except OSError:
                info = None
            if info is not None:
                if not info.st_mode & 0o20:
                    continue
                atime = int(info.st_atime)
                if atime > best:
                    best = atime
                    tty = line
                    status = Answer.SUCCESS
                    continue
        if line == tty:
            status = Answer.SUCCESS
            break
    return status, tty


class RequestProcessor:
    """Answers control requests against an invitation table."""

    def __init__(
        self,
        table=None,
        hostname=None,
        sessions=_logged_in_sessions,
        resolve_host=_reverse_lookup,
        announcer=announce,
        debug=False,
    ):
        self.table = table if table is not None else InvitationTable(debug=debug)
        self.hostname = hostname if hostname is not None else socket.gethostname()
        self.sessions = sessions
        self.resolve_host = resolve_host
        self.announcer = announcer
        self.debug = debug

    def process(self, msg):
        """Handle one request and return the response to send back."""
        response = CtlResponse(type=msg.type, answer=Answer.SUCCESS, id_num=0)
        if msg.vers != TALK_VERSION:
            log.warning("bad protocol version %d", msg.vers)
            response.answer = Answer.BADVERSION
            return response
        if msg.addr[0] != AF_INET:
            log.warning("bad address, family %d", msg.addr[0])
            response.answer = Answer.BADADDR
            return response
        if msg.ctl_addr[0] != AF_INET:
            log.warning("bad control address, family %d", msg.ctl_addr[0])
            response.answer = Answer.BADCTLADDR
            return response
        if not _is_printable(msg.l_name):
            log.info("illegal user name. Aborting")
            response.answer = Answer.FAILED
            return response
        if self.debug:
            log.debug(format_request("process_request", msg))

        if msg.type == RequestType.ANNOUNCE:
            self.do_announce(msg, response)
        elif msg.type == RequestType.LEAVE_INVITE:
            stored = self.table.find_request(msg)
            if stored is not None:
                response.id_num = stored.id_num
                response.answer = Answer.SUCCESS
            else:
                response.id_num = self.table.insert(msg)
        elif msg.type == RequestType.LOOK_UP:
            stored = self.table.find_match(msg)
            if stored is not None:
                response.id_num = stored.id_num
                response.addr = stored.addr
                response.answer = Answer.SUCCESS
            else:
                response.answer = Answer.NOT_HERE
        elif msg.type == RequestType.DELETE:
            response.answer = self.table.delete_invite(msg.id_num)
        else:
            response.answer = Answer.UNKNOWN_REQUEST

        if self.debug:
            log.debug(format_response("process_request", response))
        return response

    def do_announce(self, msg, response):
        """Ring the callee's terminal, or recognise a repeated announcement."""
        result, tty = find_user(msg.r_name, msg.r_tty, self.sessions())
        msg.r_tty = tty
        if result != Answer.SUCCESS:
            response.answer = result
            return
        try:
            remote_machine = self.resolve_host(msg.ctl_addr[1])
        except OSError:
            response.answer = Answer.MACHINE_UNKNOWN
            return
        stored = self.table.find_request(msg)
        if stored is None:
            response.id_num = self.table.insert(msg)
            response.answer = self.announcer(msg, remote_machine, self.hostname)
            return
        if msg.id_num > stored.id_num:
            # An explicit re-announce: renumber to avoid duplicates and ring again.
            stored.id_num = self.table.new_id()
            response.id_num = stored.id_num
            response.answer = self.announcer(msg, remote_machine, self.hostname)
        else:
            response.id_num = stored.id_num
            response.answer = Answer.SUCCESS