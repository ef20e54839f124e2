"""The daemon's table of pending talk invitations."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace

from .talkd_print import format_request
from .talkproto import MAX_LIFE, Answer, CtlMsg, RequestType

MAX_ID = 16000

log = logging.getLogger("talkd")


@dataclass(eq=False)
class _Entry:
    request: CtlMsg
    time: int


class InvitationTable:
    """Invitations kept newest first, with the time each was last touched."""

    def __init__(self, clock=time.monotonic, debug=False):
        self._clock = clock
        self._entries: list[_Entry] = []
        self._current_id = 0
        self.debug = debug

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return (entry.request for entry in self._entries)

    def _now(self) -> int:
        return int(self._clock())

    def _trace(self, label, msg):
        if self.debug:
            log.debug(format_request(label, msg))

    def _remove(self, entry):
        self._trace("delete", entry.request)
        self._entries.remove(entry)

    def _live_entries(self, now):
        for entry in list(self._entries):
            if entry.time - now > MAX_LIFE:
                self._trace("deleting expired entry", entry.request)
                self._remove(entry)
                continue
            self._trace("", entry.request)
            yield entry

    def find_match(self, request):
        """Return a waiting invitation from the party this request looks for."""
        now = self._now()
        self._trace("find_match", request)
        for entry in self._live_entries(now):
            stored = entry.request
            if (
                request.l_name == stored.r_name
                and request.r_name == stored.l_name
                and stored.type == RequestType.LEAVE_INVITE
            ):
                return stored
        return None

    def find_request(self, request):
        """Return an identical earlier request, refreshing its time."""
        now = self._now()
        self._trace("find_request", request)
        for entry in self._live_entries(now):
            stored = entry.request
            if (
                request.r_name == stored.r_name
                and request.l_name == stored.l_name
                and request.type == stored.type
                and request.pid == stored.pid
            ):
                entry.time = now
                return stored
        return None

    def insert(self, request):
        """Give the request a fresh id, store a copy first, and return the id."""
        now = self._now()
        request.id_num = self.new_id()
        self._entries.insert(0, _Entry(replace(request), now))
        return request.id_num

    def new_id(self):
        """Return the next non-zero sequence number below MAX_ID."""
        self._current_id = (self._current_id + 1) % MAX_ID
        if self._current_id == 0:
            self._current_id = 1
        return self._current_id

    def delete_invite(self, id_num):
        """Remove the invitation with this id; answer SUCCESS or NOT_HERE."""
        if self.debug:
            log.debug("delete_invite(%d)", id_num)
        for entry in self._entries:
            if entry.request.id_num == id_num:
                self._remove(entry)
                return Answer.SUCCESS
            self._trace("", entry.request)
        return Answer.NOT_HERE