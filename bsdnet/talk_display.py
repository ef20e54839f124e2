"""A talk window: text placed character by character, with the edit keys
of the party typing into it."""

from __future__ import annotations

import sys

_NEWLINE = "\n"
_RETURN = "\r"
_CTRL_D = "\x04"
_BS = "\x08"
_DEL = "\x7f"
_CTRL_W = "\x17"
_CTRL_U = "\x15"
_FORMFEED = "\f"
_BELL = "\a"
_TAB = "\t"
_TABSIZE = 8


def _ring():
    sys.stdout.write("\a")
    sys.stdout.flush()


def _nothing(*_args):
    pass


class TalkWindow:
    """A scrolling text area of ``nlines`` by ``ncols`` with a cursor."""

    def __init__(
        self,
        nlines,
        ncols,
        kill=None,
        cerase=None,
        werase=None,
        local=False,
        peer=None,
        on_beep=_ring,
        on_bell=_ring,
        on_redraw=_nothing,
        on_refresh=_nothing,
    ):
        self.nlines = nlines
        self.ncols = ncols
        self.kill = kill
        self.cerase = cerase
        self.werase = werase
        self.local = local
        self.peer = peer
        self.on_beep = on_beep
        self.on_bell = on_bell
        self.on_redraw = on_redraw
        self.on_refresh = on_refresh
        self.line = 0
        self.col = 0
        self._rows = [self._blank() for _ in range(nlines)]

    def _blank(self):
        return [" "] * self.ncols

    @property
    def lines(self):
        """The window's rows as strings of full width."""
        return ["".join(row) for row in self._rows]

    def refresh(self):
        """Tell the owner the window has changed."""
        self.on_refresh(self)

    def move(self, line, col):
        """Place the cursor, keeping it inside the window."""
        self.line = min(max(line, 0), self.nlines - 1)
        self.col = min(max(col, 0), self.ncols - 1)

    def clear(self):
        """Blank the window and home the cursor."""
        self._rows = [self._blank() for _ in range(self.nlines)]
        self.line = self.col = 0

    def clrtoeol(self):
        """Blank from the cursor to the end of its line."""
        row = self._rows[self.line]
        row[self.col :] = [" "] * (self.ncols - self.col)

    def resize(self, nlines, ncols):
        """Change the size, keeping what fits."""
        rows = [(row + [" "] * ncols)[:ncols] for row in self._rows]
        rows = rows[-nlines:] if nlines <= len(rows) else rows
        while len(rows) < nlines:
            rows.append([" "] * ncols)
        self._rows = rows
        self.nlines, self.ncols = nlines, ncols
        self.move(self.line, self.col)

    def _next_line(self):
        self.col = 0
        if self.line >= self.nlines - 1:
            self._rows.pop(0)
            self._rows.append(self._blank())
        else:
            self.line += 1

    def _put(self, ch):
        self._rows[self.line][self.col] = ch
        self.col += 1
        if self.col >= self.ncols:
            self._next_line()

    def addch(self, ch):
        """Add one character at the cursor, as a terminal would."""
        if ch == _NEWLINE:
            self.clrtoeol()
            self._next_line()
        elif ch == _TAB:
            for _ in range(_TABSIZE - self.col % _TABSIZE):
                self._put(" ")
        else:
            self._put(ch)

    def addstr(self, text):
        """Add each character of ``text`` at the cursor."""
        for ch in text:
            self.addch(ch)

    def readwin(self, line, col):
        """Return the character at a position; the cursor does not move."""
        return self._rows[line][col]

    def _erase_char(self):
        self.move(self.line, max(self.col - 1, 0))
        line, col = self.line, self.col
        self.addch(" ")
        self.move(line, col)
        self.refresh()

    def _erase_word(self):
        endcol = self.col
        xcol = endcol - 1
        while xcol >= 0 and self.readwin(self.line, xcol) == " ":
            xcol -= 1
        while xcol >= 0 and self.readwin(self.line, xcol) != " ":
            xcol -= 1
        row = self._rows[self.line]
        row[xcol + 1 : endcol] = [" "] * (endcol - xcol - 1)
        self.move(self.line, xcol + 1)
        self.refresh()

    def _kill_line(self):
        self.move(self.line, 0)
        self.clrtoeol()
        self.refresh()

    def display(self, ch):
        """Show one typed or received character, acting on edit keys."""
        if ch == self.kill:
            self._kill_line()
        elif ch == self.cerase:
            self._erase_char()
        elif ch == self.werase:
            self._erase_word()
        elif ch in (_NEWLINE, _RETURN):
            self.addch(_NEWLINE)
            self.refresh()
        elif ch == _CTRL_D:
            if self.local:
                self.clear()
                self.refresh()
                if self.peer is not None:
                    self.peer.clear()
                    self.peer.refresh()
        elif ch in (_BS, _DEL):
            self._erase_char()
        elif ch == _CTRL_W:
            self._erase_word()
        elif ch == _CTRL_U:
            self._kill_line()
        elif ch == _FORMFEED:
            if self.local:
                self.on_redraw()
        elif ch == _BELL:
            self.on_bell()
        else:
            if ch.isprintable() or ch == _TAB:
                self.addch(ch)
            else:
                self.on_beep()
            self.refresh()