"""The split-screen display of a talk session: two windows and a rule."""

from __future__ import annotations

import curses
import os
import signal
import stat
import sys
import termios
import threading

from .talk_display import TalkWindow

CERASE = 0x7F
CKILL = 0x15
CWERASE = 0x17
_EDIT_CHARS = 3
_DEFAULT_VDISABLE = 0xFF


class ScreenError(Exception):
    """The terminal cannot be used for a talk session."""


def check_writeable(mode=None):
    """Make sure the caller's terminal accepts messages from others.

    ``mode`` is the terminal's file mode; when None it is read from the
    terminal on standard error. Returns the mode that was checked.
    """
    if mode is None:
        try:
            tty = os.ttyname(2)
        except OSError as exc:
            raise ScreenError(f"ttyname: {exc.strerror}") from None
        try:
            mode = os.stat(tty).st_mode
        except OSError as exc:
            raise ScreenError(f"{tty}: {exc.strerror}") from None
    if not mode & stat.S_IWGRP:
        raise ScreenError('The callee cannot write to this terminal, use "mesg y".')
    return mode


def _vdisable(fd):
    try:
        value = os.fpathconf(fd, "PC_VDISABLE")
    except (OSError, ValueError):
        return _DEFAULT_VDISABLE
    return value if value >= 0 else _DEFAULT_VDISABLE


def _control_char(value):
    return value[0] if isinstance(value, bytes) else int(value)


def _terminal_edit_chars(fd=0):
    """Return the terminal's (erase, kill, word erase) characters."""
    cc = termios.tcgetattr(fd)[6]
    cerase = _control_char(cc[termios.VERASE])
    kill = _control_char(cc[termios.VKILL])
    werase = _control_char(cc[termios.VWERASE])
    disabled = _vdisable(fd)
    if cerase == disabled:
        kill = CERASE
    if kill == disabled:
        kill = CKILL
    if werase == disabled:
        werase = CWERASE
    return chr(cerase), chr(kill), chr(werase)


def exchange_edit_chars(sock, mine=None):
    """Trade (erase, kill, word erase) characters with the other party.

    By agreement these are the first three characters each side sends.
    ``mine`` defaults to the local terminal's settings. Returns the peer's.
    """
    if mine is None:
        mine = _terminal_edit_chars()
    data = "".join(mine).encode("latin-1")
    try:
        sock.sendall(data)
    except OSError as exc:
        raise ScreenError("Lost the connection") from exc
    received = b""
    while len(received) < _EDIT_CHARS:
        try:
            chunk = sock.recv(_EDIT_CHARS - len(received))
        except OSError as exc:
            raise ScreenError("Lost the connection") from exc
        if not chunk:
            raise ScreenError("Lost the connection")
        received += chunk
    return tuple(chr(byte) for byte in received)


class _CursesTerminal:
    """Draws the windows on the real terminal through curses."""

    def __init__(self):
        self._scr = None

    def start(self):
        try:
            self._scr = curses.initscr()
        except curses.error as exc:
            raise ScreenError("Terminal type unset or lacking necessary features.") from exc
        self._scr.clear()
        self._scr.refresh()
        curses.noecho()
        curses.cbreak()

    def size(self):
        return self._scr.getmaxyx()

    def query_size(self):
        try:
            size = os.get_terminal_size(0)
        except OSError:
            return None
        return size.lines, size.columns

    def apply_size(self, rows, cols):
        curses.resizeterm(rows, cols)

    def draw(self, top, lines, cursor):
        for offset, text in enumerate(lines):
            try:
                self._scr.addstr(top + offset, 0, text)
            except curses.error:
                # Writing the bottom-right cell moves the cursor off screen.
                pass
        try:
            self._scr.move(top + cursor[0], cursor[1])
        except curses.error:
            pass
        self._scr.refresh()

    def separator(self, row, cols):
        try:
            self._scr.hline(row, 0, curses.ACS_HLINE, cols)
        except curses.error:
            pass
        self._scr.refresh()

    def beep(self):
        curses.beep()

    def redraw(self):
        self._scr.redrawwin()
        self._scr.refresh()

    def stop(self):
        curses.endwin()


class Screen:
    """Two talk windows, the caller's above and the peer's below a rule."""

    def __init__(self, terminal=None, handle_signals=True):
        self.terminal = terminal if terminal is not None else _CursesTerminal()
        self.handle_signals = handle_signals
        self.my_win = None
        self.his_win = None
        self.rows = 0
        self.cols = 0
        self.current_line = 0
        self.current_state = ""
        self.initialized = False
        self.resize_pending = False
        self.on_quit = None
        self._lock = threading.RLock()

    def init(self):
        """Start the terminal, build the windows and catch signals."""
        term = self.terminal
        term.start()
        self.initialized = True
        self.rows, self.cols = term.size()
        if self.handle_signals:
            signal.signal(signal.SIGINT, self._on_signal)
            if hasattr(signal, "SIGPIPE"):
                signal.signal(signal.SIGPIPE, self._on_signal)
            if hasattr(signal, "SIGWINCH"):
                signal.signal(signal.SIGWINCH, self._on_winch)
        common = dict(
            on_beep=term.beep,
            on_bell=term.beep,
            on_redraw=term.redraw,
            on_refresh=self._paint,
        )
        self.his_win = TalkWindow(self.rows // 2 - 1, self.cols, **common)
        self.my_win = TalkWindow(
            self.rows // 2, self.cols, local=True, peer=self.his_win, **common
        )
        term.separator(self.my_win.nlines, self.cols)
        self.current_state = "No connection yet"

    def _on_signal(self, _signo, _frame):
        self.message("Connection closing. Exiting")
        self.quit()

    def _on_winch(self, _signo, _frame):
        self.resize_pending = True

    def _paint(self, win):
        with self._lock:
            top = 0 if win is self.my_win else self.my_win.nlines + 1
            self.terminal.draw(top, win.lines, (win.line, win.col))

    def resize(self):
        """Fit the windows to a new terminal size; True if anything changed."""
        self.resize_pending = False
        size = self.terminal.query_size()
        if size is None or tuple(size) == (self.rows, self.cols):
            return False
        rows, cols = size
        with self._lock:
            self.terminal.apply_size(rows, cols)
            self.rows, self.cols = rows, cols
            self.my_win.resize(rows // 2, cols)
            self.his_win.resize(rows // 2 - 1, cols)
            self.terminal.separator(self.my_win.nlines, cols)
            self._paint(self.his_win)
            self._paint(self.my_win)
        return True

    def message(self, text):
        """Show a bracketed status line in the caller's window."""
        if not self.initialized:
            print(f"[{text}]", file=sys.stderr)
            return
        with self._lock:
            win = self.my_win
            win.move(self.current_line, 0)
            win.addstr(f"[{text}]\n")
            if self.current_line < win.nlines - 1:
                self.current_line += 1
            win.refresh()

    def quit(self):
        """Restore the terminal, run the quit hook and exit."""
        if self.initialized:
            with self._lock:
                win = self.his_win
                win.move(win.nlines - 1, 0)
                win.clrtoeol()
                win.refresh()
                self.terminal.stop()
                self.initialized = False
        if self.on_quit is not None:
            self.on_quit()
        raise SystemExit(0)