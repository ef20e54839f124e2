"""Periodic status messages shown while a connection is being made."""

from __future__ import annotations

import threading

MSG_INTERVAL = 4


class StatusTicker:
    """Shows the current state now and then every ``interval`` seconds."""

    def __init__(self, message, interval=MSG_INTERVAL, state=""):
        self.message = message
        self.interval = interval
        self.current_state = state
        self._thread = None
        self._stopped = None

    def show(self):
        """Display the current state once."""
        self.message(self.current_state)

    def start(self):
        """Display the state and keep repeating it until stopped."""
        self.stop()
        self.show()
        stopped = threading.Event()

        def run():
            while not stopped.wait(self.interval):
                self.show()

        self._stopped = stopped
        self._thread = threading.Thread(target=run, daemon=True)
        self._thread.start()

    def stop(self):
        """Stop the repeated messages."""
        if self._thread is None:
            return
        self._stopped.set()
        if self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None
        self._stopped = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc_info):
        self.stop()