"""Signal-driven request flags for the hammertalk daemon.

Python runs signal handlers on the main thread between bytecodes, so the
handlers here do nothing but a single attribute store. The controller
wakes up through the wakeup fd that the interpreter writes to on every
signal, then drains the flags from its own loop.
"""

import enum
import select
import signal
import socket
from typing import NamedTuple, Optional


class Request(enum.Enum):
    START = "start"
    STOP = "stop"
    SHUTDOWN = "shutdown"


SIGNAL_REQUESTS = {
    signal.SIGUSR1: Request.START,
    signal.SIGUSR2: Request.STOP,
    signal.SIGTERM: Request.SHUTDOWN,
    signal.SIGINT: Request.SHUTDOWN,
}


class Drained(NamedTuple):
    start: bool
    stop: bool
    shutdown: bool

    def __bool__(self) -> bool:
        return self.start or self.stop or self.shutdown


class SignalFlags:
    """Latches for start/stop/shutdown requests.

    ``raise_flag`` is safe to call from a signal handler. ``drain`` and
    ``wait`` must only be called from the controller loop.
    """

    def __init__(self):
        self._start = False
        self._stop = False
        self._shutdown = False
        self._wake_r: Optional[socket.socket] = None
        self._wake_w: Optional[socket.socket] = None
        self._previous_handlers = {}
        self._previous_wakeup_fd = -1

    def raise_flag(self, request: Request) -> None:
        """Set the latch for ``request``. One store, no locks."""
        if request is Request.START:
            self._start = True
        elif request is Request.STOP:
            self._stop = True
        elif request is Request.SHUTDOWN:
            self._shutdown = True

    def _handle_signal(self, signum, frame) -> None:
        self.raise_flag(SIGNAL_REQUESTS[signum])

    def drain(self) -> Drained:
        """Return which latches were set since the last drain and clear them.

        A latch is only cleared after it has been seen set, so a signal
        landing between the read and the clear is coalesced with the one
        already observed rather than lost.
        """
        start = self._start
        if start:
            self._start = False
        stop = self._stop
        if stop:
            self._stop = False
        shutdown = self._shutdown
        if shutdown:
            self._shutdown = False
        return Drained(start=start, stop=stop, shutdown=shutdown)

    def discard_requests(self) -> None:
        """Drop pending start/stop requests. Shutdown stays latched."""
        self._start = False
        self._stop = False

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown

    def wait(self, timeout: float) -> None:
        """Block until a signal arrives or ``timeout`` seconds pass."""
        if self._start or self._stop or self._shutdown:
            return
        if self._wake_r is None:
            select.select([], [], [], timeout)
            return
        try:
            ready, _, _ = select.select([self._wake_r], [], [], timeout)
        except InterruptedError:
            return
        if ready:
            try:
                self._wake_r.recv(4096)
            except BlockingIOError:
                pass  # Another wake already consumed the bytes

    def install(self) -> None:
        """Install handlers for SIGUSR1/SIGUSR2/SIGTERM/SIGINT.

        Must be called from the main thread.
        """
        self._wake_r, self._wake_w = socket.socketpair()
        self._wake_r.setblocking(False)
        self._wake_w.setblocking(False)
        self._previous_wakeup_fd = signal.set_wakeup_fd(
            self._wake_w.fileno(), warn_on_full_buffer=False
        )
        for signum in SIGNAL_REQUESTS:
            self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)

    def uninstall(self) -> None:
        """Restore the handlers that were active before ``install``."""
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()
        if self._wake_w is not None:
            signal.set_wakeup_fd(self._previous_wakeup_fd)
            self._wake_w.close()
            self._wake_r.close()
            self._wake_r = self._wake_w = None
