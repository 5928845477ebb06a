"""Reply correlation for senders whose I/O completes on another thread."""

from __future__ import annotations

import threading
from typing import Optional


class PendingSend:
    """Single-use completion signal for one outstanding send.

    The sending thread blocks in :meth:`wait`; an event thread satisfies the
    signal with either :meth:`_complete` (a reply arrived) or :meth:`_fail`
    (the transport reported an error). Only the first completion counts.
    A deadline that elapses in :meth:`wait` leaves the signal unsatisfied,
    and the caller is expected to discard this instance.
    """

    def __init__(self):
        self.response: Optional[bytes] = None
        self.error: Optional[BaseException] = None
        self._event = threading.Event()

    def poll(self) -> bool:
        """Return True if the send has completed, one way or another."""
        return self._event.is_set()

    def wait(self, timeout: Optional[float]) -> bool:
        """Block until completion. Returns False if *timeout* seconds
        elapse first.
        """
        return self._event.wait(timeout)

    def _complete(self, response: bytes) -> bool:
        if self._event.is_set():
            return False
        self.response = response
        self._event.set()
        return True

    def _fail(self, error: BaseException) -> bool:
        if self._event.is_set():
            return False
        self.error = error
        self._event.set()
        return True


class Correlator:
    """Holds the one send outstanding on a sender instance.

    There is no application-level message identifier to match on: whatever
    arrives while a send is outstanding is that send's reply. This is only
    sound because a sender never has more than one send in flight; a reply
    that arrives after its send timed out is discarded if nothing is
    waiting, and misattributed if the next send is already outstanding.
    """

    def __init__(self):
        self.pending: Optional[PendingSend] = None

    def open(self) -> PendingSend:
        pending = PendingSend()
        self.pending = pending
        return pending

    def close(self) -> None:
        self.pending = None

    def deliver(self, response: bytes) -> bool:
        """Complete the outstanding send with *response*. Returns False if
        nothing was waiting for it.
        """
        pending = self.pending
        if pending is None:
            return False
        return pending._complete(response)

    def fail(self, error: BaseException) -> bool:
        pending = self.pending
        if pending is None:
            return False
        return pending._fail(error)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
