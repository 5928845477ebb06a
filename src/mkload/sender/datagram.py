"""Connectionless (UDP) sender.

The payload is written verbatim to the target address, with no framing.
When the sender waits for responses, a background thread listens on the
same local address/port the datagrams are sent from, and any packet that
arrives while a send is outstanding is taken as that send's reply; the
typical target is an echo service used for round-trip timing.
"""

from __future__ import annotations

import errno
import logging
import selectors
import socket
import threading
from typing import Callable, ClassVar, FrozenSet, Optional, Tuple

from pydantic import Field

from .. import message as msg
from .base import Sender, SendTimeoutError, TransportError
from .config import HostPortConfiguration
from .pending import Correlator


logger = logging.getLogger(__name__)


class DatagramConfiguration(HostPortConfiguration):
    """Options for :class:`DatagramSender`.

    ``localAddress`` and ``localPort`` select the local endpoint used for
    both sending and receiving; the default is an ephemeral port on all
    interfaces. ``bufferSize`` is the largest reply that will be read.
    """

    schemes: ClassVar[FrozenSet[str]] = frozenset(("udp",))

    local_address: str = ""
    local_port: int = Field(default=0, ge=0, le=65535)
    buffer_size: int = Field(default=65535, gt=0)


class Receiver:
    """Background thread delivering events for one datagram socket.

    Three events are reported: *bound* is set once the thread is listening,
    *on_packet* is called with ``(data, address)`` for every datagram, and
    *on_error* is called with the exception for every receive failure,
    including a datagram longer than *buffer_size*.
    """

    def __init__(
        self,
        sock: socket.socket,
        buffer_size: int,
        on_packet: Callable[[bytes, Tuple], None],
        on_error: Callable[[OSError], None],
    ):
        self.socket = sock
        self.buffer_size = buffer_size
        self.on_packet = on_packet
        self.on_error = on_error

        self.bound = threading.Event()
        self.shutdown = False

        self._signal_rx, self._signal_tx = socket.socketpair()

        name = f"mkload.datagram.Receiver:{sock.getsockname()}"
        self.thread = threading.Thread(target=self.run, name=name, daemon=True)
        self.thread.start()

    def run(self) -> None:
        selector = selectors.DefaultSelector()
        selector.register(self.socket, selectors.EVENT_READ)
        selector.register(self._signal_rx, selectors.EVENT_READ)
        self.bound.set()

        try:
            while not self.shutdown:
                for key, _mask in selector.select():
                    if key.fileobj is self._signal_rx:
                        self._signal_rx.recv(64)
                        continue

                    try:
                        data, address = self.socket.recvfrom(self.buffer_size + 1)
                    except OSError as exc:
                        if self.shutdown:
                            break
                        self.on_error(exc)
                        continue

                    if len(data) > self.buffer_size:
                        self.on_error(OSError(
                            errno.EMSGSIZE,
                            f"datagram from {address} exceeds {self.buffer_size} bytes",
                        ))
                        continue

                    self.on_packet(data, address)
        finally:
            selector.close()

    def stop(self, timeout: float = 1.0) -> None:
        self.shutdown = True
        try:
            self._signal_tx.send(b"\0")
        except OSError:
            pass

        self.thread.join(timeout)
        self._signal_tx.close()
        self._signal_rx.close()


class DatagramSender(Sender):
    """Send each message as a single UDP datagram.

    :ivar address: The local (host, port) the socket is bound to.
    """

    configuration = DatagramConfiguration

    bind_timeout = 1.0

    def __init__(self, config: DatagramConfiguration):
        super().__init__(config)

        self.socket: Optional[socket.socket] = None
        self.address: Optional[Tuple] = None
        self.receiver: Optional[Receiver] = None

        self._destination: Optional[Tuple] = None
        self._replies = Correlator()

    def _init(self) -> None:
        config = self.config
        target = config.target

        try:
            found = socket.getaddrinfo(target.host, target.port, type=socket.SOCK_DGRAM)
        except socket.gaierror as exc:
            raise TransportError(f"cannot resolve {target}: {exc}") from exc

        family, _type, _proto, _canonical, destination = found[0]
        self._destination = destination

        self.socket = socket.socket(family, socket.SOCK_DGRAM)

        try:
            self.socket.bind((config.local_address, config.local_port))
        except OSError as exc:
            raise TransportError(
                f"cannot bind {config.local_address}:{config.local_port}: {exc}"
            ) from exc

        self.address = self.socket.getsockname()

        if config.wait_response:
            self.receiver = Receiver(
                self.socket, config.buffer_size, self._received, self._failed
            )
            if not self.receiver.bound.wait(self.bind_timeout):
                raise TransportError(f"receiver on {self.address} did not start")

    def _do_send(self, message, properties):
        data = msg.encode(message, self.config.encoding)

        if not self.config.wait_response:
            self.socket.sendto(data, self._destination)
            return None

        # The pending send is registered before the write so that a reply
        # racing back from a local echo service cannot be missed.

        pending = self._replies.open()
        try:
            self.socket.sendto(data, self._destination)

            if not pending.wait(self.config.timeout):
                raise SendTimeoutError(
                    f"{self.target}: no reply in {self.config.timeout:.2f} sec"
                )
        finally:
            self._replies.close()

        if pending.error is not None:
            raise TransportError(f"{self.target}: {pending.error}") from pending.error

        return msg.decode(pending.response, message, self.config.encoding)

    def _destroy(self) -> None:
        if self.receiver is not None:
            self.receiver.stop()
            self.receiver = None

        if self.socket is not None:
            self.socket.close()
            self.socket = None

    # --- receiver events ---

    def _received(self, data: bytes, address: Tuple) -> None:
        if not self._replies.deliver(data):
            logger.debug("%r: discarding %d unsolicited bytes from %s", self, len(data), address)

    def _failed(self, error: OSError) -> None:
        if not self._replies.fail(error):
            logger.warning("%r: receive failed with nothing outstanding: %s", self, error)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
