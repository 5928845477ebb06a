"""ZeroMQ request/response sender.

Each sender owns one DEALER socket connected to the target. A message goes
out as an empty delimiter frame followed by the payload frame, which both
REP and ROUTER peers understand; the reply is the last frame of whatever
comes back.
"""

from __future__ import annotations

import logging
from typing import ClassVar, FrozenSet, Optional

import zmq
from pydantic import field_validator

from .. import message as msg
from .base import Sender, SendTimeoutError, TransportError
from .config import SenderConfiguration, Target


logger = logging.getLogger(__name__)

zmq_context = zmq.Context()


class ZmqConfiguration(SenderConfiguration):
    """Options for :class:`ZmqSender`. The target is ``host:port`` (taken
    as TCP) or a ``tcp://`` or ``ipc://`` endpoint.
    """

    schemes: ClassVar[FrozenSet[str]] = frozenset(("tcp", "ipc"))

    @field_validator("target")
    @classmethod
    def require_endpoint(cls, target: Target) -> Target:
        if target.scheme is None:
            return target
        if target.scheme not in cls.schemes:
            raise ValueError(f"unsupported target scheme: {target.scheme}")
        if target.scheme == "tcp" and (not target.host or target.port is None):
            raise ValueError(f"target {target.uri!r} needs a host and port")
        return target

    @property
    def endpoint(self) -> str:
        target = self.target
        if target.scheme is None:
            host = target.host
            if ":" in host:
                host = f"[{host}]"
            return f"tcp://{host}:{target.port}"
        return target.uri


class ZmqSender(Sender):
    """Issue requests via a ZeroMQ DEALER socket and receive responses."""

    configuration = ZmqConfiguration

    def __init__(self, config: ZmqConfiguration):
        super().__init__(config)
        self.socket: Optional[zmq.Socket] = None
        self.poller: Optional[zmq.Poller] = None

    def _init(self) -> None:
        milliseconds = int(self.config.timeout * 1000)

        try:
            self.socket = zmq_context.socket(zmq.DEALER)
            self.socket.setsockopt(zmq.LINGER, 0)
            self.socket.setsockopt(zmq.SNDTIMEO, milliseconds)
            self.socket.identity = f"mkload.ZmqSender.{id(self)}".encode()
            self.socket.connect(self.config.endpoint)
        except zmq.ZMQError as exc:
            raise TransportError(f"cannot connect {self.config.endpoint}: {exc}") from exc

        self.poller = zmq.Poller()
        self.poller.register(self.socket, zmq.POLLIN)

    def _drain(self) -> None:
        """Discard replies to earlier sends that timed out."""

        while self.socket.poll(0, zmq.POLLIN):
            stale = self.socket.recv_multipart(zmq.NOBLOCK)
            logger.debug("%r: discarding stale reply of %d frames", self, len(stale))

    def _do_send(self, message, properties):
        data = msg.encode(message, self.config.encoding)

        try:
            self._drain()
            self.socket.send_multipart((b"", data))
        except zmq.Again as exc:
            raise TransportError(
                f"{self.target}: write not accepted in {self.config.timeout:.2f} sec"
            ) from exc
        except zmq.ZMQError as exc:
            raise TransportError(f"{self.target}: {exc}") from exc

        if not self.config.wait_response:
            return None

        try:
            events = dict(self.poller.poll(int(self.config.timeout * 1000)))
            if self.socket not in events:
                raise SendTimeoutError(
                    f"{self.target}: no reply in {self.config.timeout:.2f} sec"
                )
            parts = self.socket.recv_multipart()
        except zmq.ZMQError as exc:
            raise TransportError(f"{self.target}: {exc}") from exc

        return msg.decode(parts[-1], message, self.config.encoding)

    def _destroy(self) -> None:
        if self.socket is not None:
            self.socket.close(linger=0)
            self.socket = None
        self.poller = None


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
