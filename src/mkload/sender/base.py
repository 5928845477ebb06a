"""Sender interface.

This is the contract every transport implementation follows. A worker
thread owns one :class:`Sender` for its whole working life and drives it
through the same sequence of calls regardless of the protocol underneath::

    sender.init()
    for message in messages:
        sender.pre_send(message, properties)
        response = sender.do_send(message, properties)
        sender.post_send(message)
    sender.destroy()

The public lifecycle methods enforce call order and translate errors; a
transport implements the matching protected hooks (:meth:`Sender._init`,
:meth:`Sender._do_send`, ...). Instances are never shared between threads,
so per-instance state is deliberately left unsynchronized.
"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, Mapping, Optional, Type

from ..message import Message
from .config import SenderConfiguration


logger = logging.getLogger(__name__)


# Transport agnostic exceptions

class SenderError(Exception):
    """Base class for all sender errors."""


class ConfigurationError(SenderError):
    """A sender type could not be resolved, or its options are invalid."""


class SenderInitializationError(SenderError):
    """A sender could not acquire its transport resources."""


class IllegalStateError(SenderError):
    """A lifecycle method was called out of order."""


class SendError(SenderError):
    """Base class for failures of :meth:`Sender.do_send`."""


class SendTimeoutError(SendError):
    """No reply arrived before the deadline."""


class TransportError(SendError):
    """The transport failed locally or remotely."""


class PostSendError(SenderError):
    """Post-transmission cleanup failed. The message was already sent."""


class SenderState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    SENDING = "sending"
    CLOSED = "closed"


Properties = Optional[Mapping[str, str]]
Callback = Callable[[Any, Optional[SendError]], None]


class Sender(ABC):
    """Minimal contract for a message sender.

    Instances are built by :func:`mkload.sender.factory.summon` from an
    option map; subclasses name their configuration model in the
    :attr:`configuration` class attribute.

    :ivar config: The validated, immutable configuration for this instance.
    :ivar state: The current :class:`SenderState`.
    :ivar payload: The payload of the last message seen by :meth:`pre_send`,
        kept for diagnostics.
    """

    configuration: ClassVar[Type[SenderConfiguration]] = SenderConfiguration

    def __init__(self, config: SenderConfiguration):
        if not isinstance(config, self.configuration):
            raise TypeError(
                f"{type(self).__name__} expects {self.configuration.__name__}, "
                f"got {type(config).__name__}"
            )

        self.config = config
        self.state = SenderState.UNINITIALIZED
        self.payload: Any = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.config.target} {self.state.value}>"

    def __enter__(self) -> "Sender":
        self.init()
        return self

    def __exit__(self, *exc_info) -> None:
        if self.state is SenderState.READY:
            self.destroy()

    @property
    def target(self):
        return self.config.target

    # --- lifecycle ---

    def init(self) -> None:
        """Acquire transport resources. Called exactly once."""

        if self.state is not SenderState.UNINITIALIZED:
            raise IllegalStateError(f"init() called while {self.state.value}")

        try:
            self._init()
        except (OSError, SenderError) as exc:
            self._abandon()
            raise SenderInitializationError(
                f"{self.target}: cannot initialize {type(self).__name__}: {exc}"
            ) from exc

        self.state = SenderState.READY
        logger.debug("%r initialized", self)

    def pre_send(self, message: Optional[Message], properties: Properties = None) -> None:
        """Inspect *message* before transmission. Performs no I/O."""

        self._require_ready("pre_send")

        if message is None:
            self.payload = None
        else:
            self.payload = message.payload

        self._pre_send(message, properties)

    def do_send(
        self,
        message: Optional[Message],
        properties: Properties = None,
        callback: Optional[Callback] = None,
    ) -> Any:
        """Transmit *message* and return the response payload, if any.

        When the sender is configured with ``waitResponse`` this blocks
        until a reply arrives or the configured timeout elapses. If a
        *callback* is supplied it receives ``(response, error)`` before
        this method returns or raises.
        """

        self._require_ready("do_send")

        response = None
        error: Optional[SendError] = None

        self.state = SenderState.SENDING
        try:
            response = self._do_send(message, properties)
        except SendTimeoutError as exc:
            logger.debug("%r: %s", self, exc)
            error = exc
        except SendError as exc:
            logger.warning("%r: %s", self, exc)
            error = exc
        except (OSError, UnicodeError) as exc:
            # UnicodeError: a text payload the configured encoding cannot represent.
            logger.warning("%r: %s", self, exc)
            error = TransportError(f"{self.target}: {exc}")
            error.__cause__ = exc
        finally:
            self.state = SenderState.READY

        if callback is not None:
            callback(response, error)

        if error is not None:
            raise error

        return response

    def post_send(self, message: Optional[Message]) -> None:
        """Clean up after a successful transmission."""

        self._require_ready("post_send")

        try:
            self._post_send(message)
        except PostSendError:
            raise
        except Exception as exc:
            raise PostSendError(f"{self.target}: post_send failed: {exc}") from exc

    def destroy(self) -> None:
        """Release transport resources. The instance is unusable afterwards."""

        self._require_ready("destroy")
        self.state = SenderState.CLOSED

        try:
            self._destroy()
        except OSError as exc:
            raise TransportError(f"{self.target}: error during destroy: {exc}") from exc

        logger.debug("%r destroyed", self)

    # --- internal ---

    def _require_ready(self, name: str) -> None:
        if self.state is not SenderState.READY:
            raise IllegalStateError(f"{name}() called while {self.state.value}")

    def _abandon(self) -> None:
        """Release whatever a failed :meth:`_init` managed to acquire."""

        self.state = SenderState.CLOSED
        try:
            self._destroy()
        except (OSError, SenderError):
            logger.debug("%r: cleanup after failed init", self, exc_info=True)

    # --- transport hooks ---

    @abstractmethod
    def _init(self) -> None:
        """Acquire sockets, connections, buffers."""

    def _pre_send(self, message: Optional[Message], properties: Properties) -> None:
        """Optional hook; must not perform I/O."""

    @abstractmethod
    def _do_send(self, message: Optional[Message], properties: Properties) -> Any:
        """Transmit one message; return the response payload or None."""

    def _post_send(self, message: Optional[Message]) -> None:
        """Optional hook."""

    @abstractmethod
    def _destroy(self) -> None:
        """Release everything acquired by :meth:`_init`. Must tolerate a
        partially initialized instance.
        """


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
