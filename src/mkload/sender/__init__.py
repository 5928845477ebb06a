"""Sender implementations and the factory that builds them."""

from .base import (
    Sender,
    SenderState,
    SenderError,
    ConfigurationError,
    SenderInitializationError,
    IllegalStateError,
    SendError,
    SendTimeoutError,
    TransportError,
    PostSendError,
)
from .config import SenderConfiguration, Target, parse_target
from .factory import register, unregister, registered, resolve, summon

from . import datagram
from . import dummy
from . import zmq

register('datagram', datagram.DatagramSender)
register('udp', datagram.DatagramSender)
register('dummy', dummy.DummySender)
register('zmq', zmq.ZmqSender)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
