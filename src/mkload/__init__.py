""" Python implementation of the mkload message-delivery core. A load
    generator obtains one :class:`Sender` per worker thread from
    :func:`summon`, and drives every sender through the same lifecycle
    regardless of the wire protocol underneath.
"""

# Data model.

from . import message
from .message import Message

# Senders, and the factory that builds them.

from . import sender
summon = sender.summon
register = sender.register

from .sender import (
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

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
