"""A sender that performs no I/O.

Useful for dry runs of a scenario, and for exercising harness code without
a live target. With ``waitResponse`` enabled the message payload is echoed
back as the response.
"""

from __future__ import annotations

import time

from pydantic import Field

from .base import Sender, SendTimeoutError
from .config import SenderConfiguration


class DummyConfiguration(SenderConfiguration):
    """``delay`` is the simulated latency of each send, in seconds."""

    delay: float = Field(default=0.0, ge=0)


class DummySender(Sender):

    configuration = DummyConfiguration

    def _init(self) -> None:
        pass

    def _do_send(self, message, properties):
        config = self.config
        delay = config.delay

        if config.wait_response and delay > config.timeout:
            time.sleep(config.timeout)
            raise SendTimeoutError(f"{self.target}: no reply in {config.timeout:.2f} sec")

        if delay:
            time.sleep(delay)

        if not config.wait_response or message is None:
            return None

        if message.payload == b"" or message.payload == "":
            return None

        return message.payload

    def _destroy(self) -> None:
        pass


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
