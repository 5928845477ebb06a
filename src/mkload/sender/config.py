"""Typed sender configuration.

Scenario files describe a sender with a flat map of option names to string
values. Each sender class declares a :class:`SenderConfiguration` subclass;
the factory validates the option map against it exactly once, so a sender
never re-parses its options at send time.
"""

from __future__ import annotations

import codecs
import os
import threading
from typing import ClassVar, FrozenSet, NamedTuple, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# The longest deadline every transport can honour: ZeroMQ takes it as a
# 32-bit count of milliseconds, threading as a platform time_t.

maximum_timeout = min(threading.TIMEOUT_MAX, (2**31 - 1) / 1000)


def default_timeout() -> float:
    """Return the process-wide default reply deadline, in seconds."""
    return float(os.environ.get("MKLOAD_TIMEOUT", "5.0"))


class Target(NamedTuple):
    """A parsed ``target`` option."""

    uri: str
    scheme: Optional[str]
    host: Optional[str]
    port: Optional[int]

    def __str__(self) -> str:
        return self.uri

    @property
    def address(self) -> tuple:
        return (self.host, self.port)


def parse_target(value: str) -> Target:
    """Parse ``host:port``, ``[ipv6]:port``, or ``scheme://...`` into a
    :class:`Target`. Raises ValueError for anything else.
    """

    value = value.strip()
    if value == "":
        raise ValueError("target is empty")

    if "://" in value:
        parts = urlsplit(value)
        port = parts.port           # ValueError if malformed
        return Target(value, parts.scheme.lower(), parts.hostname, port)

    host, sep, port = value.rpartition(":")
    if not sep or host == "":
        raise ValueError(f"target {value!r} is not host:port")

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise ValueError(f"IPv6 target {value!r} must be written [address]:port")

    try:
        port = int(port)
    except ValueError:
        raise ValueError(f"target {value!r} has a non-numeric port") from None

    if not 0 < port < 65536:
        raise ValueError(f"target {value!r} port out of range")

    return Target(value, None, host, port)


class SenderConfiguration(BaseModel):
    """Options understood by every sender.

    Option names are accepted in the camelCase used by scenario files
    (``waitResponse``) or in snake_case (``wait_response``). Unknown
    options are rejected.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    target: Target
    wait_response: bool = True
    timeout: float = Field(
        default_factory=default_timeout,
        gt=0,
        le=maximum_timeout,
        allow_inf_nan=False,
        validate_default=True,
    )
    encoding: str = "utf-8"

    @field_validator("target", mode="before")
    @classmethod
    def parse_target_option(cls, value):
        if isinstance(value, str):
            return parse_target(value)
        return value

    @field_validator("encoding")
    @classmethod
    def check_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError:
            raise ValueError(f"unknown encoding: {value}") from None
        return value


class HostPortConfiguration(SenderConfiguration):
    """Configuration for senders that need an explicit host and port."""

    schemes: ClassVar[FrozenSet[str]] = frozenset()

    @field_validator("target")
    @classmethod
    def require_host_port(cls, target: Target) -> Target:
        if target.scheme is not None and target.scheme not in cls.schemes:
            raise ValueError(f"unsupported target scheme: {target.scheme}")
        if not target.host or target.port is None:
            raise ValueError(f"target {target.uri!r} needs a host and port")
        return target


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
