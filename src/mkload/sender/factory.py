"""Build configured senders from a type identifier and an option map.

A type identifier is either a name registered with :func:`register`, such
as ``datagram``, or the import path of a :class:`Sender` subclass, written
``package.module.ClassName`` or ``package.module:ClassName``. Import paths
are resolved late, the first time a scenario asks for them.
"""

from __future__ import annotations

import importlib
import logging
import threading
from typing import Dict, List, Mapping, Optional, Type

from .base import ConfigurationError, Sender


logger = logging.getLogger(__name__)

_registry: Dict[str, Type[Sender]] = dict()
_registry_lock = threading.Lock()


def register(identifier: str, cls: Type[Sender], replace: bool = False) -> None:
    """Make *cls* available to :func:`summon` under *identifier*."""

    if not (isinstance(cls, type) and issubclass(cls, Sender)):
        raise ConfigurationError(f"{cls!r} is not a Sender subclass")

    with _registry_lock:
        existing = _registry.get(identifier)
        if existing is not None and existing is not cls and not replace:
            raise ConfigurationError(
                f"sender type {identifier!r} already registered to {existing.__name__}"
            )
        _registry[identifier] = cls


def unregister(identifier: str) -> None:
    with _registry_lock:
        _registry.pop(identifier, None)


def registered() -> List[str]:
    """Return the registered type identifiers, sorted."""
    with _registry_lock:
        return sorted(_registry)


def resolve(identifier: str) -> Type[Sender]:
    """Return the :class:`Sender` subclass behind *identifier* without
    instantiating it.
    """

    with _registry_lock:
        cls = _registry.get(identifier)

    if cls is not None:
        return cls

    if ":" in identifier:
        module_name, _, attribute = identifier.partition(":")
    else:
        module_name, _, attribute = identifier.rpartition(".")

    if module_name == "" or attribute == "":
        raise ConfigurationError(f"unknown sender type: {identifier!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"unknown sender type: {identifier!r}: {exc}") from exc
    except Exception as exc:
        raise ConfigurationError(f"cannot import {module_name!r}: {exc!r}") from exc

    found = module
    try:
        for name in attribute.split("."):
            found = getattr(found, name)
    except AttributeError as exc:
        raise ConfigurationError(f"unknown sender type: {identifier!r}: {exc}") from exc

    if not (isinstance(found, type) and issubclass(found, Sender)):
        raise ConfigurationError(f"{identifier!r} is not a Sender subclass")

    if getattr(found, "__abstractmethods__", None):
        raise ConfigurationError(f"{identifier!r} is abstract")

    return found


def summon(identifier: str, options: Optional[Mapping[str, str]] = None, **kwargs) -> Sender:
    """Return a new, uninitialized sender of type *identifier* configured
    from *options*. Keyword arguments are merged into the options.

    Raises :class:`ConfigurationError` if the type cannot be resolved or
    the options do not validate; no partially configured sender is ever
    returned.
    """

    cls = resolve(identifier)

    try:
        merged = dict(options or ())
        merged.update(kwargs)
        config = cls.configuration.model_validate(merged)
    except (ValueError, TypeError) as exc:
        # pydantic's ValidationError is a ValueError.
        raise ConfigurationError(f"{identifier}: invalid options: {exc}") from exc

    sender = cls(config)
    logger.debug("summoned %r", sender)
    return sender


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
