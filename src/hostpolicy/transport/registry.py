"""Registry for creating transports by name."""

import logging
import re
from collections.abc import Callable
from pathlib import PureWindowsPath

from hostpolicy.core.errors import TransportUnavailable
from hostpolicy.transport.base import Transport, TransportOptions
from hostpolicy.transport.http import HttpTransport
from hostpolicy.transport.local import LocalTransport
from hostpolicy.transport.vcs import (
    GitTransport,
    MercurialTransport,
    RsyncTransport,
    SubversionTransport,
)

logger = logging.getLogger(__name__)

TransportFactory = Callable[[TransportOptions], Transport]

TRANSPORTS: dict[str, TransportFactory] = {
    "local": LocalTransport,
    "http": HttpTransport,
    "git": GitTransport,
    "hg": MercurialTransport,
    "svn": SubversionTransport,
    "rsync": RsyncTransport,
}

_ALIASES = {
    "https": "http",
    "file": "local",
    "mercurial": "hg",
    "subversion": "svn",
}

# Checked in order; the first match wins.
_PREFIX_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"^git(\+ssh)?://|\.git/?$", re.IGNORECASE), "git"),
    (re.compile(r"^(hg|hg\+ssh|ssh\+hg)://|\.hg/?$", re.IGNORECASE), "hg"),
    (re.compile(r"^svn(\+ssh)?://", re.IGNORECASE), "svn"),
    (re.compile(r"^rsync://|^[^/:]+::", re.IGNORECASE), "rsync"),
]


def available_transports() -> list[str]:
    """Return the names of all registered transports."""

    return sorted(TRANSPORTS)


def canonical_name(name: str) -> str:
    key = name.strip().lower()
    return _ALIASES.get(key, key)


def infer_transport(prefix: str) -> str:
    """Infer a transport name from the shape of a prefix.

    Recognised revision-control schemes and suffixes map to their backend,
    absolute filesystem paths (POSIX or Windows) and ``file://`` URLs map
    to ``local`` and everything else is treated as HTTP.
    """

    candidate = prefix.strip()
    for pattern, name in _PREFIX_RULES:
        if pattern.search(candidate):
            return name
    if candidate.lower().startswith("file://"):
        return "local"
    if candidate.startswith("/") or PureWindowsPath(candidate).is_absolute():
        return "local"
    return "http"


def create_transport(name: str, options: TransportOptions) -> Transport:
    """Create a transport by registry name.

    Args:
        name: Transport name (aliases such as ``https`` are accepted).
        options: Options for the transport.

    Returns:
        A new transport instance.

    Raises:
        TransportUnavailable: If no transport is registered under *name*.
    """
    key = canonical_name(name)
    factory = TRANSPORTS.get(key)
    if factory is None:
        raise TransportUnavailable(
            f"Unknown transport {name!r}; available: {', '.join(available_transports())}"
        )

    logger.info(f"Creating transport: {key}")
    return factory(options)
