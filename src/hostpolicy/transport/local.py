"""Local filesystem transport."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from hostpolicy.transport.base import Transport, TransportOptions

logger = logging.getLogger(__name__)


def local_root(prefix: str) -> Path:
    """Return the directory named by a path or ``file://`` URL prefix."""

    if prefix.lower().startswith("file://"):
        return Path(url2pathname(urlparse(prefix).path))
    return Path(prefix)


def read_relative(root: Path, prefix: str, file: str) -> bytes | None:
    """Read ``root/prefix/file``, returning None if it cannot be read.

    Shared with the revision-control transports, which read from a mirror.
    """

    path = root / prefix / file
    try:
        content = path.read_bytes()
    except OSError as e:
        logger.debug("Local read failed", extra={"path": str(path), "error": str(e)})
        return None

    logger.debug("Local read succeeded", extra={"path": str(path), "bytes": len(content)})
    return content


class LocalTransport(Transport):
    """Direct read from a filesystem prefix; no network involved."""

    name = "local"

    def __init__(self, options: TransportOptions) -> None:
        super().__init__(options)
        self.root = local_root(options.prefix)

    def is_available(self) -> bool:
        if not self.root.is_dir():
            self._error = f"Prefix directory does not exist: {self.root}"
            return False
        return True

    def fetch_contents(self, prefix: str, file: str) -> bytes | None:
        return read_relative(self.root, prefix, file)
