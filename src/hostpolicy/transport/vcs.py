"""Transports that delegate to an external sync tool.

Each backend materialises a mirror of the prefix inside the workspace during
:meth:`RevisionControlTransport.setup` and then serves reads from that mirror.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from pathlib import Path

from hostpolicy.transport.base import Transport, TransportOptions
from hostpolicy.transport.local import read_relative

logger = logging.getLogger(__name__)


class RevisionControlTransport(Transport):
    """Base class for git/hg/svn/rsync backed transports.

    Subclasses set ``command`` (the binary probed for availability) and
    implement :meth:`sync_command`.
    """

    command: str = ""

    def __init__(self, options: TransportOptions) -> None:
        super().__init__(options)
        self._ready = False

    @property
    def mirror(self) -> Path:
        """Directory holding the local mirror."""

        if self.options.workspace is None:
            raise RuntimeError(f"{self.name} transport requires a workspace")
        return self.options.workspace / self.name

    def extra_args(self) -> list[str]:
        if not self.options.transport_args:
            return []
        return shlex.split(self.options.transport_args)

    def sync_command(self, destination: Path) -> list[str]:
        raise NotImplementedError

    def is_available(self) -> bool:
        if shutil.which(self.command) is None:
            self._error = f"Failed to find '{self.command}' on the PATH"
            return False
        if self.options.workspace is None:
            self._error = f"{self.name} transport requires a workspace"
            return False
        return True

    def setup(self) -> None:
        if self._ready:
            return

        destination = self.mirror
        if destination.is_dir() and any(destination.iterdir()):
            # Already materialised, e.g. when re-bound from inside an artifact.
            logger.debug("Reusing mirror", extra={"transport": self.name, "path": str(destination)})
            self._ready = True
            return

        cmd = self.sync_command(destination)
        logger.info(
            "Materialising mirror",
            extra={"transport": self.name, "command": " ".join(shlex.quote(c) for c in cmd)},
        )

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.options.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error("Sync tool failed to run", extra={"transport": self.name, "error": str(e)})
            return

        if result.returncode != 0:
            logger.error(
                "Sync tool exited with an error",
                extra={
                    "transport": self.name,
                    "returncode": result.returncode,
                    "stderr": result.stderr.strip(),
                },
            )
            return

        self._ready = True

    def fetch_contents(self, prefix: str, file: str) -> bytes | None:
        if not self._ready:
            logger.debug("Mirror not materialised", extra={"transport": self.name})
            return None
        return read_relative(self.mirror, prefix, file)


class GitTransport(RevisionControlTransport):
    name = "git"
    command = "git"

    def sync_command(self, destination: Path) -> list[str]:
        return ["git", "clone", "--quiet", *self.extra_args(), self.options.prefix, str(destination)]


class MercurialTransport(RevisionControlTransport):
    name = "hg"
    command = "hg"

    def sync_command(self, destination: Path) -> list[str]:
        return ["hg", "clone", "--quiet", *self.extra_args(), self.options.prefix, str(destination)]


class SubversionTransport(RevisionControlTransport):
    name = "svn"
    command = "svn"

    def sync_command(self, destination: Path) -> list[str]:
        return [
            "svn",
            "checkout",
            "--quiet",
            "--non-interactive",
            *self.extra_args(),
            self.options.prefix,
            str(destination),
        ]


class RsyncTransport(RevisionControlTransport):
    name = "rsync"
    command = "rsync"

    def sync_command(self, destination: Path) -> list[str]:
        source = self.options.prefix.rstrip("/") + "/"
        return ["rsync", "-qazr", *self.extra_args(), source, f"{destination}/"]
