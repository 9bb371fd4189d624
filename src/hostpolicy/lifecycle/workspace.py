"""Private temporary workspace for a single run."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from types import TracebackType

logger = logging.getLogger(__name__)


class Workspace:
    """Owner-only temporary directory, removed on exit unless *keep* is set."""

    def __init__(self, *, keep: bool = False, prefix: str = "hostpolicy-") -> None:
        self.keep = keep
        self.prefix = prefix
        self.path: Path | None = None

    def __enter__(self) -> Path:
        self.path = Path(tempfile.mkdtemp(prefix=self.prefix))
        os.chmod(self.path, 0o700)
        logger.debug("Workspace created", extra={"path": str(self.path)})
        return self.path

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.path is None:
            return
        if self.keep:
            logger.info("Workspace kept", extra={"path": str(self.path)})
            return
        shutil.rmtree(self.path, ignore_errors=True)
        logger.debug("Workspace removed", extra={"path": str(self.path)})
