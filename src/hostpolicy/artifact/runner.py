"""Execution of a written artifact."""

from __future__ import annotations

import logging
import subprocess
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


class ArtifactRunner:
    """Run an artifact through an explicit interpreter call.

    The artifact is never executed via its shebang or execute bit; the
    interpreter is always named explicitly.
    """

    def __init__(self, interpreter: str | None = None) -> None:
        self.interpreter = interpreter or sys.executable

    def command(self, path: Path) -> list[str]:
        return [self.interpreter, str(path)]

    def run(self, path: Path) -> int:
        """Execute the artifact and return its exit code.

        A non-zero exit code is logged, never raised.
        """
        cmd = self.command(path)
        logger.info("Executing artifact", extra={"command": cmd})

        result = subprocess.run(cmd, check=False)

        if result.returncode != 0:
            logger.warning("Artifact exited with an error", extra={"returncode": result.returncode})
        else:
            logger.info("Artifact completed", extra={"returncode": result.returncode})
        return result.returncode
