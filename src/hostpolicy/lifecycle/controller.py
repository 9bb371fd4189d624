"""Top-level control flow of a client run."""

from __future__ import annotations

import logging
import random
import signal
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from types import FrameType

from hostpolicy.artifact.builder import ArtifactBuilder
from hostpolicy.artifact.runner import ArtifactRunner
from hostpolicy.core.config import ClientSettings, Config
from hostpolicy.core.errors import TransportUnavailable
from hostpolicy.lifecycle.lock import ProcessLock
from hostpolicy.lifecycle.privileges import require_superuser
from hostpolicy.lifecycle.workspace import Workspace
from hostpolicy.policy.resolver import PolicyResolver
from hostpolicy.transport.base import Transport, TransportOptions
from hostpolicy.transport.registry import canonical_name, create_transport, infer_transport

logger = logging.getLogger(__name__)

ARTIFACT_NAME = "policy.py"

_EXIT_SIGNALS = tuple(
    sig for sig in (getattr(signal, "SIGTERM", None), getattr(signal, "SIGHUP", None)) if sig
)


@contextmanager
def _signals_as_exit() -> Iterator[None]:
    """Turn termination signals into SystemExit so cleanup handlers run."""

    def _handler(signum: int, frame: FrameType | None) -> None:
        raise SystemExit(128 + signum)

    previous = {sig: signal.signal(sig, _handler) for sig in _EXIT_SIGNALS}
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


class LifecycleController:
    """Orchestrates one run: lock, workspace, privileges, delay, resolve, build, execute.

    The controller is single-threaded and synchronous. Errors other than
    per-directive fetch failures propagate as :class:`HostPolicyError`
    subclasses after the lock and workspace have been released.
    """

    def __init__(
        self,
        config: Config,
        *,
        runner: ArtifactRunner | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.runner = runner or ArtifactRunner()
        self._sleep = sleep
        self._rng = rng or random.Random()

    def splay(self, max_delay: int) -> float:
        """Sleep a uniformly random duration in ``[0, max_delay)`` seconds."""

        if max_delay <= 0:
            return 0.0
        seconds = self._rng.random() * max_delay
        logger.info("Sleeping before fetch", extra={"seconds": round(seconds, 3), "max": max_delay})
        self._sleep(seconds)
        return seconds

    def select_transport(self, config: Config, settings: ClientSettings) -> tuple[str, Transport]:
        """Resolve the transport backend and check that it is usable.

        Raises:
            TransportUnavailable: If no prefix is configured, the backend is
                unknown, or it reports itself unavailable.
        """
        if not settings.prefix:
            raise TransportUnavailable("No prefix configured; use --prefix")

        name = canonical_name(settings.transport or infer_transport(settings.prefix))
        transport = create_transport(name, TransportOptions.from_config(config))
        if not transport.is_available():
            raise TransportUnavailable(f"Transport {name} is not available: {transport.error()}")
        return name, transport

    def run(self) -> int:
        """Run the client once and return the process exit code."""

        settings = self.config.settings()

        if settings.dump:
            print(self.config.dump(), end="")
            return 0

        with (
            ProcessLock(settings.lockfile),
            Workspace(keep=settings.no_delete) as workspace,
            _signals_as_exit(),
        ):
            if settings.require_superuser:
                require_superuser()

            config = self.config.with_values(workspace=str(workspace))
            name, transport = self.select_transport(config, settings)
            config = config.with_values(transport=name)

            try:
                self.splay(settings.delay)
                transport.setup()
                resolver = PolicyResolver(
                    transport, config, on_fetch_failure=settings.fetch_failure
                )
                resolved = resolver.resolve()
            finally:
                transport.close()

            if resolved is None:
                print(f"Failed to fetch the entry policy from {settings.prefix}")
                return 0

            path = ArtifactBuilder(name).write(resolved, workspace / ARTIFACT_NAME)
            self.execute(path, settings)
            return 0

    def execute(self, path: Path, settings: ClientSettings) -> None:
        if settings.no_execute:
            logger.info("Execution suppressed", extra={"path": str(path)})
        else:
            returncode = self.runner.run(path)
            logger.info("Policy run finished", extra={"returncode": returncode})

        if settings.no_delete:
            print(f"Artifact kept at {path}")
        else:
            path.unlink(missing_ok=True)
