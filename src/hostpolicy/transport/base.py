"""Abstract base class for transports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from hostpolicy.core.config import Config


@dataclass(frozen=True, slots=True)
class TransportOptions:
    """The subset of configuration a transport needs."""

    prefix: str
    username: str | None = None
    password: str | None = None
    transport_args: str | None = None
    workspace: Path | None = None
    timeout: float | None = 60.0
    verbose: bool = False

    @classmethod
    def from_config(cls, config: Config) -> TransportOptions:
        """Build transport options from a validated configuration."""

        settings = config.settings()
        workspace = config.get("workspace")
        return cls(
            prefix=settings.prefix or "",
            username=settings.username,
            password=settings.password,
            transport_args=settings.transport_args,
            workspace=Path(workspace) if workspace else None,
            timeout=settings.timeout or None,
            verbose=settings.verbose,
        )


class Transport(ABC):
    """Abstract base class for transports.

    This interface allows pluggable fetch backends (local filesystem, HTTP,
    revision-control sync tools, etc.). A transport never raises from
    :meth:`fetch_contents`; failures are reported as ``None`` so that an
    empty file (``b""``) stays distinguishable from a failed fetch.
    """

    #: Stable identifier used for registry lookup and listing.
    name: str = ""

    def __init__(self, options: TransportOptions) -> None:
        self.options = options
        self._error: str | None = None

    @abstractmethod
    def is_available(self) -> bool:
        """Check cheaply whether this transport can work on this host.

        Returns:
            True if usable. On False, :meth:`error` explains why.
        """
        pass

    def error(self) -> str | None:
        """Return the reason recorded by the last failed :meth:`is_available`."""
        return self._error

    def setup(self) -> None:
        """One-time initialisation before the first fetch.

        The default implementation does nothing. Implementations must be
        idempotent.
        """

    def close(self) -> None:
        """Release resources held by the transport. The default does nothing."""

    @abstractmethod
    def fetch_contents(self, prefix: str, file: str) -> bytes | None:
        """Fetch ``<prefix>/<file>`` relative to the transport root.

        Args:
            prefix: Sub-directory under the root (``policies``, ``modules``, ``files``).
            file: Name of the file to fetch.

        Returns:
            The file content, or None if the fetch failed for any reason.
        """
        pass
