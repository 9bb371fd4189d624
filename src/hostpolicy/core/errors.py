"""Exceptions raised by the policy client.

Each class maps to a distinct process exit code (see ``hostpolicy.cli``).
"""

from __future__ import annotations


class HostPolicyError(Exception):
    """Base class for all client errors."""

    exit_code = 1


class ConfigurationError(HostPolicyError):
    """A configuration value is missing or invalid."""

    exit_code = 2


class LockContention(HostPolicyError):
    """Another instance already holds the lock file."""

    exit_code = 3


class PrivilegeError(HostPolicyError):
    """The process lacks superuser privileges."""

    exit_code = 4


class TransportUnavailable(HostPolicyError):
    """The selected transport is unknown or cannot be used on this host."""

    exit_code = 5


class ArtifactWriteError(HostPolicyError):
    """The generated artifact could not be written."""

    exit_code = 6


class FetchFailure(HostPolicyError):
    """A directive fetch failed while fetch failures are configured to abort."""

    exit_code = 7

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"Failed to fetch {kind}: {name}")
        self.kind = kind
        self.name = name
