"""Host information discovery."""

from hostpolicy.info.discovery import discover_environment

__all__ = ["discover_environment"]
