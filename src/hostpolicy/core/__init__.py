"""Core package initialization."""

from hostpolicy.core.config import ClientSettings, Config, build_config
from hostpolicy.core.errors import HostPolicyError

__all__ = [
    "ClientSettings",
    "Config",
    "HostPolicyError",
    "build_config",
]
