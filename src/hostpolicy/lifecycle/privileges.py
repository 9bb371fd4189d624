"""Superuser privilege checks."""

from __future__ import annotations

import os

from hostpolicy.core.errors import PrivilegeError


def is_superuser() -> bool:
    """Return True when the process runs with superuser privileges."""

    geteuid = getattr(os, "geteuid", None)
    if geteuid is not None:
        return geteuid() == 0

    # Windows has no effective uid; ask the shell API instead.
    try:
        import ctypes

        return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
    except (AttributeError, OSError):
        return False


def require_superuser() -> None:
    """Raise PrivilegeError unless running with superuser privileges."""

    if not is_superuser():
        raise PrivilegeError("You must be root (or Administrator) to run this client")
