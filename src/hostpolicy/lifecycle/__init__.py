"""Lifecycle package initialization."""

from hostpolicy.lifecycle.controller import LifecycleController
from hostpolicy.lifecycle.lock import ProcessLock
from hostpolicy.lifecycle.workspace import Workspace

__all__ = [
    "LifecycleController",
    "ProcessLock",
    "Workspace",
]
