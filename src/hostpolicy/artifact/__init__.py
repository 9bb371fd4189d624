"""Artifact package initialization."""

from hostpolicy.artifact.builder import ArtifactBuilder
from hostpolicy.artifact.runner import ArtifactRunner

__all__ = [
    "ArtifactBuilder",
    "ArtifactRunner",
]
