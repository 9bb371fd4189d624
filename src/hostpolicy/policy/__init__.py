"""Policy package initialization."""

from hostpolicy.policy.directives import Directive, DirectiveKind, parse_directive
from hostpolicy.policy.expansion import expand_variables
from hostpolicy.policy.resolver import PolicyResolver, ResolvedArtifact

__all__ = [
    "Directive",
    "DirectiveKind",
    "PolicyResolver",
    "ResolvedArtifact",
    "expand_variables",
    "parse_directive",
]
