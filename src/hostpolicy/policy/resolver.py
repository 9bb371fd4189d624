"""Resolution of the entry policy document into policy and module text.

The entry document (``policies/default``) is scanned line by line for
``FetchPolicy``/``FetchModule`` directives. Inclusion is single-level:
fetched content is appended verbatim and never re-scanned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from hostpolicy.core.config import Config
from hostpolicy.core.errors import FetchFailure
from hostpolicy.policy.directives import DirectiveKind, is_comment, parse_directive
from hostpolicy.policy.expansion import expand_variables
from hostpolicy.transport.base import Transport

logger = logging.getLogger(__name__)

ENTRY_POLICY = "default"


@dataclass(frozen=True, slots=True)
class ResolvedArtifact:
    """Resolved policy text, module text and the configuration they run under."""

    policy: str
    modules: str
    config: Config


def _decode(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


def _with_newline(text: str) -> str:
    return text if not text or text.endswith("\n") else text + "\n"


class PolicyResolver:
    """Fetch the entry policy and resolve its inclusion directives.

    The resolver only reads the configuration; it never modifies it.
    """

    def __init__(
        self,
        transport: Transport,
        config: Config,
        *,
        on_fetch_failure: Literal["comment", "abort"] = "comment",
        entry: str = ENTRY_POLICY,
    ) -> None:
        self.transport = transport
        self.config = config
        self.on_fetch_failure = on_fetch_failure
        self.entry = entry

    def fetch(self, kind: DirectiveKind, name: str) -> str | None:
        content = self.transport.fetch_contents(kind.prefix, name)
        if content is None:
            logger.warning("Fetch failed", extra={"kind": kind.value, "name": name})
            return None
        logger.info("Fetched", extra={"kind": kind.value, "name": name, "bytes": len(content)})
        return _decode(content)

    def resolve(self) -> ResolvedArtifact | None:
        """Resolve the entry document.

        Returns:
            The resolved artifact, or None if the entry document itself
            could not be fetched.

        Raises:
            FetchFailure: If a directive fails while failures are configured
                to abort.
        """
        entry = self.fetch(DirectiveKind.POLICY, self.entry)
        if entry is None:
            return None

        policy: list[str] = []
        modules: list[str] = []

        for line in entry.splitlines():
            if not line.strip() or is_comment(line):
                policy.append(line + "\n")
                continue

            directive = parse_directive(line)
            if directive is None:
                policy.append(line + "\n")
                continue

            name = expand_variables(directive.expr, self.config)
            logger.debug(
                "Directive",
                extra={"kind": directive.kind.value, "expr": directive.expr, "name": name},
            )

            text = self.fetch(directive.kind, name)
            if text is None and self.on_fetch_failure == "abort":
                kind = "policy" if directive.kind is DirectiveKind.POLICY else "module"
                raise FetchFailure(kind, name)

            if directive.kind is DirectiveKind.POLICY:
                if text is None:
                    policy.append(f"# Failed to fetch policy: {name}\n")
                else:
                    policy.append(f"# Fetched policy: {name}\n")
                    policy.append(_with_newline(text))
            else:
                if text is None:
                    modules.append(f"# Failed to fetch module: {name}\n")
                else:
                    modules.append(f"# Fetched module: {name}\n")
                    modules.append(_with_newline(text))

        return ResolvedArtifact(policy="".join(policy), modules="".join(modules), config=self.config)
