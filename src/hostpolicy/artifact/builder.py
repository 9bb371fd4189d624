"""Rendering of a resolved policy into an executable Python script.

The script contains, in order:

1. one variable per configuration key
2. the ``CONFIG`` dictionary
3. transport re-initialisation
4. the ``LOG`` buffer
5. a privilege re-check
6. the policy body (embedded as a string literal)
7. the log flush
8. the optional include file, verbatim
9. the module bundle, verbatim

The policy body is executed after the include file and modules have been
defined, so policies may call functions declared in modules.

The configuration variables, include file, modules and policy share one
global namespace. A module-level name in the include file or a module (an
``import os``, say) rebinds the configuration variable of the same name;
``CONFIG`` always holds the original values. Keys that map to the same
variable name, or to a name the artifact defines itself, are reported
and only reachable through ``CONFIG``.
"""

from __future__ import annotations

import keyword
import logging
import os
import re
from pathlib import Path

from hostpolicy import __version__
from hostpolicy.core.errors import ArtifactWriteError
from hostpolicy.policy.resolver import ResolvedArtifact

logger = logging.getLogger(__name__)

_NON_IDENTIFIER = re.compile(r"\W")

_RESERVED_NAMES = frozenset({"_runtime", "_flush_log", "fetch_file", "log_message"})


def variable_name(key: str) -> str:
    """Turn a configuration key into a valid Python identifier."""

    name = _NON_IDENTIFIER.sub("_", key)
    if not name or name[0].isdigit():
        name = "_" + name
    if keyword.iskeyword(name):
        name += "_"
    return name


def _section(title: str) -> str:
    return f"\n# {'-' * 8} {title} {'-' * 8}\n"


class ArtifactBuilder:
    """Builds the executable artifact for a resolved policy."""

    def __init__(self, transport_name: str) -> None:
        self.transport_name = transport_name

    def read_include(self, resolved: ResolvedArtifact) -> str:
        include = resolved.config.settings().include
        if include is None:
            return ""
        try:
            return include.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Include file not readable", extra={"path": str(include), "error": str(e)})
            return f"# Include file not readable: {include}\n"

    def variables(self, keys: list[str]) -> dict[str, str]:
        """Map variable names to the configuration keys they are bound from.

        Keys whose variable name is reserved or already taken by an earlier
        key are left out.
        """
        names: dict[str, str] = {}
        for key in keys:
            name = variable_name(key)
            if name in _RESERVED_NAMES or name in names:
                logger.warning(
                    "Configuration key not bound to a variable",
                    extra={"key": key, "variable": name, "taken_by": names.get(name, "artifact")},
                )
                continue
            names[name] = key
        return names

    def render(self, resolved: ResolvedArtifact) -> str:
        """Render the artifact source text."""

        config = resolved.config
        keys = sorted(config)
        out: list[str] = [
            "#!/usr/bin/env python3\n",
            f"# Generated by hostpolicy {__version__}; do not edit.\n",
            "from hostpolicy import runtime as _runtime\n",
        ]

        out.append(_section("configuration variables"))
        for name, key in self.variables(keys).items():
            out.append(f"{name} = {config[key]!r}\n")

        out.append(_section("configuration"))
        out.append("CONFIG = {\n")
        for key in keys:
            out.append(f"    {key!r}: {config[key]!r},\n")
        out.append("}\n")

        out.append(_section("transport"))
        out.append(f"TRANSPORT = _runtime.bind_transport({self.transport_name!r}, CONFIG)\n")
        out.append("\n\ndef fetch_file(name):\n")
        out.append("    return _runtime.fetch_file(TRANSPORT, name)\n")

        out.append(_section("log buffer"))
        out.append("LOG = _runtime.LogBuffer()\n")
        out.append('\n\ndef log_message(message, level="info"):\n')
        out.append("    LOG.add(level, message)\n")

        out.append(_section("privileges"))
        out.append("_runtime.check_privileges(CONFIG)\n")

        out.append(_section("policy"))
        out.append(f"POLICY = {resolved.policy!r}\n")

        out.append(_section("log flush"))
        out.append("\n\ndef _flush_log():\n")
        out.append("    _runtime.flush_log(LOG, CONFIG)\n")

        out.append(_section("include"))
        include = self.read_include(resolved)
        out.append(include if include.endswith("\n") or not include else include + "\n")

        out.append(_section("modules"))
        modules = resolved.modules
        out.append(modules if modules.endswith("\n") or not modules else modules + "\n")

        out.append(_section("run"))
        out.append("try:\n")
        out.append("    _runtime.execute_policy(POLICY, globals())\n")
        out.append("finally:\n")
        out.append("    TRANSPORT.close()\n")
        out.append("_flush_log()\n")

        return "".join(out)

    def write(self, resolved: ResolvedArtifact, path: Path) -> Path:
        """Render and write the artifact with owner-only permissions.

        The file is created with mode 0600 before any content is written.

        Raises:
            ArtifactWriteError: If the file cannot be created or written.
        """
        source = self.render(resolved)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(source)
        except OSError as e:
            raise ArtifactWriteError(f"Failed to write artifact {path}: {e}") from e

        logger.info("Artifact written", extra={"path": str(path), "bytes": len(source)})
        return path
