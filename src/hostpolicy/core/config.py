"""Configuration for the policy client.

Configuration is layered, in ascending precedence:
- computed defaults (``ClientSettings``, which also reads ``HOSTPOLICY_*``
  environment variables and a local `.env` file)
- environment discovery (facts about this host)
- the config file (``key = value`` lines)
- command-line flags

The merged result is an immutable :class:`Config`, a flat mapping of string
keys to string values. Typed access goes through :meth:`Config.settings`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hostpolicy.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Same spellings pydantic accepts for bool fields.
_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off", ""}


class ClientSettings(BaseSettings):
    """Typed core options of the client.

    Every field is also a key of the flat :class:`Config`; the values there
    are strings and are validated back into this model on demand.
    """

    transport: str | None = Field(
        default=None,
        description="Transport backend name; inferred from the prefix when unset",
    )
    prefix: str | None = Field(
        default=None,
        description="Root location under which policies/, modules/ and files/ live",
    )
    username: str | None = Field(default=None, description="Username for HTTP basic-auth")
    password: str | None = Field(default=None, description="Password for HTTP basic-auth")
    transport_args: str | None = Field(
        default=None,
        description="Extra arguments passed to revision-control sync tools",
    )

    delay: int = Field(
        default=0,
        ge=0,
        description="Maximum splay delay in seconds (0 disables the delay)",
    )
    timeout: float = Field(
        default=60.0,
        ge=0.0,
        description="Timeout in seconds for fetches and sync tools (0 means no timeout)",
    )

    lockfile: Path = Field(
        default=Path("/var/tmp/hostpolicy.lock"),
        description="Lock file guarding against concurrent runs",
    )
    include: Path | None = Field(
        default=None,
        description="Local file whose contents are inserted verbatim into the artifact",
    )
    config_file: Path = Field(
        default=Path("/etc/hostpolicy/hostpolicy.conf"),
        description="Path of the key = value configuration file",
    )

    dump: bool = Field(default=False, description="Print the configuration and exit")
    no_execute: bool = Field(default=False, description="Build the artifact but do not run it")
    no_delete: bool = Field(
        default=False,
        description="Keep the workspace and artifact after the run",
    )
    verbose: bool = Field(default=False, description="Enable verbose (debug) output")

    mail: str | None = Field(
        default=None,
        description="Recipient address for policy log entries; printed when unset",
    )
    mail_from: str = Field(default="root", description="Sender address for policy log mail")
    smtp_host: str = Field(default="localhost", description="SMTP relay for policy log mail")

    require_superuser: bool = Field(
        default=True,
        description="Refuse to run unless the process has superuser privileges",
    )
    fetch_failure: Literal["comment", "abort"] = Field(
        default="comment",
        description=(
            "How failed FetchPolicy/FetchModule directives are handled: 'comment' replaces "
            "the directive with a failure marker, 'abort' stops the run"
        ),
    )

    log_level: str = Field(default="INFO", description="Root logging level")

    model_config = SettingsConfigDict(
        env_prefix="HOSTPOLICY_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("transport", "prefix", "username", "password", "transport_args", "mail")
    @classmethod
    def _blank_is_unset(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("include", mode="before")
    @classmethod
    def _blank_path_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("fetch_failure", mode="before")
    @classmethod
    def _normalise_fetch_failure(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def as_values(self) -> dict[str, str | None]:
        """Return the settings as flat string values suitable for :class:`Config`."""

        values: dict[str, str | None] = {}
        for key, value in self.model_dump().items():
            if value is None:
                values[key] = None
            elif isinstance(value, bool):
                values[key] = "1" if value else "0"
            else:
                values[key] = str(value)
        return values


_BOOL_FIELDS = frozenset(
    name for name, field in ClientSettings.model_fields.items() if field.annotation is bool
)


def _normalise_bool(value: str | None) -> str | None:
    """Spell a recognised boolean as ``"1"``/``"0"``; anything else is left for validation."""

    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return "1"
    if lowered in _FALSE_VALUES:
        return "0"
    return value


def normalise_key(key: str) -> str:
    """Normalise a configuration key (``No-Delete`` -> ``no_delete``)."""

    return key.strip().lower().replace("-", "_")


class Config(Mapping[str, str | None]):
    """Immutable flat configuration.

    Keys are unique; values are strings (or ``None`` for an explicitly
    undefined value) and are interpreted contextually.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, str | None] | None = None) -> None:
        self._values: dict[str, str | None] = {}
        for key, value in (values or {}).items():
            self._values[normalise_key(key)] = None if value is None else str(value)

    def __getitem__(self, key: str) -> str | None:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Config({self._values!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Config):
            return self._values == other._values
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._values.items(), key=lambda kv: kv[0])))

    def with_values(self, **values: str | None) -> Config:
        """Return a new Config with *values* layered on top of this one."""

        merged = dict(self._values)
        merged.update(values)
        return Config(merged)

    def get_bool(self, key: str, default: bool = False) -> bool:
        raw = self._values.get(key)
        if raw is None:
            return default
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"Configuration key {key!r} is not a boolean: {raw!r}")

    def get_int(self, key: str, default: int = 0) -> int:
        raw = self._values.get(key)
        if raw is None or not raw.strip():
            return default
        try:
            return int(raw.strip())
        except ValueError as e:
            raise ConfigurationError(
                f"Configuration key {key!r} is not an integer: {raw!r}"
            ) from e

    def settings(self) -> ClientSettings:
        """Validate the core options into a :class:`ClientSettings`.

        Raises:
            ConfigurationError: If a core option has an invalid value.
        """
        known = {
            key: value
            for key, value in self._values.items()
            if key in ClientSettings.model_fields and value is not None
        }
        try:
            return ClientSettings(**known)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def dump(self) -> str:
        """Render the configuration as sorted ``key = value`` lines."""

        lines = []
        for key in sorted(self._values):
            value = self._values[key]
            lines.append(f"{key} = {'' if value is None else value}")
        return "\n".join(lines) + "\n"


def parse_config_text(text: str) -> dict[str, str]:
    """Parse ``key = value`` configuration text.

    Rules:
    - ``#`` starts a comment, including trailing same-line comments.
    - Blank lines are ignored.
    - A trailing backslash continues the line onto the next one.
    - Lines without ``=`` are ignored.
    """

    values: dict[str, str] = {}
    pending = ""
    for raw_line in text.splitlines():
        line = raw_line.split("#", 1)[0].rstrip()

        if line.endswith("\\"):
            pending += line[:-1]
            continue

        line = pending + line
        pending = ""

        if not line.strip() or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = normalise_key(key)
        if not key:
            continue
        values[key] = value.strip()

    if pending.strip() and "=" in pending:
        key, value = pending.split("=", 1)
        values[normalise_key(key)] = value.strip()

    return values


def load_config_file(path: Path) -> dict[str, str]:
    """Load a configuration file; a missing file yields an empty mapping."""

    if not path.exists():
        logger.debug("Config file not present", extra={"path": str(path)})
        return {}
    return parse_config_text(path.read_text(encoding="utf-8"))


def build_config(
    *,
    defaults: Mapping[str, str | None],
    discovered: Mapping[str, str | None] | None = None,
    file_values: Mapping[str, str | None] | None = None,
    cli_values: Mapping[str, str | None] | None = None,
) -> Config:
    """Merge configuration sources; later sources overwrite earlier ones."""

    merged: dict[str, str | None] = {}
    for source in (defaults, discovered or {}, file_values or {}, cli_values or {}):
        for key, value in source.items():
            merged[normalise_key(key)] = value

    for key in _BOOL_FIELDS.intersection(merged):
        merged[key] = _normalise_bool(merged[key])
    return Config(merged)
