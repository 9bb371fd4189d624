"""CLI entrypoint for the policy client.

Builds the configuration (defaults < host facts < config file < flags),
then hands over to the lifecycle controller for a single run.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from hostpolicy import __version__
from hostpolicy.core.config import ClientSettings, Config, build_config, load_config_file
from hostpolicy.core.errors import ConfigurationError, HostPolicyError
from hostpolicy.core.logging import configure_logging
from hostpolicy.info.discovery import discover_environment
from hostpolicy.lifecycle.controller import LifecycleController
from hostpolicy.transport.registry import available_transports

logger = logging.getLogger(__name__)

_FLAG_KEYS = ("dump", "no_execute", "no_delete", "verbose")


def build_parser() -> argparse.ArgumentParser:
    # Unset flags are suppressed so that only explicit values override
    # the config file.
    parser = argparse.ArgumentParser(
        prog="hostpolicy",
        description="Fetch, assemble and run the configuration policy for this host",
        argument_default=argparse.SUPPRESS,
    )
    parser.add_argument("--version", action="version", version=f"hostpolicy {__version__}")

    source = parser.add_argument_group("source")
    source.add_argument(
        "--transport",
        help="Transport backend (see --transports); inferred from --prefix when omitted",
    )
    source.add_argument(
        "--prefix",
        help="Root location of policies/, modules/ and files/ (path, URL or repository)",
    )
    source.add_argument("--username", help="Username for HTTP basic-auth")
    source.add_argument("--password", help="Password for HTTP basic-auth")
    source.add_argument(
        "--transport-args",
        dest="transport_args",
        help="Extra arguments for the sync tool, e.g. '--depth 1'",
    )
    source.add_argument(
        "--timeout",
        type=float,
        help="Timeout in seconds for fetches and sync tools (0 means no timeout)",
    )
    source.add_argument(
        "--transports",
        action="store_true",
        help="List the available transports and exit",
    )

    run = parser.add_argument_group("run")
    run.add_argument("--config", dest="config_file", help="Path to the configuration file")
    run.add_argument("--delay", type=int, help="Maximum random delay in seconds before fetching")
    run.add_argument("--lockfile", help="Lock file preventing concurrent runs")
    run.add_argument("--include", help="Local file inserted verbatim into the artifact")
    run.add_argument("--mail", help="Mail policy log entries to this address")
    run.add_argument("--role", help="Role of this host, visible to policies as $role")
    run.add_argument(
        "--set",
        dest="overrides",
        action="append",
        metavar="KEY=VALUE",
        help="Set an arbitrary configuration key (repeatable)",
    )
    run.add_argument("--dump", action="store_true", help="Print the configuration and exit")
    run.add_argument(
        "--no-execute",
        dest="no_execute",
        action="store_true",
        help="Build the artifact but do not run it",
    )
    run.add_argument(
        "--no-delete",
        dest="no_delete",
        action="store_true",
        help="Keep the workspace and artifact after the run",
    )
    run.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    return parser


def cli_values(args: argparse.Namespace) -> dict[str, str | None]:
    """Return only the configuration values given explicitly on the command line."""

    supplied: dict[str, Any] = dict(vars(args))
    supplied.pop("transports", None)
    overrides = supplied.pop("overrides", None) or []

    values: dict[str, str | None] = {}
    for key, value in supplied.items():
        if key in _FLAG_KEYS:
            values[key] = "1" if value else "0"
        else:
            values[key] = str(value)

    for item in overrides:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ConfigurationError(f"--set expects KEY=VALUE, got {item!r}")
        values[key.strip()] = value.strip()

    return values


def load_configuration(args: argparse.Namespace) -> Config:
    """Merge defaults, host facts, the config file and command-line values."""

    cli = cli_values(args)
    defaults = ClientSettings().as_values()

    config_path = Path(cli.get("config_file") or defaults["config_file"] or "")
    file_values = load_config_file(config_path)

    return build_config(
        defaults=defaults,
        discovered=discover_environment(),
        file_values=file_values,
        cli_values=cli,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "transports", False):
        for name in available_transports():
            print(name)
        return 0

    try:
        config = load_configuration(args)
        settings = config.settings()
    except (ValidationError, ConfigurationError) as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error:", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level, verbose=settings.verbose)

    try:
        return LifecycleController(config).run()

    except HostPolicyError as e:
        logger.error(str(e), extra={"error": type(e).__name__})
        print(str(e), file=sys.stderr)
        return e.exit_code

    except Exception:
        logger.exception("Run failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
