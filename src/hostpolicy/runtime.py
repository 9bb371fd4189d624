"""Runtime support imported by generated artifacts.

A generated artifact re-binds the transport it was fetched with, collects
log messages from the executed policy into a :class:`LogBuffer` and flushes
them at the end of the run, either by mail or to stdout.
"""

from __future__ import annotations

import logging
import smtplib
import socket
import sys
from collections.abc import Mapping
from email.message import EmailMessage

from hostpolicy.core.config import Config
from hostpolicy.core.errors import PrivilegeError
from hostpolicy.core.logging import configure_logging
from hostpolicy.lifecycle.privileges import require_superuser
from hostpolicy.transport.base import Transport, TransportOptions
from hostpolicy.transport.registry import create_transport

logger = logging.getLogger(__name__)


class LogBuffer(dict[str, list[str]]):
    """Messages logged by the executed policy, keyed by level."""

    def add(self, level: str, message: str) -> None:
        self.setdefault(level.lower(), []).append(str(message))

    def lines(self) -> list[str]:
        return [f"[{level}] {message}" for level, messages in self.items() for message in messages]


def bind_transport(name: str, values: Mapping[str, str | None]) -> Transport:
    """Re-create the transport used to fetch the policy.

    Exits the process when the transport reports itself unavailable.
    """

    config = Config(values)
    settings = config.settings()
    configure_logging(settings.log_level, verbose=settings.verbose)

    transport = create_transport(name, TransportOptions.from_config(config))
    if not transport.is_available():
        print(f"Transport {name} is not available: {transport.error()}", file=sys.stderr)
        raise SystemExit(1)

    transport.setup()
    return transport


def check_privileges(values: Mapping[str, str | None]) -> None:
    """Exit unless running as superuser (when required by the configuration)."""

    if not Config(values).get_bool("require_superuser", default=True):
        return
    try:
        require_superuser()
    except PrivilegeError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(1) from e


def fetch_file(transport: Transport, name: str) -> str | None:
    """Fetch ``files/<name>`` from the policy source as text."""

    content = transport.fetch_contents("files", name)
    if content is None:
        return None
    return content.decode("utf-8", errors="replace")


def execute_policy(source: str, namespace: dict[str, object]) -> None:
    """Execute the policy body in the artifact's global namespace."""

    exec(compile(source, "<policy>", "exec"), namespace)


def _send_mail(log: LogBuffer, fqdn: str, values: Mapping[str, str | None]) -> None:
    message = EmailMessage()
    message["Subject"] = f"hostpolicy report for {fqdn}"
    message["From"] = values.get("mail_from") or "root"
    message["To"] = values["mail"] or ""
    message.set_content("\n".join(log.lines()) + "\n")

    with smtplib.SMTP(values.get("smtp_host") or "localhost") as smtp:
        smtp.send_message(message)


def flush_log(log: LogBuffer, values: Mapping[str, str | None]) -> None:
    """Deliver collected policy log entries, if there are any."""

    if not any(log.values()):
        return

    fqdn = values.get("fqdn") or socket.getfqdn()

    if values.get("mail"):
        try:
            _send_mail(log, fqdn, values)
            logger.info("Policy log mailed", extra={"to": values["mail"]})
            return
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to mail policy log; printing instead", extra={"error": str(e)})

    for line in log.lines():
        print(f"{fqdn} {line}")
