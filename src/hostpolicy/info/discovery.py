"""Discovery of facts about the local host.

The result is a flat mapping of string keys to string values which becomes
part of the configuration (and so is visible to policies and usable in
``$key`` references).
"""

from __future__ import annotations

import logging
import os
import platform
import re
import shutil
import socket
import subprocess

logger = logging.getLogger(__name__)

_INET_RE = re.compile(r"\binet (?:addr:)?([0-9.]+)")
_INET6_RE = re.compile(r"\binet6 (?:addr: ?)?([0-9a-fA-F:]+)")


def parse_addresses(output: str) -> tuple[list[str], list[str]]:
    """Extract IPv4 and IPv6 addresses from ``ip addr``/``ifconfig`` output.

    Loopback and link-local addresses are skipped.
    """

    ipv4: list[str] = []
    ipv6: list[str] = []
    for line in output.splitlines():
        for match in _INET_RE.finditer(line):
            addr = match.group(1)
            if not addr.startswith("127.") and addr not in ipv4:
                ipv4.append(addr)
        for match in _INET6_RE.finditer(line):
            addr = match.group(1).lower()
            if addr == "::1" or addr.startswith("fe80") or addr in ipv6:
                continue
            ipv6.append(addr)
    return ipv4, ipv6


def _address_listing() -> str:
    for cmd in (["ip", "-o", "addr"], ["ifconfig", "-a"]):
        if shutil.which(cmd[0]) is None:
            continue
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=10)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("Address probe failed", extra={"command": cmd, "error": str(e)})
            continue
        if result.returncode == 0:
            return result.stdout
    return ""


def split_fqdn(fqdn: str) -> tuple[str, str]:
    """Split a fully-qualified name into (hostname, domain)."""

    hostname, sep, domain = fqdn.partition(".")
    if not sep or not domain:
        return fqdn, fqdn
    return hostname, domain


def discover_environment() -> dict[str, str]:
    """Return facts about this host."""

    info: dict[str, str] = {}

    fqdn = socket.getfqdn() or socket.gethostname()
    info["fqdn"] = fqdn
    info["hostname"], info["domain"] = split_fqdn(fqdn)

    info["os"] = platform.system().lower()
    info["release"] = platform.release()
    info["arch"] = platform.machine()
    info["path"] = os.environ.get("PATH", "")

    ipv4, ipv6 = parse_addresses(_address_listing())
    for index, addr in enumerate(ipv4, start=1):
        info[f"ip_{index}"] = addr
    for index, addr in enumerate(ipv6, start=1):
        info[f"ip6_{index}"] = addr
    info["ip_count"] = str(len(ipv4))
    info["ip6_count"] = str(len(ipv6))

    try:
        averages = os.getloadavg()
    except (AttributeError, OSError) as e:
        logger.debug("Load average unavailable", extra={"error": str(e)})
    else:
        formatted = [f"{value:.2f}" for value in averages]
        info["load_average"] = " ".join(formatted)
        info["load_average_1"], info["load_average_5"], info["load_average_15"] = formatted

    logger.debug("Environment discovered", extra={"keys": sorted(info)})
    return info
