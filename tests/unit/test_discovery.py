"""Unit tests for host fact discovery."""

from __future__ import annotations

import pytest

from hostpolicy.info import discovery
from hostpolicy.info.discovery import discover_environment, parse_addresses, split_fqdn

IP_ADDR_OUTPUT = """\
1: lo    inet 127.0.0.1/8 scope host lo\\       valid_lft forever preferred_lft forever
1: lo    inet6 ::1/128 scope host \\       valid_lft forever preferred_lft forever
2: eth0    inet 192.168.1.10/24 brd 192.168.1.255 scope global eth0
2: eth0    inet6 2001:db8::10/64 scope global \\       valid_lft forever
2: eth0    inet6 fe80::1/64 scope link \\       valid_lft forever
3: eth1    inet 10.0.0.5/8 brd 10.255.255.255 scope global eth1
"""

IFCONFIG_OUTPUT = """\
em0: flags=8843<UP,BROADCAST,RUNNING,SIMPLEX,MULTICAST> metric 0 mtu 1500
\tinet 172.16.0.2 netmask 0xffff0000 broadcast 172.16.255.255
\tinet6 fe80::a00:27ff:fe8d:2a1%em0 prefixlen 64 scopeid 0x1
lo0: flags=8049<UP,LOOPBACK,RUNNING,MULTICAST> metric 0 mtu 16384
\tinet 127.0.0.1 netmask 0xff000000
eth0      Link encap:Ethernet
          inet addr:10.1.2.3  Bcast:10.1.255.255  Mask:255.255.0.0
"""


def test_parse_ip_addr_output() -> None:
    ipv4, ipv6 = parse_addresses(IP_ADDR_OUTPUT)

    assert ipv4 == ["192.168.1.10", "10.0.0.5"]
    assert ipv6 == ["2001:db8::10"]


def test_parse_ifconfig_output() -> None:
    ipv4, ipv6 = parse_addresses(IFCONFIG_OUTPUT)

    assert ipv4 == ["172.16.0.2", "10.1.2.3"]
    assert ipv6 == []


@pytest.mark.parametrize(
    ("fqdn", "expected"),
    [
        ("web1.example.com", ("web1", "example.com")),
        ("localhost", ("localhost", "localhost")),
    ],
)
def test_split_fqdn(fqdn: str, expected: tuple[str, str]) -> None:
    assert split_fqdn(fqdn) == expected


def test_discover_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(discovery.socket, "getfqdn", lambda: "db2.example.org")
    monkeypatch.setattr(discovery, "_address_listing", lambda: IP_ADDR_OUTPUT)

    info = discover_environment()

    assert info["fqdn"] == "db2.example.org"
    assert info["hostname"] == "db2"
    assert info["domain"] == "example.org"
    assert info["ip_1"] == "192.168.1.10"
    assert info["ip_2"] == "10.0.0.5"
    assert info["ip_count"] == "2"
    assert info["ip6_1"] == "2001:db8::10"
    assert info["ip6_count"] == "1"
    assert all(isinstance(value, str) for value in info.values())
