"""Test configuration and fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from hostpolicy.core.config import ClientSettings, Config, build_config
from hostpolicy.policy.directives import DirectiveKind
from hostpolicy.transport.base import Transport, TransportOptions


class FakeTransport(Transport):
    """In-memory transport that records every fetch."""

    name = "fake"

    def __init__(self, files: dict[str, str | bytes]) -> None:
        super().__init__(TransportOptions(prefix="memory://"))
        self.files = files
        self.fetched: list[str] = []

    def is_available(self) -> bool:
        return True

    def fetch_contents(self, prefix: str, file: str) -> bytes | None:
        key = f"{prefix}/{file}"
        self.fetched.append(key)
        content = self.files.get(key)
        if content is None:
            return None
        return content if isinstance(content, bytes) else content.encode("utf-8")


@pytest.fixture
def fake_transport() -> type[FakeTransport]:
    """Provide the in-memory transport class."""
    return FakeTransport


@pytest.fixture
def policy_root(tmp_path: Path) -> Path:
    """Provide an empty policy source tree."""
    root = tmp_path / "source"
    for kind in DirectiveKind:
        (root / kind.prefix).mkdir(parents=True)
    (root / "files").mkdir()
    return root


@pytest.fixture
def make_config(tmp_path: Path, policy_root: Path):
    """Build a Config for tests: no privileges needed, lock file under tmp_path."""

    def _make(**values: str | None) -> Config:
        defaults = ClientSettings(_env_file=None).as_values()
        return build_config(
            defaults=defaults,
            discovered={"fqdn": "test.example.com", "hostname": "test", "domain": "example.com"},
            cli_values={
                "prefix": str(policy_root),
                "lockfile": str(tmp_path / "hostpolicy.lock"),
                "require_superuser": "0",
                **values,
            },
        )

    return _make
