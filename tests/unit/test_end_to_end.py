"""End-to-end tests: resolve from a local tree, write the artifact, run it."""

from __future__ import annotations

from pathlib import Path

import pytest

from hostpolicy.artifact.builder import ArtifactBuilder
from hostpolicy.artifact.runner import ArtifactRunner
from hostpolicy.policy.resolver import PolicyResolver
from hostpolicy.transport.base import TransportOptions
from hostpolicy.transport.local import LocalTransport


def _build(policy_root: Path, config, tmp_path: Path) -> Path:
    transport = LocalTransport(TransportOptions(prefix=str(policy_root)))
    resolved = PolicyResolver(transport, config).resolve()
    assert resolved is not None
    return ArtifactBuilder("local").write(resolved, tmp_path / "policy.py")


def test_policy_without_directives(
    make_config, policy_root: Path, tmp_path: Path, capfd: pytest.CaptureFixture[str]
) -> None:
    (policy_root / "policies" / "default").write_text("assert role == 'web'\n", encoding="utf-8")
    config = make_config(role="web", transport="local")

    path = _build(policy_root, config, tmp_path)

    assert "role = 'web'" in path.read_text(encoding="utf-8")
    assert ArtifactRunner().run(path) == 0
    assert capfd.readouterr().out == ""


def test_policy_logging_and_modules(
    make_config, policy_root: Path, tmp_path: Path, capfd: pytest.CaptureFixture[str]
) -> None:
    (policy_root / "policies" / "default").write_text(
        "FetchModule helpers.py\nFetchPolicy $role.policy\n", encoding="utf-8"
    )
    (policy_root / "policies" / "web.policy").write_text(
        "log_message(greet(CONFIG['role']))\nlog_message(fetch_file('motd').strip(), level='notice')\n",
        encoding="utf-8",
    )
    (policy_root / "modules" / "helpers.py").write_text(
        "def greet(role):\n    return f'configured {role}'\n", encoding="utf-8"
    )
    (policy_root / "files" / "motd").write_text("welcome\n", encoding="utf-8")
    config = make_config(role="web", transport="local")

    path = _build(policy_root, config, tmp_path)

    assert ArtifactRunner().run(path) == 0
    assert capfd.readouterr().out.splitlines() == [
        "test.example.com [info] configured web",
        "test.example.com [notice] welcome",
    ]


def test_failing_policy_returns_non_zero(
    make_config, policy_root: Path, tmp_path: Path
) -> None:
    (policy_root / "policies" / "default").write_text("raise SystemExit(4)\n", encoding="utf-8")
    config = make_config(transport="local")

    path = _build(policy_root, config, tmp_path)

    assert ArtifactRunner().run(path) == 4


def test_short_boolean_spelling_runs_without_privileges(
    make_config, policy_root: Path, tmp_path: Path, capfd: pytest.CaptureFixture[str]
) -> None:
    (policy_root / "policies" / "default").write_text("log_message('ran')\n", encoding="utf-8")
    config = make_config(transport="local", require_superuser="n")

    assert config.settings().require_superuser is False
    path = _build(policy_root, config, tmp_path)

    assert ArtifactRunner().run(path) == 0
    captured = capfd.readouterr()
    assert captured.out == "test.example.com [info] ran\n"
    assert "ConfigurationError" not in captured.err
