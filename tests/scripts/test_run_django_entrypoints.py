from __future__ import annotations

import subprocess

import pytest

from lifelog_cache import run_django


def _fake_run(calls: list[list[str]], failing_command: str | None, returncode: int):  # type: ignore[no-untyped-def]
    def fake_run(argv: list[str]) -> subprocess.CompletedProcess[list[str]]:
        calls.append(list(argv))
        code = returncode if argv[2] == failing_command else 0
        return subprocess.CompletedProcess(args=argv, returncode=code)

    return fake_run


@pytest.mark.scripts
def test_serve_propagates_migrate_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []
    manage_script = "/tmp/manage.py"
    monkeypatch.setattr(run_django.subprocess, "run", _fake_run(calls, "migrate", 2))
    monkeypatch.setattr(run_django, "_manage_script", lambda: manage_script)

    exit_code = run_django.serve()

    assert exit_code == 2
    assert calls == [[run_django.sys.executable, manage_script, "migrate"]]


@pytest.mark.scripts
def test_serve_starts_daemon_after_migrate(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []
    manage_script = "/tmp/manage.py"
    monkeypatch.setattr(run_django.subprocess, "run", _fake_run(calls, None, 0))
    monkeypatch.setattr(run_django, "_manage_script", lambda: manage_script)

    exit_code = run_django.serve()

    assert exit_code == 0
    assert calls == [
        [run_django.sys.executable, manage_script, "migrate"],
        [run_django.sys.executable, manage_script, "sync_lifelogs", "--daemon"],
    ]


@pytest.mark.scripts
def test_sync_lifelogs_propagates_pass_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []
    manage_script = "/tmp/manage.py"
    monkeypatch.setattr(run_django.subprocess, "run", _fake_run(calls, "sync_lifelogs", 1))
    monkeypatch.setattr(run_django, "_manage_script", lambda: manage_script)

    exit_code = run_django.sync_lifelogs()

    assert exit_code == 1
    assert calls == [
        [run_django.sys.executable, manage_script, "migrate"],
        [run_django.sys.executable, manage_script, "sync_lifelogs"],
    ]


@pytest.mark.scripts
def test_manage_script_points_at_bundled_manage_module() -> None:
    assert run_django._manage_script().endswith("lifelog_sync/manage.py")
