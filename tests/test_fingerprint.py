from __future__ import annotations

import subprocess

import pytest

from build_registry import fingerprint
from build_registry.errors import FingerprintError, ValidationError
from build_registry.fingerprint import git_head_fingerprint, resolve_fingerprint

SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


def _fake_run(stdout: bytes = b"", error: Exception | None = None):
    calls = []

    def run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        if error is not None:
            raise error
        return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr=b"")

    run.calls = calls
    return run


def test_environment_variable_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _fake_run(stdout=SHA.encode())
    monkeypatch.setattr(fingerprint.subprocess, "run", fake)
    monkeypatch.setenv("BUILD_FINGERPRINT", "ci-run-42")

    assert resolve_fingerprint() == "ci-run-42"
    assert fake.calls == []


def test_custom_environment_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PIPELINE_RUN", "run-7")
    assert resolve_fingerprint("PIPELINE_RUN") == "run-7"


def test_falls_back_to_git_head(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _fake_run(stdout=(SHA + "\n").encode())
    monkeypatch.setattr(fingerprint.subprocess, "run", fake)
    monkeypatch.delenv("BUILD_FINGERPRINT", raising=False)

    assert resolve_fingerprint(cwd="/tmp/repo", timeout=3) == SHA
    cmd, kwargs = fake.calls[0]
    assert cmd == ["git", "rev-parse", "HEAD"]
    assert kwargs["cwd"] == "/tmp/repo"
    assert kwargs["timeout"] == 3


@pytest.mark.parametrize(
    "error",
    [
        subprocess.CalledProcessError(128, ["git"], stderr=b"fatal: not a git repository"),
        subprocess.TimeoutExpired(["git"], 10),
        FileNotFoundError("git"),
    ],
)
def test_git_failures_raise_fingerprint_error(
    monkeypatch: pytest.MonkeyPatch, error: Exception
) -> None:
    monkeypatch.setattr(fingerprint.subprocess, "run", _fake_run(error=error))

    with pytest.raises(FingerprintError):
        git_head_fingerprint()


def test_malformed_fingerprint_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BUILD_FINGERPRINT", "not a fingerprint")
    with pytest.raises(ValidationError):
        resolve_fingerprint()
