"""Shared pytest fixtures for manager-deployer tests.

Nothing here talks to a real cluster: kubectl is replaced by recording
executors and the kubernetes API by mocks.
"""

import tempfile
from pathlib import Path
from typing import Generator, Optional

import pytest

from manager_deployer.error_handling import ApplyErrorKind, ManifestCommandError

VALID_KUBECONFIG = """\
apiVersion: v1
kind: Config
clusters:
- name: test
  cluster:
    server: https://127.0.0.1:6443
    insecure-skip-tls-verify: true
users:
- name: test-user
  user:
    token: test-token
contexts:
- name: test
  context:
    cluster: test
    user: test-user
    namespace: default
current-context: test
"""

CONFIG_ENV_VARS = [
    "MANAGER_DEPLOYER_KUBECONFIG",
    "MANAGER_DEPLOYER_NAMESPACE",
    "MANAGER_DEPLOYER_CLUSTER_DOMAIN",
    "MANAGER_DEPLOYER_APPLY_INTERVAL",
    "MANAGER_DEPLOYER_APPLY_TIMEOUT",
    "CLUSTER_API_SERVER_IMAGE",
    "CLUSTER_API_CONTROLLER_MANAGER_IMAGE",
    "CLUSTER_API_MACHINE_CONTROLLER_IMAGE",
]


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")


def transient_error(kind: ApplyErrorKind = ApplyErrorKind.CONNECTION_REFUSED) -> ManifestCommandError:
    """Build a kubectl failure of a transient kind."""
    return ManifestCommandError(
        "apply",
        kind,
        returncode=1,
        output="The connection to the server 127.0.0.1:6443 was refused",
    )


def fatal_error() -> ManifestCommandError:
    """Build a kubectl failure that must not be retried."""
    return ManifestCommandError(
        "apply",
        ApplyErrorKind.FATAL,
        returncode=1,
        output='error: error validating "STDIN": error validating data',
    )


class RecordingExecutor:
    """Executor stub that replays a script of outcomes.

    Each entry in ``apply_outcomes`` is either None (success) or an
    exception to raise. Once the script runs out, the last entry repeats.
    """

    def __init__(self, apply_outcomes=None, delete_error: Optional[Exception] = None):
        self.apply_outcomes = list(apply_outcomes or [None])
        self.delete_error = delete_error
        self.applied: list[str] = []
        self.deleted: list[str] = []

    def apply(self, manifest: str) -> None:
        self.applied.append(manifest)
        index = min(len(self.applied), len(self.apply_outcomes)) - 1
        outcome = self.apply_outcomes[index]
        if outcome is not None:
            raise outcome

    def delete(self, manifest: str) -> None:
        self.deleted.append(manifest)
        if self.delete_error is not None:
            raise self.delete_error


class FakeClock:
    """Monotonic clock that only moves when sleep is called."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def valid_kubeconfig() -> str:
    """A kubeconfig that loads without contacting a cluster."""
    return VALID_KUBECONFIG


@pytest.fixture
def kubeconfig_file(tmp_path: Path, valid_kubeconfig: str) -> Path:
    """A kubeconfig written to disk, outside the isolated temp dir."""
    path = tmp_path / "kubeconfig.yaml"
    path.write_text(valid_kubeconfig)
    return path


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def no_sleep():
    """A sleep replacement that records requested delays."""
    calls: list[float] = []

    def sleep(seconds: float) -> None:
        calls.append(seconds)

    sleep.calls = calls
    return sleep


@pytest.fixture
def clean_env(monkeypatch):
    """Provide a clean environment without deployer config vars."""
    for var in CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


# Autouse fixture for test isolation
@pytest.fixture(autouse=True)
def isolated_tempdir(tmp_path: Path, monkeypatch) -> Generator[Path, None, None]:
    """Redirect tempfile to a per-test directory.

    Lets tests assert that no temporary kubeconfig is left behind.
    """
    temp_dir = tmp_path / "tmp"
    temp_dir.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(temp_dir))

    for var in CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    yield temp_dir
