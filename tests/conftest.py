"""Pytest configuration and shared fixtures for tro_spank tests.

Provides:
- FakeSpank: in-memory stand-in for the scheduler's SPANK handle
- RecordingRunner: subprocess.run replacement that records tro-utils calls
- XALT trace directory builders
- Plugin configuration fixtures
"""

import json
from pathlib import Path
import subprocess
from typing import Any, Dict, List, Optional

import pytest

from tro_spank.config import load_settings

# ============================================================================
# Test Doubles
# ============================================================================


class FakeSpank:
    """SPANK handle backed by plain Python state."""

    def __init__(
        self,
        context: str = "remote",
        job_id: int = 4242,
        job_uid: int = 1000,
        argv: Optional[List[str]] = None,
        env: Optional[Dict[str, str]] = None,
        option_set: bool = True,
    ):
        self._context = context
        self._job_id = job_id
        self._job_uid = job_uid
        self._argv = list(argv or [])
        self.env: Dict[str, str] = dict(env or {})
        self.option_set = option_set
        self.registered: List[tuple] = []
        self.setenv_calls: List[tuple] = []

    def context(self) -> str:
        return self._context

    def job_id(self) -> int:
        return self._job_id

    def job_uid(self) -> int:
        return self._job_uid

    def plugin_argv(self) -> List[str]:
        return list(self._argv)

    def getenv(self, name: str) -> Optional[str]:
        return self.env.get(name)

    def setenv(self, name: str, value: str, overwrite: bool) -> None:
        self.setenv_calls.append((name, value, overwrite))
        if overwrite or name not in self.env:
            self.env[name] = value

    def register_option(self, name: str, usage: str) -> None:
        self.registered.append((name, usage))

    def is_option_set(self, name: str) -> bool:
        return self.option_set and any(registered == name for registered, _ in self.registered)


class RecordingRunner:
    """subprocess.run replacement recording every invocation.

    Args:
        fail_on: Subcommand word (e.g. "sign", "performance") whose call exits 1
    """

    def __init__(self, fail_on: Optional[str] = None):
        self.fail_on = fail_on
        self.calls: List[List[str]] = []
        self.kwargs: List[Dict[str, Any]] = []

    def __call__(self, argv, **kwargs) -> subprocess.CompletedProcess:
        self.calls.append(list(argv))
        self.kwargs.append(kwargs)
        if self.fail_on is not None and self.fail_on in argv:
            return subprocess.CompletedProcess(argv, 1, stdout="", stderr=f"{self.fail_on} exploded")
        return subprocess.CompletedProcess(argv, 0, stdout="ok", stderr="")

    def subcommands(self) -> List[str]:
        """Subcommand of each call: 'arrangement', 'performance' or 'sign'."""
        names = []
        for argv in self.calls:
            for word in ("arrangement", "performance", "sign"):
                if word in argv:
                    names.append(word)
                    break
        return names


def write_trace(trace_dir: Path, name: str, job_id: Any, start_time: Any = 1000, end_time: Any = 2000, cmdline: Optional[List[str]] = None) -> Path:
    """Write an XALT-style run record."""
    record: Dict[str, Any] = {
        "userT": {"job_id": str(job_id), "exec_path": "/usr/bin/python3"},
        "userDT": {"start_time": start_time, "end_time": end_time, "run_time": 0.0},
    }
    if cmdline is not None:
        record["cmdlineA"] = cmdline
    path = trace_dir / name
    path.write_text(json.dumps(record), encoding="utf-8")
    return path


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def xalt_dir(tmp_path: Path) -> Path:
    """Fake XALT installation directory."""
    path = tmp_path / "xalt"
    (path / "lib64").mkdir(parents=True)
    (path / "lib64" / "libxalt_init.so").touch()
    return path


@pytest.fixture
def submit_dir(tmp_path: Path) -> Path:
    """Job submission directory."""
    path = tmp_path / "submit"
    path.mkdir()
    return path


@pytest.fixture
def trace_dir(tmp_path: Path) -> Path:
    """Empty XALT trace directory."""
    path = tmp_path / "home" / "alice" / ".xalt.d"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def plugin_argv(xalt_dir: Path, tmp_path: Path) -> List[str]:
    """Complete plugin argument vector."""
    return [
        f"xalt_dir={xalt_dir}",
        f"gpg_home={tmp_path / 'gnupg'}",
        "gpg_fingerprint=0123456789ABCDEF",
        "gpg_passphrase=s3cret",
        f"trs_caps={tmp_path / 'trs.jsonld'}",
        f"tro_utils={tmp_path / 'bin' / 'tro-utils'}",
    ]


@pytest.fixture
def job_env(submit_dir: Path) -> Dict[str, str]:
    """Environment of a job submitted by alice."""
    return {"SLURM_SUBMIT_DIR": str(submit_dir), "SLURM_JOB_USER": "alice"}


@pytest.fixture
def settings():
    """Default operator settings, independent of the caller's environment."""
    return load_settings(log_level="DEBUG", tool_timeout_s=None, option_name="generate-tro", trace_dir_name=".xalt.d")


@pytest.fixture
def make_trace():
    """Writer for XALT-style run records: make_trace(dir, name, job_id, ...)."""
    return write_trace


@pytest.fixture
def make_spank():
    """Factory for FakeSpank handles."""
    return FakeSpank


@pytest.fixture
def runner() -> RecordingRunner:
    """tro-utils runner that always succeeds."""
    return RecordingRunner()


@pytest.fixture
def make_runner():
    """Factory for RecordingRunner, e.g. make_runner(fail_on="sign")."""
    return RecordingRunner
