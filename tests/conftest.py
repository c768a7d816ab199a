from __future__ import annotations

import pytest

from daemonpool.supervisor import ProcessDaemon, process_utils
from daemonpool.supervisor import supervisor as supervisor_module
from tests.helpers.fakes import FakeOS


@pytest.fixture(autouse=True)
def keep_test_logging(monkeypatch):
    # run() reconfigures the root logger, which would detach caplog.
    calls = []
    monkeypatch.setattr(supervisor_module, "setup_logging", lambda level: calls.append(level))
    return calls


@pytest.fixture
def fake_os(monkeypatch):
    fake = FakeOS()
    monkeypatch.setattr(process_utils, "fork", fake.fork)
    monkeypatch.setattr(process_utils, "setsid", fake.setsid)
    monkeypatch.setattr(process_utils, "getpid", lambda: fake.pid)
    monkeypatch.setattr(process_utils, "detach_stdin", lambda: None)
    monkeypatch.setattr(process_utils, "set_process_title", fake.titles.append)
    monkeypatch.setattr(process_utils, "reap_exited_children", fake.reap)
    monkeypatch.setattr(process_utils, "kill_process", fake.kill)
    monkeypatch.setattr(process_utils, "terminate_process", fake.terminate)
    monkeypatch.setattr(process_utils, "pid_exists", lambda pid: pid in fake.alive)
    monkeypatch.setattr(supervisor_module.time, "sleep", fake.sleep)
    return fake


@pytest.fixture
def pid_file(tmp_path):
    return tmp_path / "run" / "daemon.pid"


@pytest.fixture
def daemon(pid_file):
    instance = ProcessDaemon().set_pid_file(pid_file).set_handler(lambda index: None)
    instance.prog = "demo.py"
    return instance
