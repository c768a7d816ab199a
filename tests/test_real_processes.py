from __future__ import annotations

import contextlib
import os
import subprocess
import sys
import textwrap
import time
from pathlib import Path

import psutil
import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent

EMBEDDING_SCRIPT = textwrap.dedent(
    """
    import os
    import time

    from daemonpool import ProcessDaemon


    def handler(index):
        with open(os.environ["MARKER_FILE"], "a") as marker:
            marker.write(f"{index} {os.getpid()}\\n")
        while True:
            time.sleep(1)


    ProcessDaemon().set_pid_file(os.environ["PID_FILE"]).set_process_num(3).set_handler(handler).run()
    """
)

pytestmark = pytest.mark.skipif(not hasattr(os, "fork"), reason="requires os.fork")


def _wait_for(predicate, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.1)
    return predicate()


def _is_gone(pid):
    try:
        return psutil.Process(pid).status() == psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return True


def _markers(path):
    if not path.exists():
        return []
    return [tuple(int(part) for part in line.split()) for line in path.read_text().splitlines() if line]


def _supervisor_pid(pid_file):
    try:
        text = pid_file.read_text().strip()
    except OSError:
        return None
    return int(text) if text.isdigit() else None


@pytest.fixture
def embedding_program(tmp_path):
    script = tmp_path / "pool.py"
    script.write_text(EMBEDDING_SCRIPT)
    pid_file = tmp_path / "daemon.pid"
    marker_file = tmp_path / "markers.txt"
    console_log = tmp_path / "console.log"
    env = dict(
        os.environ,
        PYTHONPATH=os.pathsep.join(filter(None, [str(PROJECT_ROOT), os.environ.get("PYTHONPATH")])),
        PID_FILE=str(pid_file),
        MARKER_FILE=str(marker_file),
    )
    env.pop("DAEMONPOOL_LOG_FILE", None)
    spawned = []

    def invoke(command):
        # The detached supervisor inherits stdout, so it must not be a pipe.
        with open(console_log, "a") as out:
            result = subprocess.run(
                [sys.executable, str(script), command],
                stdout=out,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                env=env,
                cwd=tmp_path,
                timeout=30,
            )
        supervisor = _supervisor_pid(pid_file)
        if supervisor:
            spawned.append(supervisor)
        return result

    invoke.pid_file = pid_file
    invoke.marker_file = marker_file
    invoke.console_log = console_log
    yield invoke

    if pid_file.exists():
        invoke("stop")
    for pid in spawned + [pid for _, pid in _markers(marker_file)]:
        with contextlib.suppress(psutil.NoSuchProcess):
            psutil.Process(pid).kill()


def test_start_stop_start_with_real_processes(embedding_program):
    pid_file = embedding_program.pid_file
    marker_file = embedding_program.marker_file

    assert embedding_program("start").returncode == 0
    assert _wait_for(lambda: _supervisor_pid(pid_file) is not None)
    assert _wait_for(lambda: len(_markers(marker_file)) == 3), embedding_program.console_log.read_text()

    supervisor = _supervisor_pid(pid_file)
    first_pool = {pid for _, pid in _markers(marker_file)}
    assert sorted(index for index, _ in _markers(marker_file)) == [1, 2, 3]
    assert {child.pid for child in psutil.Process(supervisor).children()} == first_pool

    assert embedding_program("stop").returncode == 0
    assert not pid_file.exists()
    assert _wait_for(lambda: all(_is_gone(pid) for pid in first_pool | {supervisor}))

    assert embedding_program("start").returncode == 0
    assert _wait_for(lambda: len(_markers(marker_file)) == 6), embedding_program.console_log.read_text()

    second_supervisor = _supervisor_pid(pid_file)
    second_pool = {pid for _, pid in _markers(marker_file)[3:]}
    assert second_supervisor not in (None, supervisor)
    assert sorted(index for index, _ in _markers(marker_file)[3:]) == [1, 2, 3]
    assert not second_pool & first_pool
    assert all(not _is_gone(pid) for pid in second_pool)
