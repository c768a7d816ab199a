import os
import psutil
import logging
import setproctitle
from typing import Any, Callable, Iterator, Tuple

log = logging.getLogger(__name__)


#* --- OS Primitives ---
# Thin wrappers so tests can replace process creation without forking the test runner.
def fork() -> int:
    """A wrapper for os.fork for easy testing/mocking."""
    return os.fork()

def setsid() -> None:
    """A wrapper for os.setsid for easy testing/mocking."""
    os.setsid()

def getpid() -> int:
    """A wrapper for os.getpid for easy testing/mocking."""
    return os.getpid()

def terminate_process(code: int) -> None:
    """Flushes the log handlers and ends the current process without running atexit handlers."""
    logging.shutdown()
    os._exit(code)

def set_process_title(title: str) -> None:
    """Sets the title shown by ps/top for the current process."""
    setproctitle.setproctitle(title)

def detach_stdin() -> None:
    """Points stdin at /dev/null so the detached process never reads from the old terminal."""
    with open(os.devnull, "rb") as devnull:
        os.dup2(devnull.fileno(), 0)


#* --- Process Status & Monitoring ---
def pid_exists(pid: int) -> bool:
    """A wrapper for psutil.pid_exists for easy testing/mocking if needed."""
    return psutil.pid_exists(pid)

def get_process_from_pid(pid: int) -> psutil.Process:
    """A wrapper for psutil.Process for easy testing/mocking if needed."""
    return psutil.Process(pid)

def reap_exited_children() -> Iterator[Tuple[int, int]]:
    """
    Collects every child that has exited, without blocking.

    :return: An iterator of (pid, exit_code) pairs. Negative exit codes are signal numbers.
    """
    while True:
        try:
            pid, status = os.waitpid(-1, os.WNOHANG)
        except ChildProcessError:
            return
        if pid == 0:
            return
        yield pid, os.waitstatus_to_exitcode(status)

def kill_process(pid: int) -> bool:
    """
    Sends SIGKILL to a single process.

    :param pid: The process id to kill.
    :return: True if the signal was delivered, False if the process was already gone.
    """
    try:
        get_process_from_pid(pid).kill()
        return True
    except psutil.NoSuchProcess:
        log.warning(f"Process {pid} no longer exists, skipping forceful kill.")
        return False
    except psutil.AccessDenied:
        log.error(f"Access denied while killing process {pid}.")
        return False


#* --- Worker Entry ---
def run_worker(handler: Callable[[int], Any], index: int) -> None:
    """
    Body of a freshly forked worker. Runs the handler and ends the process.
    This never returns to the caller, whatever the handler does.

    :param handler: The registered worker function.
    :param index: The 1-based worker index passed to the handler.
    """
    worker_log = logging.getLogger(f"worker.{index}")
    exit_code = 1
    try:
        worker_log.debug(f"Worker #{index} running handler.")
        handler(index)
        worker_log.warning(f"Handler of worker #{index} returned; worker exiting.")
        exit_code = 0
    except SystemExit as e:
        # sys.exit() inside the handler keeps its own code.
        exit_code = e.code if isinstance(e.code, int) else (0 if e.code is None else 1)
    except Exception as e:
        worker_log.error(f"Handler of worker #{index} raised: {e}", exc_info=True)
    finally:
        terminate_process(exit_code)
