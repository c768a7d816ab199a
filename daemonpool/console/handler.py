import logging
import psutil
from typing import Optional
from daemonpool import settings

log = logging.getLogger(__name__)


def report_result(message: str, ok: bool) -> None:
    """
    Logs the outcome of a lifecycle step as '<message> ...... success|failed'.

    :param message: What was attempted (e.g., 'starting demo.py').
    :param ok: Whether it succeeded.
    """
    if ok:
        log.info(f"{message} ...... success")
    else:
        log.error(f"{message} ...... failed")


def _describe_process(proc: psutil.Process, label: str) -> str:
    """Formats one status line for a live process."""
    cpu = proc.cpu_percent(interval=0.1)
    mem = proc.memory_info().rss
    return f"  - {label:<20} : PID {proc.pid:<8} | Status: {proc.status().upper()} | CPU: {cpu:.1f}% | MEM: {mem/1024/1024:.1f} MB"


def display_status(prog: str, supervisor_pid: Optional[int], has_pid_file: bool) -> None:
    """
    Prints the state of the supervisor and its workers.

    :param prog: Program name used in messages.
    :param supervisor_pid: The pid read from the PID file, if it could be parsed.
    :param has_pid_file: Whether the PID file exists at all.
    """
    if not has_pid_file:
        print(f"\n{prog} is STOPPED (no PID file found).\n")
        return

    if supervisor_pid is None or not psutil.pid_exists(supervisor_pid):
        print(f"\n{prog} has a stale PID file ({supervisor_pid if supervisor_pid is not None else 'unreadable'}).")
        print("Run 'stop' to clean it up before starting again.\n")
        return

    print(f"\n--- {prog} Status ---")
    try:
        supervisor = psutil.Process(supervisor_pid)
        print(_describe_process(supervisor, "supervisor"))
        children = supervisor.children()
    except psutil.NoSuchProcess:
        print(f"  - {'supervisor':<20} : PID {supervisor_pid:<8} | Status: STOPPED (exited while reading)")
        return
    except psutil.AccessDenied:
        print(f"  - {'supervisor':<20} : PID {supervisor_pid:<8} | Status: RUNNING (Access Denied)")
        return

    for child in children:
        try:
            print(_describe_process(child, "worker"))
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            print(f"  - {'worker':<20} : PID {child.pid:<8} | Status: RUNNING (Access Denied)")

    if not children:
        print("\nWARNING: The supervisor is alive but has no workers left.")
    print(f"\nWorkers: {len(children)}")
    print("-" * 26 + "\n")


def print_help(prog: str) -> None:
    """Prints the usage text."""
    print("-" * 50)
    print(f"daemonpool v{settings.VERSION}")
    print("-" * 50)
    print("usage:")
    print(f"  {prog} start    - Detach and start the worker pool.")
    print(f"  {prog} stop     - Remove the PID file; the supervisor kills its workers.")
    print(f"  {prog} restart  - Stop, then start again.")
    print(f"  {prog} status   - Show the supervisor and its workers.")
    print("  Add --verbose after the command for DEBUG console output.")
    print("-" * 50)
