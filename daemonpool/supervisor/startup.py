import os
import sys
import logging
from typing import TYPE_CHECKING, Optional
from daemonpool import settings
from daemonpool.console.handler import report_result
from daemonpool.supervisor import persistence, process_utils

if TYPE_CHECKING:
    from .supervisor import ProcessDaemon

log = logging.getLogger(__name__)


def ensure_handler_registered(daemon: "ProcessDaemon") -> None:
    """
    Terminates with status 1 if no worker handler has been registered.

    :param daemon: The ProcessDaemon instance.
    """
    if daemon.handler is None:
        log.critical("process handler unregistered.")
        sys.exit(1)


def claim_pid_file(daemon: "ProcessDaemon") -> Optional[int]:
    """
    Claims the PID file for a new daemon, or reports the one already running.

    :param daemon: The ProcessDaemon instance.
    :return: The claimed descriptor, or None if the daemon is already running.
    """
    try:
        fd = persistence.claim_pid_file(daemon.pid_file)
    except OSError as e:
        log.critical(f"Cannot create PID file '{daemon.pid_file}': {e}")
        sys.exit(1)

    if fd is None:
        # A stale file counts as running; only its existence is checked.
        log.info(f"{daemon.prog} is running ({persistence.read_pid_text(daemon.pid_file)})")
    return fd


def daemonize(daemon: "ProcessDaemon", fd: int) -> None:
    """
    Forks and detaches from the controlling terminal.

    The calling process exits once the fork succeeds. Only the detached child
    returns from this function, with daemon.pid set and the PID file written.

    :param daemon: The ProcessDaemon instance.
    :param fd: The descriptor of the claimed PID file.
    """
    try:
        pid = process_utils.fork()
    except OSError as e:
        log.debug(f"fork() failed: {e}")
        os.close(fd)
        persistence.remove_pid_file(daemon.pid_file)
        report_result("create main process", ok=False)
        sys.exit(1)

    if pid:
        os.close(fd)
        report_result(f"starting {daemon.prog}", ok=True)
        sys.exit(0)

    process_utils.setsid()
    daemon.pid = process_utils.getpid()
    try:
        persistence.write_pid(fd, daemon.pid)
    except OSError as e:
        log.critical(f"Failed to write PID file '{daemon.pid_file}': {e}")
        persistence.remove_pid_file(daemon.pid_file)
        sys.exit(1)

    process_utils.detach_stdin()
    process_utils.set_process_title(f"{settings.PROCESS_TITLE} - Supervisor")
    log.info(f"Supervisor detached with PID {daemon.pid}, PID file: {daemon.pid_file}")


def spawn_workers(daemon: "ProcessDaemon") -> None:
    """
    Forks the worker pool, indices 1..process_num in order.
    A failed fork is reported and skipped; the remaining workers are still started.

    :param daemon: The ProcessDaemon instance.
    """
    for index in range(1, daemon.process_num + 1):
        try:
            pid = process_utils.fork()
        except OSError as e:
            log.debug(f"fork() for worker #{index} failed: {e}")
            report_result(f"fork() process #{index}", ok=False)
            continue

        if pid:
            daemon.tracked_children[pid] = index
            log.info(f"Worker #{index} started with PID: {pid}")
        else:
            # Workers supervise nothing.
            daemon.tracked_children.clear()
            process_utils.set_process_title(f"{settings.PROCESS_TITLE} - Worker #{index}")
            process_utils.run_worker(daemon.handler, index)

    log.info(f"{len(daemon.tracked_children)}/{daemon.process_num} workers started.")
