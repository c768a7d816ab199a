import logging
from typing import TYPE_CHECKING
from daemonpool.supervisor import persistence, process_utils

if TYPE_CHECKING:
    from .supervisor import ProcessDaemon

log = logging.getLogger(__name__)


def kill_workers(daemon: "ProcessDaemon") -> None:
    """
    Forcefully kills every tracked worker. There is no graceful phase.

    :param daemon: The ProcessDaemon instance.
    """
    if not daemon.tracked_children:
        return

    log.warning(f"Killing {len(daemon.tracked_children)} workers...")
    for pid, index in list(daemon.tracked_children.items()):
        log.debug(f"Sending SIGKILL to worker #{index} (PID {pid})")
        process_utils.kill_process(pid)
    daemon.tracked_children.clear()


def cleanup_drained_pool(daemon: "ProcessDaemon") -> None:
    """
    Removes the PID file after every worker has exited on its own.

    The file is only removed while it still records this supervisor's pid, so a
    file written by a newer daemon is never deleted.

    :param daemon: The ProcessDaemon instance.
    """
    log.warning(f"All {daemon.process_num} workers have exited. Supervisor shutting down.")
    if not persistence.pid_file_exists(daemon.pid_file):
        log.debug("PID file already gone.")
        return

    recorded_pid = persistence.read_pid(daemon.pid_file)
    if recorded_pid != daemon.pid:
        log.info(f"PID file now records {recorded_pid}, not {daemon.pid}. Leaving it in place.")
        return

    if persistence.remove_pid_file(daemon.pid_file):
        log.debug(f"Removed PID file '{daemon.pid_file}'.")
