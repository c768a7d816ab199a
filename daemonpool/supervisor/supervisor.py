import sys
import time
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
from daemonpool import settings
from daemonpool.log.setup import setup_logging
from daemonpool.console.handler import display_status, print_help, report_result
from daemonpool.supervisor import persistence, process_utils, shutdown, startup

log = logging.getLogger(__name__)


class ProcessDaemon:
    """
    Runs a user-supplied worker function in a pool of forked processes.

    The daemon detaches from the terminal on 'start', forks the workers and then
    supervises them until its PID file disappears. Workers that exit are not
    respawned. The PID file is the only channel between the command-line
    invocations and the running supervisor.
    """

    def __init__(self) -> None:
        """Initializes the daemon with default settings."""
        self.pid_file: Path = settings.default_pid_file()
        self.handler: Optional[Callable[[int], Any]] = None
        self.process_num: int = settings.DEFAULT_PROCESS_NUM
        self.tracked_children: Dict[int, int] = {}
        self.pid: Optional[int] = None
        self.prog: str = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "daemonpool"

    #* --- Registration ---
    def set_pid_file(self, filename: Union[str, Path]) -> "ProcessDaemon":
        """
        Sets the PID file location. Must be called before 'start'.

        :param filename: Path of the PID file; stored as an absolute path.
        """
        self.pid_file = Path(filename).resolve()
        return self

    def set_handler(self, handler: Callable[[int], Any]) -> "ProcessDaemon":
        """
        Registers the worker function. It receives the 1-based worker index and
        is expected to run forever.

        :param handler: The worker function.
        :raises TypeError: If handler is not callable.
        """
        if not callable(handler):
            raise TypeError(f"Worker handler must be callable, got {type(handler).__name__}.")
        self.handler = handler
        return self

    def set_process_num(self, num: int) -> "ProcessDaemon":
        """
        Sets how many workers 'start' forks.

        :param num: The desired worker count, at least 1.
        :raises ValueError: If num is not a positive integer.
        """
        if isinstance(num, bool) or not isinstance(num, int) or num < 1:
            raise ValueError(f"Worker count must be an integer >= 1, got {num!r}.")
        self.process_num = num
        return self

    #* --- Dispatch ---
    def run(self, argv: Optional[List[str]] = None) -> None:
        """
        Dispatches on the first positional argument: start, stop, restart or status.
        Anything else prints the usage text.

        In the detached supervisor, 'start' never returns: the process exits
        once supervision ends.

        :param argv: The command line, sys.argv by default.
        """
        argv = list(sys.argv if argv is None else argv)
        if argv and argv[0]:
            self.prog = Path(argv[0]).name

        args = argv[1:]
        verbose = "--verbose" in args
        if verbose:
            args.remove("--verbose")
        setup_logging(logging.DEBUG if verbose else logging.INFO)

        command = args[0].lower() if args else ""
        log.debug(f"Executing command: {command!r}")
        command_map = {
            "start": self.start,
            "stop": self.stop,
            "restart": self.restart,
            "status": self.status,
        }
        command_map.get(command, self.usage)()

    #* --- Lifecycle ---
    def start(self) -> None:
        """
        Detaches, forks the worker pool and supervises it.

        Returns immediately if the PID file already exists. In the calling
        process this exits once the supervisor has been forked; only the
        detached supervisor runs the monitor loop.
        """
        startup.ensure_handler_registered(self)

        fd = startup.claim_pid_file(self)
        if fd is None:
            return

        startup.daemonize(self, fd)
        startup.spawn_workers(self)
        self.monitor()

    def stop(self) -> None:
        """
        Removes the PID file. The supervisor notices on its next poll and kills its workers.

        Nothing is signalled from here, so this can report success before the
        supervisor has actually exited.
        """
        if not persistence.pid_file_exists(self.pid_file):
            log.info(f"{self.prog} is not running.")
            return

        pid_text = persistence.read_pid_text(self.pid_file)
        if not persistence.remove_pid_file(self.pid_file):
            report_result(f"remove pid file: {self.pid_file}", ok=False)

        time.sleep(settings.STOP_GRACE_PERIOD)
        if pid_text.isdigit() and process_utils.pid_exists(int(pid_text)):
            log.debug(f"Supervisor {pid_text} has not observed the PID file removal yet.")
        report_result(f"stopping {self.prog} ({pid_text})", ok=True)

    def restart(self) -> None:
        """Runs stop, waits, then start. The daemon stays stopped if start fails."""
        self.stop()
        time.sleep(settings.RESTART_DELAY)
        self.start()

    def status(self) -> None:
        """Prints the supervisor and worker state recorded by the PID file."""
        has_pid_file = persistence.pid_file_exists(self.pid_file)
        supervisor_pid = persistence.read_pid(self.pid_file) if has_pid_file else None
        display_status(self.prog, supervisor_pid, has_pid_file)

    def usage(self) -> None:
        """Prints the help text."""
        print_help(self.prog)

    #* --- Supervision ---
    @property
    def active_workers(self) -> int:
        """Number of workers still tracked; never grows back after a worker exits."""
        return len(self.tracked_children)

    def reap_workers(self) -> None:
        """Stops tracking every worker that has exited since the last poll."""
        for pid, exit_code in process_utils.reap_exited_children():
            index = self.tracked_children.pop(pid, None)
            if index is None:
                log.debug(f"Reaped untracked child {pid} (exit code {exit_code}).")
                continue
            log.warning(
                f"Worker #{index} (PID {pid}) exited with code {exit_code}. "
                f"{self.active_workers}/{self.process_num} workers active, not respawning."
            )

    def monitor(self) -> None:
        """
        Polls the worker pool and the PID file until one of them runs out.

        A missing PID file is the stop signal: every tracked worker is killed and
        the supervisor exits. If the workers all exit first, the supervisor
        removes its own PID file and exits as well. Either way, code placed
        after run() by the embedding program never runs in the supervisor.
        """
        log.info(f"Supervising {self.active_workers} workers (PID file: {self.pid_file}).")
        while self.tracked_children:
            self.reap_workers()

            if not persistence.pid_file_exists(self.pid_file):
                log.info("PID file removed. Stopping all workers.")
                shutdown.kill_workers(self)
                sys.exit(0)

            time.sleep(settings.MONITOR_INTERVAL)

        shutdown.cleanup_drained_pool(self)
        sys.exit(0)
