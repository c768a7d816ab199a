"""
This module contains the configuration settings for the daemonpool supervisor.
It defines paths, timing constants and process naming used throughout the package.
Values can be overridden through environment variables or a .env file.
"""

import os
import sys
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)

VERSION = "1.0"

#* --- Core Paths ---
BASE_DIR = pathlib.Path(__file__).resolve().parent.parent  # Project Root


def program_dir() -> pathlib.Path:
    """
    Returns the directory of the script embedding the daemon.

    Resolved on each call rather than at import: under 'python -m' the package
    is imported while sys.argv[0] is still '-m', before runpy fills it in.
    """
    main_file = getattr(sys.modules.get("__main__"), "__file__", None)
    if main_file:
        return pathlib.Path(main_file).resolve().parent
    if sys.argv and sys.argv[0] and sys.argv[0] not in ("-m", "-c"):
        return pathlib.Path(sys.argv[0]).resolve().parent
    return BASE_DIR


#* --- Persisted State ---
def default_pid_file() -> pathlib.Path:
    """The PID file used when none is registered: DAEMONPOOL_PID_FILE, else daemon.pid beside the program."""
    override = os.getenv("DAEMONPOOL_PID_FILE", "")
    return pathlib.Path(override).resolve() if override else program_dir() / "daemon.pid"

# Optional log file for the detached supervisor. Console only when unset.
_log_file = os.getenv("DAEMONPOOL_LOG_FILE", "")
LOG_FILE_PATH = pathlib.Path(_log_file) if _log_file else None

#* --- Process Naming ---
PROCESS_TITLE = os.getenv("DAEMONPOOL_PROCESS_TITLE", "daemonpool")

#* --- Supervisor Settings ---
DEFAULT_PROCESS_NUM = 1
MONITOR_INTERVAL = 1   # seconds between monitor loop iterations
STOP_GRACE_PERIOD = 1  # seconds 'stop' waits after removing the PID file
RESTART_DELAY = 1      # seconds between 'stop' and 'start' on restart
