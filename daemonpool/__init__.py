"""
daemonpool: run a Python function in a detached pool of forked worker processes,
controlled with start/stop/restart commands and a PID file.
"""

from .supervisor import ProcessDaemon

__all__ = ["ProcessDaemon"]
