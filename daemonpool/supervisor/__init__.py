"""
The Supervisor package.
Manages the lifecycle of a forked worker pool.

This package contains the central ProcessDaemon class and its helper modules,
which together handle daemonization, worker spawning, supervision and the PID
file shared between command-line invocations.
"""
from .supervisor import ProcessDaemon

__all__ = ['ProcessDaemon']
