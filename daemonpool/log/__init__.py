"""
Logging module for the supervisor.
This module provides the root logger setup shared by the supervisor and its workers.
"""

from .setup import setup_logging

__all__ = ["setup_logging"]
