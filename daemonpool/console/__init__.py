"""
This module initializes the console package, exposing the operator-facing
output helpers: result messages, status display and help text.
"""

from .handler import display_status, print_help, report_result

__all__ = ["display_status", "print_help", "report_result"]
