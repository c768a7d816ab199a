"""
Runnable entry points that embed ProcessDaemon.
"""
