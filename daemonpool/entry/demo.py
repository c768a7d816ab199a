"""
A minimal embedding of ProcessDaemon.

Usage: python -m daemonpool.entry.demo {start|stop|restart|status}
Each of the ten workers prints a line every three seconds until stopped.
"""
import time
from daemonpool import ProcessDaemon

WORKER_COUNT = 10
PRINT_INTERVAL = 3


def handler(pno: int) -> None:
    while True:
        print(f"this is #{pno}", flush=True)
        time.sleep(PRINT_INTERVAL)


def main() -> None:
    daemon = ProcessDaemon()
    daemon.set_process_num(WORKER_COUNT)
    daemon.set_handler(handler)
    daemon.run()


if __name__ == "__main__":
    main()
