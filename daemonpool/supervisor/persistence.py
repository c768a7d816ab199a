import os
import logging
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)


def pid_file_exists(pid_file: Path) -> bool:
    """
    Checks whether the PID file is present.
    Path.exists() stats the file on every call, so no cached result is ever returned.

    :param pid_file: Path of the PID file.
    """
    return pid_file.exists()


def claim_pid_file(pid_file: Path) -> Optional[int]:
    """
    Atomically creates the PID file, failing if it already exists.

    The returned descriptor is inherited across fork; the detached supervisor
    writes its own pid into it with write_pid().

    :param pid_file: Path of the PID file.
    :return: An open, writable file descriptor, or None if the file already exists.
    :raises OSError: If the file cannot be created for any other reason.
    """
    pid_file.parent.mkdir(parents=True, exist_ok=True)
    try:
        return os.open(pid_file, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
    except FileExistsError:
        return None


def write_pid(fd: int, pid: int) -> None:
    """
    Writes the pid as decimal text into a claimed PID file and closes the descriptor.

    :param fd: Descriptor returned by claim_pid_file().
    :param pid: The process id to record.
    """
    try:
        os.ftruncate(fd, 0)
        os.write(fd, str(pid).encode("ascii"))
        os.fsync(fd)
    finally:
        os.close(fd)


def read_pid_text(pid_file: Path) -> str:
    """
    Returns the raw contents of the PID file for display.

    :param pid_file: Path of the PID file.
    :return: The stripped contents, or '?' if the file cannot be read.
    """
    try:
        return pid_file.read_text(encoding="ascii").strip()
    except (OSError, UnicodeDecodeError) as e:
        log.warning(f"Could not read PID file '{pid_file}': {e}")
        return "?"


def read_pid(pid_file: Path) -> Optional[int]:
    """
    Reads the PID file and parses its contents.

    :param pid_file: Path of the PID file.
    :return: The recorded pid, or None if the file is missing or malformed.
    """
    if not pid_file.exists():
        return None
    try:
        return int(read_pid_text(pid_file))
    except ValueError:
        log.debug(f"PID file '{pid_file}' does not contain a valid pid.")
        return None


def remove_pid_file(pid_file: Path) -> bool:
    """
    Deletes the PID file.

    :param pid_file: Path of the PID file.
    :return: True if the file was removed, False on failure (already logged).
    """
    try:
        pid_file.unlink()
        return True
    except OSError as e:
        log.error(f"Failed to remove PID file '{pid_file}': {e}")
        return False
