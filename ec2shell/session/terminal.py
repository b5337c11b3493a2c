"""
Local terminal control and stdio forwarding.

Raw mode and size queries go through termios/tty, the forwarding pumps
are plain daemon threads copying bytes until their source ends.
"""

from __future__ import annotations
import logging
import os
import sys
import termios
import threading
import tty
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from ..errors import TerminalModeFailed

logger = logging.getLogger(__name__)

DEFAULT_COLS = 80
DEFAULT_ROWS = 24
PUMP_BUFFER_SIZE = 32768


def stdin_fd() -> Optional[int]:
    """fd of sys.stdin, None when stdin is closed or not backed by a file."""
    try:
        return sys.stdin.fileno()
    except (AttributeError, ValueError, OSError):
        return None


class LocalTerminal:
    """
    The invoking process's controlling terminal, addressed by fd.

    Usage:
        terminal = LocalTerminal()
        cols, rows = terminal.size()
        with terminal.raw_mode():
            ...  # terminal is raw here, restored on exit
    """

    def __init__(self, fd: Optional[int] = None):
        self.fd = stdin_fd() if fd is None else fd

    def size(self) -> tuple[int, int]:
        """(cols, rows) of the terminal, defaults when it cannot be queried."""
        if self.fd is None:
            return DEFAULT_COLS, DEFAULT_ROWS
        try:
            size = os.get_terminal_size(self.fd)
        except OSError as e:
            logger.debug(f"Terminal size unavailable ({e}), using defaults")
            return DEFAULT_COLS, DEFAULT_ROWS
        if not size.columns or not size.lines:
            return DEFAULT_COLS, DEFAULT_ROWS
        return size.columns, size.lines

    def snapshot(self) -> list:
        return termios.tcgetattr(self.fd)

    def make_raw(self) -> None:
        tty.setraw(self.fd)

    def restore(self, state: list) -> None:
        termios.tcsetattr(self.fd, termios.TCSADRAIN, state)

    @contextmanager
    def raw_mode(self) -> Iterator[None]:
        """
        Hold the terminal in raw mode for the with-block.

        The snapshot is restored exactly once. A failed restore is logged
        and does not replace an exception raised inside the block.
        """
        if self.fd is None:
            raise TerminalModeFailed("unable to put terminal in raw mode: stdin has no file descriptor")
        try:
            state = self.snapshot()
            self.make_raw()
        except (termios.error, OSError) as e:
            raise TerminalModeFailed(f"unable to put terminal in raw mode: {e}") from e

        try:
            yield
        finally:
            try:
                self.restore(state)
            except (termios.error, OSError) as e:
                logger.warning(f"Failed to restore terminal mode: {e}")


# =============================================================================
# Pumps
# =============================================================================

def copy_stream(
    read: Callable[[int], bytes],
    write: Callable[[bytes], None],
    name: str = "pump",
) -> None:
    """
    Copy until read() returns b'' or either side errors.

    Errors end the copy and are logged only.
    """
    try:
        while True:
            data = read(PUMP_BUFFER_SIZE)
            if not data:
                break
            write(data)
    except Exception as e:
        logger.debug(f"{name} stopped: {e}")
    else:
        logger.debug(f"{name} reached end of stream")


def start_pump(
    read: Callable[[int], bytes],
    write: Callable[[bytes], None],
    name: str,
) -> threading.Thread:
    thread = threading.Thread(
        target=copy_stream,
        args=(read, write, name),
        name=name,
        daemon=True,
    )
    thread.start()
    return thread


def fd_reader(fd: int) -> Callable[[int], bytes]:
    """Unbuffered reads from a raw fd, so keystrokes are sent as typed."""
    def read(size: int) -> bytes:
        return os.read(fd, size)
    return read


def stream_writer(stream) -> Callable[[bytes], None]:
    """Write-and-flush into a binary stream (or a text stream's buffer)."""
    target = getattr(stream, 'buffer', stream)

    def write(data: bytes) -> None:
        target.write(data)
        target.flush()
    return write
