"""
Interactive SSH session bound to the local terminal.
"""

from __future__ import annotations
import logging
import sys
import threading
from typing import Optional

import paramiko

from .models import ResolvedTarget, SessionOutcome
from .terminal import LocalTerminal, start_pump, fd_reader, stream_writer
from .transport import Connector, request_pty, INTERACTIVE_TERMINAL_MODES
from ..errors import ShellStartFailed

logger = logging.getLogger(__name__)

# How long trailing remote output may take to reach the local terminal
DRAIN_TIMEOUT = 1.0


class InteractiveSession:
    """
    One remote shell with local stdio forwarded in both directions.

    Setup order is dial, open session, raw mode, pty, pumps, shell.
    Whatever was set up is torn down in reverse on every exit path:
    terminal restored, channel closed, connection closed.

    stdin defaults to reading the terminal fd directly. stdout and
    stderr default to the process streams.
    """

    def __init__(
        self,
        connector: Connector,
        terminal: Optional[LocalTerminal] = None,
        stdin=None,
        stdout=None,
        stderr=None,
    ):
        self.connector = connector
        self.terminal = terminal or LocalTerminal()
        self.stdin = stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.pumps: list[threading.Thread] = []

    def _stdin_reader(self):
        if self.stdin is None:
            return fd_reader(self.terminal.fd)
        return self.stdin.read

    def _start_pumps(self, channel: paramiko.Channel) -> None:
        self.pumps = [
            start_pump(self._stdin_reader(), channel.sendall, "stdin->remote"),
            start_pump(channel.recv, stream_writer(self.stdout), "remote->stdout"),
            start_pump(channel.recv_stderr, stream_writer(self.stderr), "remote->stderr"),
        ]

    def _drain_output_pumps(self) -> None:
        # stdin pump stays blocked on the local terminal, it is not joined
        for pump in self.pumps[1:]:
            pump.join(DRAIN_TIMEOUT)

    def run(self, target: ResolvedTarget) -> SessionOutcome:
        """Block until the remote shell exits. Remote exit status is returned, not raised."""
        with self.connector.dial(target) as client:
            with self.connector.open_session(client) as channel:
                with self.terminal.raw_mode():
                    cols, rows = self.terminal.size()
                    request_pty(channel, cols, rows, modes=INTERACTIVE_TERMINAL_MODES)

                    self._start_pumps(channel)

                    try:
                        channel.invoke_shell()
                    except (paramiko.SSHException, OSError, EOFError) as e:
                        raise ShellStartFailed(f"failed to start shell: {e}") from e

                    exit_status = channel.recv_exit_status()
                    self._drain_output_pumps()

        logger.info(f"Shell on {target.host} exited with status {exit_status}")
        return SessionOutcome(host=target.host, exit_status=exit_status)
