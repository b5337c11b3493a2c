"""
Runs one command on each target in turn, framing each host's output.
"""

from __future__ import annotations
import logging
import sys
from typing import Optional, TextIO

import paramiko

from .models import ResolvedTarget, SessionOutcome
from .terminal import LocalTerminal
from .transport import Connector, request_pty
from ..errors import CommandFailed

logger = logging.getLogger(__name__)

READ_BUFFER_SIZE = 65536

START_BANNER = "========== Start output on host: {host} =========="
END_BANNER = "========== End   output on host: {host} =========="


def read_all(channel: paramiko.Channel) -> bytes:
    """Read the channel until the remote side closes it."""
    chunks = []
    while True:
        data = channel.recv(READ_BUFFER_SIZE)
        if not data:
            break
        chunks.append(data)
    return b''.join(chunks)


class BatchExecutor:
    """
    Sequential command fan-out.

    Targets run strictly in list order, one connection at a time. The
    first failing host stops the run; output already printed for earlier
    hosts stays printed.
    """

    def __init__(
        self,
        connector: Connector,
        terminal: Optional[LocalTerminal] = None,
        stdout: Optional[TextIO] = None,
    ):
        self.connector = connector
        self.terminal = terminal or LocalTerminal()
        self.stdout = stdout or sys.stdout

    def run(self, targets: list[ResolvedTarget], command: str) -> list[SessionOutcome]:
        outcomes = []
        for target in targets:
            outcomes.append(self.run_one(target, command))
        return outcomes

    def run_one(self, target: ResolvedTarget, command: str) -> SessionOutcome:
        with self.connector.dial(target) as client:
            with self.connector.open_session(client) as channel:
                # Commands like sudo want a controlling terminal
                cols, rows = self.terminal.size()
                request_pty(channel, cols, rows)

                output, exit_status, error = self._execute(channel, command)
                self._print_framed(target.host, output)

        if error is not None:
            raise CommandFailed(
                f"failed to execute command: {command}: {error}",
                host=target.host, command=command,
            ) from error
        if exit_status != 0:
            raise CommandFailed(
                f"failed to execute command: {command}: "
                f"exited with status {exit_status} on {target.host}",
                host=target.host, command=command, exit_status=exit_status,
            )

        logger.info(f"Command succeeded on {target.host}")
        return SessionOutcome(host=target.host, exit_status=exit_status, output=output)

    def _execute(self, channel: paramiko.Channel, command: str):
        """Returns (combined output, exit status, exception or None)."""
        logger.debug(f"exec: {command}")
        try:
            channel.set_combine_stderr(True)
            channel.exec_command(command)
            output = read_all(channel)
            return output, channel.recv_exit_status(), None
        except (paramiko.SSHException, OSError, EOFError) as e:
            return b'', None, e

    def _print_framed(self, host: str, output: bytes) -> None:
        print(START_BANNER.format(host=host), file=self.stdout)
        print(output.decode('utf-8', errors='replace'), file=self.stdout)
        print(END_BANNER.format(host=host), file=self.stdout)
        self.stdout.flush()
