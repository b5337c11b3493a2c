"""
Exception hierarchy for ec2shell.

Library code raises these with the failing phase in the message and the
underlying cause chained. Only the CLI catches them.
"""

from __future__ import annotations
from typing import Optional


class Ec2ShellError(Exception):
    """Base class for all ec2shell errors."""
    exit_code = 1


# =============================================================================
# Usage
# =============================================================================

class UsageError(Ec2ShellError):
    """The invocation itself is wrong, nothing failed remotely."""
    exit_code = 2


class InvalidRequest(UsageError):
    """A session request is missing a required field."""
    pass


class AmbiguousTarget(UsageError):
    """Several instances matched and no command was given."""
    pass


# =============================================================================
# Target resolution
# =============================================================================

class ResolutionError(Ec2ShellError):
    pass


class NoMatch(ResolutionError):
    """No instance matched the filter tag."""
    pass


class MissingAddress(ResolutionError):
    """A matched instance has no address of the requested class."""
    pass


class DirectoryError(Ec2ShellError):
    """The instance directory could not be queried."""
    pass


# =============================================================================
# Identity
# =============================================================================

class IdentityError(Ec2ShellError):
    pass


class KeyUnreadable(IdentityError):
    """The identity file could not be read."""
    pass


class KeyUnparseable(IdentityError):
    """The identity file is not a usable private key."""
    pass


# =============================================================================
# Transport
# =============================================================================

class TransportError(Ec2ShellError):
    pass


class ConnectFailed(TransportError):
    pass


class SessionOpenFailed(TransportError):
    pass


class PtyRequestFailed(TransportError):
    pass


class ShellStartFailed(TransportError):
    pass


# =============================================================================
# Execution and local terminal
# =============================================================================

class CommandFailed(Ec2ShellError):
    """
    A batch command failed on one host.

    exit_status is None when the command never produced one
    (channel error before exit).
    """

    def __init__(self, message: str, host: str, command: str,
                 exit_status: Optional[int] = None):
        super().__init__(message)
        self.host = host
        self.command = command
        self.exit_status = exit_status


class TerminalModeFailed(Ec2ShellError):
    """The local terminal could not be switched to raw mode."""
    pass


class ConfigError(Ec2ShellError):
    """Configuration file problems, including init targets that already exist."""
    pass
