"""
Data models for session orchestration.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import InvalidRequest

DEFAULT_SSH_PORT = 22


class AddressPreference(Enum):
    """Which instance address to connect to."""
    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def from_private_flag(cls, private: bool) -> AddressPreference:
        return cls.PRIVATE if private else cls.PUBLIC


@dataclass(frozen=True)
class SessionRequest:
    """Everything one invocation needs. Built once, never mutated."""
    filter_tag: str
    login_name: str
    identity_file: str
    address_preference: AddressPreference = AddressPreference.PUBLIC
    command: Optional[str] = None

    def __post_init__(self):
        # "" and None both mean interactive
        if self.command is not None and not self.command.strip():
            object.__setattr__(self, 'command', None)

    @property
    def has_command(self) -> bool:
        return self.command is not None

    def validate(self) -> SessionRequest:
        """Raise InvalidRequest for missing fields, return self otherwise."""
        if not self.filter_tag:
            raise InvalidRequest("filter tag is required")
        if not self.login_name:
            raise InvalidRequest("login name is required")
        if not self.identity_file:
            raise InvalidRequest("identity file is required")
        return self


@dataclass(frozen=True)
class ResolvedTarget:
    """A connectable host. Identity is the address string alone."""
    host: str
    port: int = DEFAULT_SSH_PORT

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def __str__(self) -> str:
        return self.host


@dataclass
class SessionOutcome:
    """Result of one session against one host."""
    host: str
    exit_status: Optional[int] = None
    output: Optional[bytes] = None

    @property
    def succeeded(self) -> bool:
        return self.exit_status == 0

    def __repr__(self) -> str:
        mode = "batch" if self.output is not None else "interactive"
        return f"<SessionOutcome {self.host} {mode} exit={self.exit_status}>"
