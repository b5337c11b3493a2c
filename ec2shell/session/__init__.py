"""
Session orchestration - resolve targets, authenticate, run shells or commands.

- TargetResolver: filter tag -> list of ResolvedTarget
- build_auth: identity file -> AuthContext
- InteractiveSession: one pty-backed shell on the local terminal
- BatchExecutor: one command per host, sequential, fail-fast
- SessionOrchestrator: chooses between the two
"""

from .models import (
    AddressPreference,
    SessionRequest,
    ResolvedTarget,
    SessionOutcome,
    DEFAULT_SSH_PORT,
)
from .auth import AuthContext, AcceptAnyHostKeyPolicy, build_auth
from .resolver import TargetResolver
from .transport import Connector, request_pty
from .terminal import LocalTerminal
from .interactive import InteractiveSession
from .batch import BatchExecutor
from .orchestrator import SessionOrchestrator

__all__ = [
    # Models
    "AddressPreference",
    "SessionRequest",
    "ResolvedTarget",
    "SessionOutcome",
    "DEFAULT_SSH_PORT",
    # Auth
    "AuthContext",
    "AcceptAnyHostKeyPolicy",
    "build_auth",
    # Components
    "TargetResolver",
    "Connector",
    "request_pty",
    "LocalTerminal",
    "InteractiveSession",
    "BatchExecutor",
    "SessionOrchestrator",
]
