"""
ec2shell - SSH into EC2 instances found by tag.

- Target resolution from EC2 tag filters (public or private addresses)
- Interactive shells with the local terminal in raw mode
- Sequential command fan-out with per-host output framing
- Paramiko-based transport, key file authentication
"""

__version__ = "0.1.0"

from .directory import InstanceDirectory, InstanceRecord, EC2InstanceDirectory
from .errors import Ec2ShellError
from .session import (
    AddressPreference,
    SessionRequest,
    ResolvedTarget,
    SessionOutcome,
    SessionOrchestrator,
)

__all__ = [
    # Directory
    "InstanceDirectory",
    "InstanceRecord",
    "EC2InstanceDirectory",
    # Sessions
    "AddressPreference",
    "SessionRequest",
    "ResolvedTarget",
    "SessionOutcome",
    "SessionOrchestrator",
    # Errors
    "Ec2ShellError",
]
