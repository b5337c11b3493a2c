"""
Abstract instance directory interface.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, Any, Dict


@dataclass(frozen=True)
class InstanceRecord:
    """One compute instance as reported by a directory."""
    instance_id: str
    public_address: Optional[str] = None
    private_address: Optional[str] = None
    name: Optional[str] = None
    state: Optional[str] = None
    instance_type: Optional[str] = None
    launch_time: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.launch_time:
            data['launch_time'] = self.launch_time.isoformat()
        return data

    def __repr__(self) -> str:
        name = f", name={self.name}" if self.name else ""
        state = f", state={self.state}" if self.state else ""
        return f"Instance({self.instance_id}{name}{state})"


@dataclass(frozen=True)
class ReservedInstanceRecord:
    """One reserved instance purchase. duration is in seconds."""
    reserved_instances_id: str
    instance_type: str
    instance_count: int
    state: str
    scope: str
    start: datetime
    end: datetime
    duration: int
    availability_zone: Optional[str] = None

    def __repr__(self) -> str:
        return f"ReservedInstance({self.reserved_instances_id}, {self.instance_count}x {self.instance_type})"


class InstanceDirectory(ABC):
    """
    Source of instance records.

    The session layer only depends on this contract, the cloud API
    behind it is swappable.
    """

    @abstractmethod
    def find(self, filter_tag: str, only_active: bool = True) -> list[InstanceRecord]:
        """
        Return instances matching filter_tag, in directory order.

        Args:
            filter_tag: Tag filter, "Key:Value" or a bare Name value
            only_active: Restrict to running instances
        """
        pass

    @abstractmethod
    def find_reserved_instances(self, include_all: bool = False) -> list[ReservedInstanceRecord]:
        """Return reserved instances, active ones only unless include_all."""
        pass
