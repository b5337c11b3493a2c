"""
Instance directories - where target instances come from.
"""

from .base import InstanceDirectory, InstanceRecord, ReservedInstanceRecord
from .ec2 import EC2InstanceDirectory, parse_filter_tag, build_filters

__all__ = [
    "InstanceDirectory",
    "InstanceRecord",
    "ReservedInstanceRecord",
    "EC2InstanceDirectory",
    "parse_filter_tag",
    "build_filters",
]
