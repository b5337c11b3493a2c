"""
Tab-separated listings for `ec2shell ls` and `ec2shell ec2ri ls`.

Each column is produced by a formatter looked up by field name, one
formatter table per record kind.
"""

from __future__ import annotations
from typing import Callable, Iterable, Optional

from .directory.base import InstanceRecord, ReservedInstanceRecord

NOT_AVAILABLE = "N/A"

SECONDS_PER_YEAR = 3600 * 24 * 365

DEFAULT_FIELDS = (
    "InstanceId",
    "InstanceType",
    "PublicIpAddress",
    "PrivateIpAddress",
    "StateName",
    "LaunchTime",
    "Name",
)

DEFAULT_RI_FIELDS = (
    "ReservedInstancesId",
    "AvailabilityZone",
    "InstanceType",
    "InstanceCount",
    "State",
    "Scope",
    "Start",
    "End",
    "Duration",
)


def _or_na(value: Optional[str]) -> str:
    return value if value else NOT_AVAILABLE


# =============================================================================
# Instances
# =============================================================================

def format_instance_id(instance: InstanceRecord) -> str:
    return instance.instance_id


def format_instance_type(instance: InstanceRecord) -> str:
    return _or_na(instance.instance_type)


def format_public_ip(instance: InstanceRecord) -> str:
    return _or_na(instance.public_address)


def format_private_ip(instance: InstanceRecord) -> str:
    return _or_na(instance.private_address)


def format_state(instance: InstanceRecord) -> str:
    return _or_na(instance.state)


def format_launch_time(instance: InstanceRecord) -> str:
    if instance.launch_time is None:
        return NOT_AVAILABLE
    return instance.launch_time.strftime("%Y-%m-%d %H:%M:%S")


def format_name(instance: InstanceRecord) -> str:
    return _or_na(instance.name)


FORMATTERS: dict[str, Callable[[InstanceRecord], str]] = {
    "InstanceId": format_instance_id,
    "InstanceType": format_instance_type,
    "PublicIpAddress": format_public_ip,
    "PrivateIpAddress": format_private_ip,
    "StateName": format_state,
    "LaunchTime": format_launch_time,
    "Name": format_name,
}


# =============================================================================
# Reserved instances
# =============================================================================

def format_ri_id(ri: ReservedInstanceRecord) -> str:
    return ri.reserved_instances_id


def format_ri_availability_zone(ri: ReservedInstanceRecord) -> str:
    # Region-scoped reservations have no zone
    return _or_na(ri.availability_zone)


def format_ri_instance_type(ri: ReservedInstanceRecord) -> str:
    return ri.instance_type


def format_ri_instance_count(ri: ReservedInstanceRecord) -> str:
    return f"{ri.instance_count:3d}"


def format_ri_state(ri: ReservedInstanceRecord) -> str:
    return ri.state


def format_ri_scope(ri: ReservedInstanceRecord) -> str:
    return ri.scope


def format_ri_start(ri: ReservedInstanceRecord) -> str:
    return ri.start.strftime("%Y-%m-%d")


def format_ri_end(ri: ReservedInstanceRecord) -> str:
    return ri.end.strftime("%Y-%m-%d")


def format_ri_duration(ri: ReservedInstanceRecord) -> str:
    return f"{ri.duration // SECONDS_PER_YEAR:2d}year"


RI_FORMATTERS: dict[str, Callable[[ReservedInstanceRecord], str]] = {
    "ReservedInstancesId": format_ri_id,
    "AvailabilityZone": format_ri_availability_zone,
    "InstanceType": format_ri_instance_type,
    "InstanceCount": format_ri_instance_count,
    "State": format_ri_state,
    "Scope": format_ri_scope,
    "Start": format_ri_start,
    "End": format_ri_end,
    "Duration": format_ri_duration,
}


# =============================================================================
# Rows
# =============================================================================

def validate_fields(fields: Iterable[str], formatters: dict = FORMATTERS) -> list[str]:
    """Return the field list, ValueError naming any unknown field."""
    fields = list(fields)
    unknown = [f for f in fields if f not in formatters]
    if unknown:
        raise ValueError(
            f"unknown field(s): {', '.join(unknown)} "
            f"(choose from {', '.join(formatters)})"
        )
    return fields


def format_row(record, fields: Iterable[str], formatters: dict) -> str:
    return "\t".join(formatters[field](record) for field in fields)


def format_instance(instance: InstanceRecord, fields: Iterable[str] = DEFAULT_FIELDS) -> str:
    return format_row(instance, fields, FORMATTERS)


def format_instances(
    instances: Iterable[InstanceRecord],
    fields: Iterable[str] = DEFAULT_FIELDS,
    quiet: bool = False,
) -> list[str]:
    """One line per instance. quiet lists instance ids only."""
    fields = ["InstanceId"] if quiet else validate_fields(fields)
    return [format_instance(instance, fields) for instance in instances]


def format_reserved_instances(
    reserved: Iterable[ReservedInstanceRecord],
    fields: Iterable[str] = DEFAULT_RI_FIELDS,
    quiet: bool = False,
) -> list[str]:
    """One line per reservation. quiet lists reservation ids only."""
    fields = ["ReservedInstancesId"] if quiet else validate_fields(fields, RI_FORMATTERS)
    return [format_row(ri, fields, RI_FORMATTERS) for ri in reserved]
