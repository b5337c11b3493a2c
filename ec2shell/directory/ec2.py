"""
EC2-backed instance directory using boto3.
"""

from __future__ import annotations
import logging
from typing import Optional, Any, Callable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .base import InstanceDirectory, InstanceRecord, ReservedInstanceRecord
from ..errors import DirectoryError

logger = logging.getLogger(__name__)

DEFAULT_TAG_KEY = "Name"


def parse_filter_tag(filter_tag: str) -> tuple[str, str]:
    """
    Split a filter tag into (key, value).

    "Env:prod" -> ("Env", "prod"), "web" -> ("Name", "web").
    Only the first colon separates, so values may contain colons.
    """
    if ':' in filter_tag:
        key, value = filter_tag.split(':', 1)
        return key or DEFAULT_TAG_KEY, value
    return DEFAULT_TAG_KEY, filter_tag


def build_filters(filter_tag: Optional[str], only_active: bool) -> list[dict]:
    """Build describe_instances filters. Tag values match as substrings."""
    filters = []
    if filter_tag is not None:
        key, value = parse_filter_tag(filter_tag)
        filters.append({'Name': f'tag:{key}', 'Values': [f'*{value}*']})
    if only_active:
        filters.append({'Name': 'instance-state-name', 'Values': ['running']})
    return filters


def _tag_value(instance: dict, key: str) -> Optional[str]:
    for tag in instance.get('Tags', []):
        if tag.get('Key') == key:
            return tag.get('Value')
    return None


def record_from_reserved_instance(reserved: dict) -> ReservedInstanceRecord:
    """Convert a describe_reserved_instances entry to a ReservedInstanceRecord."""
    return ReservedInstanceRecord(
        reserved_instances_id=reserved['ReservedInstancesId'],
        instance_type=reserved['InstanceType'],
        instance_count=reserved['InstanceCount'],
        state=reserved['State'],
        scope=reserved['Scope'],
        start=reserved['Start'],
        end=reserved['End'],
        duration=reserved['Duration'],
        availability_zone=reserved.get('AvailabilityZone'),
    )


def record_from_instance(instance: dict) -> InstanceRecord:
    """Convert a describe_instances Instance dict to an InstanceRecord."""
    return InstanceRecord(
        instance_id=instance['InstanceId'],
        public_address=instance.get('PublicIpAddress'),
        private_address=instance.get('PrivateIpAddress'),
        name=_tag_value(instance, 'Name'),
        state=instance.get('State', {}).get('Name'),
        instance_type=instance.get('InstanceType'),
        launch_time=instance.get('LaunchTime'),
    )


class EC2InstanceDirectory(InstanceDirectory):
    """
    Instance directory backed by EC2 DescribeInstances.

    Usage:
        directory = EC2InstanceDirectory(profile="default", region="us-east-1")
        directory.find("web")                   # running, Name contains "web"
        directory.find("Env:prod", False)       # any state

    profile and region fall back to the usual AWS environment and
    shared config resolution when None.
    """

    def __init__(
        self,
        profile: Optional[str] = None,
        region: Optional[str] = None,
        client_factory: Optional[Callable[..., Any]] = None,
    ):
        self.profile = profile
        self.region = region
        self._client_factory = client_factory
        self._client = None

    @property
    def client(self):
        """Lazily created EC2 client."""
        if self._client is None:
            if self._client_factory:
                self._client = self._client_factory('ec2', region_name=self.region)
            else:
                session = boto3.Session(
                    profile_name=self.profile,
                    region_name=self.region,
                )
                self._client = session.client('ec2')
        return self._client

    def find(self, filter_tag: Optional[str], only_active: bool = True) -> list[InstanceRecord]:
        filters = build_filters(filter_tag, only_active)
        logger.debug(f"DescribeInstances filters: {filters}")

        records = []
        try:
            paginator = self.client.get_paginator('describe_instances')
            for page in paginator.paginate(Filters=filters):
                for reservation in page.get('Reservations', []):
                    for instance in reservation.get('Instances', []):
                        records.append(record_from_instance(instance))
        except (BotoCoreError, ClientError) as e:
            raise DirectoryError(f"unable to describe instances: {e}") from e

        logger.info(f"Directory returned {len(records)} instance(s) for {filter_tag!r}")
        return records

    def find_reserved_instances(self, include_all: bool = False) -> list[ReservedInstanceRecord]:
        # DescribeReservedInstances is not paginated
        kwargs = {}
        if not include_all:
            kwargs['Filters'] = [{'Name': 'state', 'Values': ['active']}]

        try:
            response = self.client.describe_reserved_instances(**kwargs)
        except (BotoCoreError, ClientError) as e:
            raise DirectoryError(f"unable to describe reserved instances: {e}") from e

        records = [record_from_reserved_instance(r) for r in response.get('ReservedInstances', [])]
        logger.info(f"Directory returned {len(records)} reserved instance(s)")
        return records
