"""
Turns a filter tag into connectable targets.
"""

from __future__ import annotations
import logging

from .models import AddressPreference, ResolvedTarget, DEFAULT_SSH_PORT
from ..directory.base import InstanceDirectory, InstanceRecord
from ..errors import NoMatch, MissingAddress

logger = logging.getLogger(__name__)


def select_address(instance: InstanceRecord, preference: AddressPreference) -> str:
    """Pick the public or private address, MissingAddress if absent."""
    if preference is AddressPreference.PRIVATE:
        if not instance.private_address:
            raise MissingAddress(f"no private ip address: {instance.instance_id}")
        return instance.private_address

    if not instance.public_address:
        raise MissingAddress(f"no public ip address: {instance.instance_id}")
    return instance.public_address


class TargetResolver:
    """
    Resolves running instances to targets.

    Resolution is all-or-nothing: one instance without the requested
    address fails the whole call. Directory order is preserved.
    """

    def __init__(self, directory: InstanceDirectory, port: int = DEFAULT_SSH_PORT):
        self.directory = directory
        self.port = port

    def resolve(
        self,
        filter_tag: str,
        preference: AddressPreference = AddressPreference.PUBLIC,
    ) -> list[ResolvedTarget]:
        instances = self.directory.find(filter_tag, only_active=True)
        if not instances:
            raise NoMatch(f"no such instance: {filter_tag}")

        targets = [
            ResolvedTarget(host=select_address(instance, preference), port=self.port)
            for instance in instances
        ]
        logger.debug(
            f"Resolved {filter_tag!r} ({preference.value}) -> "
            f"{[t.host for t in targets]}"
        )
        return targets
