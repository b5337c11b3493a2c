"""
Entry point of the session layer: picks interactive or batch mode.
"""

from __future__ import annotations
import logging
from typing import Callable, Optional, TextIO

from .auth import AuthContext, build_auth
from .batch import BatchExecutor
from .interactive import InteractiveSession
from .models import SessionRequest, SessionOutcome
from .resolver import TargetResolver
from .terminal import LocalTerminal
from .transport import Connector
from ..directory.base import InstanceDirectory
from ..errors import AmbiguousTarget

logger = logging.getLogger(__name__)


class SessionOrchestrator:
    """
    Runs one SessionRequest.

    | targets | command | action              |
    |---------|---------|---------------------|
    | 0       | any     | NoMatch             |
    | >= 2    | absent  | AmbiguousTarget     |
    | 1       | absent  | interactive session |
    | >= 1    | present | batch, in order     |

    The identity file is loaded before the directory is queried, so a bad
    key never costs an API call or a connection. Addresses are selected
    before the ambiguity check, so MissingAddress wins over AmbiguousTarget.
    """

    def __init__(
        self,
        directory: InstanceDirectory,
        connect_timeout: Optional[float] = None,
        terminal: Optional[LocalTerminal] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        auth_builder: Callable[[str, str], AuthContext] = build_auth,
        connector_factory: Callable[..., Connector] = Connector,
    ):
        self.resolver = TargetResolver(directory)
        self.connect_timeout = connect_timeout
        self.terminal = terminal
        self.stdout = stdout
        self.stderr = stderr
        self._auth_builder = auth_builder
        self._connector_factory = connector_factory

    def run(self, request: SessionRequest) -> list[SessionOutcome]:
        request.validate()

        auth = self._auth_builder(request.login_name, request.identity_file)
        targets = self.resolver.resolve(request.filter_tag, request.address_preference)

        if len(targets) >= 2 and not request.has_command:
            raise AmbiguousTarget(
                f"multiple instances found for {request.filter_tag}: "
                f"{', '.join(t.host for t in targets)}; give a command or narrow the filter"
            )

        connector = self._connector_factory(auth, connect_timeout=self.connect_timeout)

        if not request.has_command:
            session = InteractiveSession(
                connector,
                terminal=self.terminal,
                stdout=self.stdout,
                stderr=self.stderr,
            )
            return [session.run(targets[0])]

        logger.info(f"Running {request.command!r} on {len(targets)} host(s)")
        executor = BatchExecutor(connector, terminal=self.terminal, stdout=self.stdout)
        return executor.run(targets, request.command)
