"""
SSH transport primitives on top of Paramiko.

Each setup phase maps its failures to one TransportError subclass so
callers can tell how far a connection got.
"""

from __future__ import annotations
import logging
import socket
import struct
from typing import Optional

import paramiko
from paramiko.common import cMSG_CHANNEL_REQUEST

from .auth import AuthContext
from .models import ResolvedTarget
from ..errors import ConnectFailed, SessionOpenFailed, PtyRequestFailed

logger = logging.getLogger(__name__)


# =============================================================================
# Terminal modes (RFC 4254 section 8)
# =============================================================================

TTY_OP_END = 0
ECHO = 53
TTY_OP_ISPEED = 128
TTY_OP_OSPEED = 129

INTERACTIVE_TERMINAL_MODES = {
    ECHO: 1,
    TTY_OP_ISPEED: 14400,
    TTY_OP_OSPEED: 14400,
}

DEFAULT_TERM = "xterm"


def encode_terminal_modes(modes: Optional[dict[int, int]]) -> bytes:
    """Encode opcode/value pairs as the pty-req modes string."""
    encoded = b''.join(
        struct.pack('>BI', opcode, value)
        for opcode, value in (modes or {}).items()
    )
    return encoded + bytes([TTY_OP_END])


def _send_pty_request(
    channel: paramiko.Channel,
    term: str,
    width: int,
    height: int,
    modes: dict[int, int],
) -> None:
    """
    pty-req carrying terminal modes.

    Channel.get_pty() always sends an empty modes string, so the request
    is built the same way but with the encoded modes.
    """
    # get_pty is guarded by @open_only, the private calls below are not
    if channel.closed or not channel.active:
        raise PtyRequestFailed("request for pseudo terminal failed: channel is not open")

    # Field order and the _event_pending/_wait_for_event handshake follow
    # Channel.get_pty in paramiko 3.4 (paramiko/channel.py)
    m = paramiko.Message()
    m.add_byte(cMSG_CHANNEL_REQUEST)
    m.add_int(channel.remote_chanid)
    m.add_string("pty-req")
    m.add_boolean(True)
    m.add_string(term)
    m.add_int(width)
    m.add_int(height)
    m.add_int(0)
    m.add_int(0)
    m.add_string(encode_terminal_modes(modes))
    channel._event_pending()
    channel.transport._send_user_message(m)
    channel._wait_for_event()


def request_pty(
    channel: paramiko.Channel,
    width: int,
    height: int,
    term: str = DEFAULT_TERM,
    modes: Optional[dict[int, int]] = None,
) -> None:
    """Request a pseudo-terminal, PtyRequestFailed if the server refuses."""
    try:
        if modes:
            _send_pty_request(channel, term, width, height, modes)
        else:
            channel.get_pty(term=term, width=width, height=height)
    except (paramiko.SSHException, OSError, EOFError) as e:
        raise PtyRequestFailed(f"request for pseudo terminal failed: {e}") from e
    logger.debug(f"pty granted: {term} {width}x{height} modes={modes or {}}")


# =============================================================================
# Connector
# =============================================================================

class Connector:
    """
    Dials targets with one AuthContext.

    connect_timeout of None means no timeout at all, a dead host then
    blocks the dial until the OS gives up.
    """

    def __init__(self, auth: AuthContext, connect_timeout: Optional[float] = None):
        self.auth = auth
        self.connect_timeout = connect_timeout

    def _create_client(self) -> paramiko.SSHClient:
        # No load_system_host_keys(): known_hosts is never consulted
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(self.auth.host_key_policy)
        return client

    def dial(self, target: ResolvedTarget) -> paramiko.SSHClient:
        """Connect and authenticate, ConnectFailed on any failure."""
        logger.info(f"Connecting to {self.auth.login_name}@{target.address}")
        client = self._create_client()
        try:
            client.connect(
                target.host,
                port=target.port,
                timeout=self.connect_timeout,
                **self.auth.connect_kwargs()
            )
        except (paramiko.SSHException, socket.error, EOFError) as e:
            client.close()
            raise ConnectFailed(f"unable to connect: {target.address}: {e}") from e

        transport = client.get_transport()
        if transport:
            logger.debug(
                f"Negotiated: cipher={transport.remote_cipher}, "
                f"mac={transport.remote_mac}"
            )
        return client

    def open_session(self, client: paramiko.SSHClient) -> paramiko.Channel:
        """Open a session channel, SessionOpenFailed on any failure."""
        transport = client.get_transport()
        if transport is None or not transport.is_active():
            raise SessionOpenFailed("unable to open session: transport is not active")
        try:
            return transport.open_session()
        except (paramiko.SSHException, socket.error, EOFError) as e:
            raise SessionOpenFailed(f"unable to open session: {e}") from e
