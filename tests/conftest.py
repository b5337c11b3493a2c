"""
Shared fakes for the session layer.

The fakes stand in for paramiko clients and channels, the EC2 directory
and the local terminal, and record what was done to them.
"""

import socket
import termios

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, rsa

import paramiko

from ec2shell.directory.base import InstanceDirectory, InstanceRecord
from ec2shell.errors import ConnectFailed
from ec2shell.session.terminal import LocalTerminal


# =============================================================================
# Directory
# =============================================================================

class FakeDirectory(InstanceDirectory):
    def __init__(self, records=None, reserved=None):
        self.records = list(records or [])
        self.reserved = list(reserved or [])
        self.calls = []
        self.reserved_calls = []

    def find(self, filter_tag, only_active=True):
        self.calls.append((filter_tag, only_active))
        return list(self.records)

    def find_reserved_instances(self, include_all=False):
        self.reserved_calls.append(include_all)
        return list(self.reserved)


def instance(instance_id, public=None, private=None, **kwargs):
    return InstanceRecord(
        instance_id=instance_id,
        public_address=public,
        private_address=private,
        **kwargs
    )


# =============================================================================
# Transport
# =============================================================================

class FakeTransport:
    def __init__(self):
        self.messages = []

    def _send_user_message(self, m):
        self.messages.append(m)


class FakeChannel:
    """
    Scripted channel. stdout/stderr chunks are handed out by recv and
    recv_stderr, then b'' marks end of stream.
    """

    def __init__(self, stdout=b'', stderr=b'', exit_status=0,
                 pty_error=None, shell_error=None, exec_error=None):
        self.remote_chanid = 7
        self.active = True
        self.closed = False
        self.transport = FakeTransport()
        self._stdout = [stdout] if stdout else []
        self._stderr = [stderr] if stderr else []
        self.exit_status = exit_status
        self.pty_error = pty_error
        self.shell_error = shell_error
        self.exec_error = exec_error

        self.events = []
        self.sent = b''
        self.close_count = 0
        self.combine_stderr = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        self.close_count += 1
        self.closed = True
        self.active = False
        self.events.append('close')

    # pty request, both the public and the raw-message path
    def get_pty(self, term='vt100', width=80, height=24):
        self.events.append(('get_pty', term, width, height))
        if self.pty_error:
            raise self.pty_error

    def _event_pending(self):
        pass

    def _wait_for_event(self):
        self.events.append('pty-req')
        if self.pty_error:
            raise self.pty_error

    def invoke_shell(self):
        self.events.append('shell')
        if self.shell_error:
            raise self.shell_error

    def set_combine_stderr(self, combine):
        self.combine_stderr = combine

    def exec_command(self, command):
        self.events.append(('exec', command))
        if self.exec_error:
            raise self.exec_error

    def recv(self, size):
        return self._stdout.pop(0) if self._stdout else b''

    def recv_stderr(self, size):
        return self._stderr.pop(0) if self._stderr else b''

    def sendall(self, data):
        self.sent += data

    def recv_exit_status(self):
        return self.exit_status


class FakeClient:
    def __init__(self, channel):
        self.channel = channel
        self.close_count = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        self.close_count += 1


class FakeConnector:
    """
    Hands out one FakeChannel per host. Hosts in unreachable fail to dial.
    """

    def __init__(self, channels=None, unreachable=()):
        self.channels = dict(channels or {})
        self.unreachable = set(unreachable)
        self.dialed = []
        self.clients = []

    def dial(self, target):
        self.dialed.append(target.address)
        if target.host in self.unreachable:
            raise ConnectFailed(f"unable to connect: {target.address}") from socket.timeout()
        channel = self.channels.setdefault(target.host, FakeChannel())
        client = FakeClient(channel)
        self.clients.append(client)
        return client

    def open_session(self, client):
        return client.channel


# =============================================================================
# Terminal
# =============================================================================

class FakeTerminal(LocalTerminal):
    def __init__(self, cols=120, rows=40, raw_error=False):
        super().__init__(fd=-1)
        self.cols = cols
        self.rows = rows
        self.raw_error = raw_error
        self.is_raw = False
        self.restored = []

    def size(self):
        return self.cols, self.rows

    def snapshot(self):
        return ['cooked']

    def make_raw(self):
        if self.raw_error:
            raise termios.error(25, "Inappropriate ioctl for device")
        self.is_raw = True

    def restore(self, state):
        self.restored.append(state)
        self.is_raw = False


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def ed25519_key_file(tmp_path):
    key = ed25519.Ed25519PrivateKey.generate()
    pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.OpenSSH,
        serialization.NoEncryption(),
    )
    path = tmp_path / "id_ed25519"
    path.write_bytes(pem)
    return path


@pytest.fixture
def rsa_key_file(tmp_path):
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    )
    path = tmp_path / "id_rsa"
    path.write_bytes(pem)
    return path


@pytest.fixture
def encrypted_rsa_key_file(tmp_path):
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.BestAvailableEncryption(b"secret"),
    )
    path = tmp_path / "id_rsa_encrypted"
    path.write_bytes(pem)
    return path


@pytest.fixture
def auth_context(ed25519_key_file):
    from ec2shell.session.auth import build_auth
    return build_auth("ec2-user", str(ed25519_key_file))


@pytest.fixture
def terminal():
    return FakeTerminal()


@pytest.fixture
def ssh_error():
    return paramiko.SSHException("channel request denied")
