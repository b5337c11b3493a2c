"""
Builds the authentication context shared by every connection of a run.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from io import StringIO

import paramiko

from ..errors import KeyUnreadable, KeyUnparseable

logger = logging.getLogger(__name__)

# Tried in order. DSS is gone from current paramiko.
KEY_CLASSES = (
    ('Ed25519', paramiko.Ed25519Key),
    ('RSA', paramiko.RSAKey),
    ('ECDSA', paramiko.ECDSAKey),
)


class AcceptAnyHostKeyPolicy(paramiko.MissingHostKeyPolicy):
    """
    Accept every server host key without recording it.

    WARNING: no known_hosts checking is done, so a man-in-the-middle
    can impersonate any target. Instances behind a tag filter rarely
    have stable host keys in known_hosts, which is why this is kept.
    """

    def missing_host_key(self, client, hostname, key):
        logger.debug(f"Accepting unverified {key.get_name()} host key for {hostname}")


@dataclass(frozen=True)
class AuthContext:
    """Login name, signing key and host-key policy. Read-only after build."""
    login_name: str
    pkey: paramiko.PKey = field(repr=False)
    host_key_policy: paramiko.MissingHostKeyPolicy = field(
        default_factory=AcceptAnyHostKeyPolicy, repr=False
    )

    def connect_kwargs(self) -> dict:
        """paramiko SSHClient.connect kwargs for this identity."""
        return {
            'username': self.login_name,
            'pkey': self.pkey,
            'allow_agent': False,
            'look_for_keys': False,
        }


def expand_identity_path(identity_file: str) -> str:
    """Expand a leading ~ to the home directory."""
    return os.path.expanduser(identity_file)


def load_private_key(key_content: str) -> paramiko.PKey:
    """
    Parse private key text.

    Raises KeyUnparseable for unknown formats and for encrypted keys,
    passphrases are not supported.
    """
    last_error = None
    for key_name, key_class in KEY_CLASSES:
        try:
            key = key_class.from_private_key(StringIO(key_content))
            logger.debug(f"Loaded {key_name} private key")
            return key
        except paramiko.PasswordRequiredException as e:
            raise KeyUnparseable(
                "unable to parse private key: key is encrypted"
            ) from e
        except (paramiko.SSHException, ValueError) as e:
            last_error = e
            continue

    raise KeyUnparseable(f"unable to parse private key: {last_error}") from last_error


def build_auth(login_name: str, identity_file: str) -> AuthContext:
    """Read and parse identity_file, returning the AuthContext for login_name."""
    path = expand_identity_path(identity_file)
    try:
        with open(path, 'rb') as f:
            raw = f.read()
    except OSError as e:
        raise KeyUnreadable(f"unable to read private key: {path}: {e.strerror or e}") from e

    try:
        key_content = raw.decode('utf-8')
    except UnicodeDecodeError as e:
        raise KeyUnparseable(f"unable to parse private key: {path} is not text") from e

    return AuthContext(login_name=login_name, pkey=load_private_key(key_content))
