"""
SSH client for running PowerShell on cluster nodes.

Path: hvstorage/ssh/client.py

Windows Server ships OpenSSH with PowerShell available as a command, so
a plain exec channel is enough: no interactive shell, no prompt
detection. Password or private key authentication.
"""

import logging
import os
import socket
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import paramiko


logger = logging.getLogger(__name__)

READ_CHUNK = 32768
POLL_INTERVAL = 0.05


class SSHErrorCategory(Enum):
    """Categorized SSH error types for better diagnostics."""
    SUCCESS = "success"
    CONNECTION_REFUSED = "connection_refused"
    CONNECTION_TIMEOUT = "connection_timeout"
    DNS_FAILURE = "dns_failure"
    AUTH_FAILURE = "auth_failure"
    COMMAND_TIMEOUT = "command_timeout"
    CHANNEL_ERROR = "channel_error"
    PROTOCOL_ERROR = "protocol_error"
    SOCKET_ERROR = "socket_error"
    UNKNOWN = "unknown"


def categorize_ssh_error(exception: Exception) -> SSHErrorCategory:
    """
    Categorize an SSH exception for better error reporting.

    Args:
        exception: The caught exception.

    Returns:
        SSHErrorCategory indicating the type of failure.
    """
    error_msg = str(exception).lower()
    error_type = type(exception).__name__

    if isinstance(exception, paramiko.AuthenticationException):
        return SSHErrorCategory.AUTH_FAILURE

    if "connection refused" in error_msg or "errno 111" in error_msg:
        return SSHErrorCategory.CONNECTION_REFUSED

    if "timed out" in error_msg or "timeout" in error_type.lower():
        if "command" in error_msg:
            return SSHErrorCategory.COMMAND_TIMEOUT
        return SSHErrorCategory.CONNECTION_TIMEOUT

    if "name or service not known" in error_msg or "getaddrinfo" in error_msg:
        return SSHErrorCategory.DNS_FAILURE

    if any(x in error_msg for x in ["auth", "permission denied", "no supported authentication"]):
        return SSHErrorCategory.AUTH_FAILURE

    if "channel" in error_msg or "eof" in error_msg:
        return SSHErrorCategory.CHANNEL_ERROR

    if isinstance(exception, (socket.error, OSError)) or "socket" in error_msg:
        return SSHErrorCategory.SOCKET_ERROR

    if "ssh" in error_type.lower() or "paramiko" in error_type.lower():
        return SSHErrorCategory.PROTOCOL_ERROR

    return SSHErrorCategory.UNKNOWN


@dataclass
class SSHCredentials:
    """SSH credentials for node authentication."""

    username: str
    password: Optional[str] = None
    key_file: Optional[str] = None
    key_passphrase: Optional[str] = None

    @property
    def has_key(self) -> bool:
        return self.key_file is not None

    @property
    def has_password(self) -> bool:
        return self.password is not None


@dataclass
class SSHClientOptions:
    """Connection options for one host."""
    host: str
    credentials: SSHCredentials
    port: int = 22
    timeout: int = 30
    command_timeout: int = 120


@dataclass
class CommandResult:
    """Result of a single remote command."""
    host: str
    exit_status: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: float = 0

    @property
    def success(self) -> bool:
        return self.exit_status == 0

    def __repr__(self) -> str:
        return f"CommandResult(host={self.host}, exit_status={self.exit_status}, duration={self.duration_ms:.0f}ms)"


class SSHClient:
    """
    Exec-channel SSH client.

    Usage:
        options = SSHClientOptions(host="node1", credentials=creds)
        with SSHClient(options) as client:
            result = client.execute("hostname")
    """

    def __init__(self, options: SSHClientOptions):
        if not options.host:
            raise ValueError("Host is required")
        if not options.credentials.username:
            raise ValueError("Username is required")
        if not options.credentials.has_password and not options.credentials.has_key:
            raise ValueError(
                "Authentication required: provide a password or key file, or set "
                "HVSTORAGE_SSH_PASS"
            )

        self._options = options
        self._ssh_client = None

    def _load_private_key(self):
        """
        Load a private key file, trying Ed25519, RSA then ECDSA.
        """
        key_file = os.path.expanduser(self._options.credentials.key_file)
        if not os.path.exists(key_file):
            raise ValueError(f"Key file not found: {key_file}")

        passphrase = self._options.credentials.key_passphrase
        key_types = [
            ('Ed25519', paramiko.Ed25519Key),
            ('RSA', paramiko.RSAKey),
            ('ECDSA', paramiko.ECDSAKey),
        ]

        last_exception = None
        for key_name, key_class in key_types:
            try:
                pkey = key_class.from_private_key_file(key_file, password=passphrase)
                logger.debug(f"Loaded {key_name} key from {key_file}")
                return pkey
            except paramiko.PasswordRequiredException:
                raise ValueError("Private key requires a passphrase")
            except paramiko.SSHException as e:
                last_exception = e
                continue

        raise ValueError(f"Could not load private key. "
                         f"Make sure it's a valid RSA, ECDSA, or Ed25519 key. "
                         f"Last error: {last_exception}")

    def connect(self):
        """Open the SSH transport."""
        options = self._options
        logger.debug(f"Connecting to {options.host}:{options.port}...")

        self._ssh_client = paramiko.SSHClient()
        self._ssh_client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        connect_params = {
            'hostname': options.host,
            'port': options.port,
            'username': options.credentials.username,
            'timeout': options.timeout,
            'allow_agent': False,
            'look_for_keys': False,
        }

        if options.credentials.has_key:
            connect_params['pkey'] = self._load_private_key()
            # Password, if also provided, is a fallback for key auth
            if options.credentials.has_password:
                connect_params['password'] = options.credentials.password
        else:
            connect_params['password'] = options.credentials.password

        try:
            self._ssh_client.connect(**connect_params)
        except Exception:
            self._ssh_client.close()
            self._ssh_client = None
            raise

        logger.debug(f"Connected to {options.host}:{options.port}")

    def execute(self, command: str) -> CommandResult:
        """Run a command and wait for it to finish."""
        if self._ssh_client is None:
            self.connect()

        start = time.time()
        deadline = start + self._options.command_timeout
        _, stdout, _ = self._ssh_client.exec_command(
            command, timeout=self._options.command_timeout
        )
        channel = stdout.channel

        # Drain both streams together so a full stderr window cannot stall stdout
        out_chunks, err_chunks = [], []
        while True:
            while channel.recv_ready():
                out_chunks.append(channel.recv(READ_CHUNK))
            while channel.recv_stderr_ready():
                err_chunks.append(channel.recv_stderr(READ_CHUNK))
            if channel.exit_status_ready() and not channel.recv_ready() and not channel.recv_stderr_ready():
                break
            if time.time() > deadline:
                channel.close()
                raise socket.timeout(
                    f"command timed out after {self._options.command_timeout}s"
                )
            time.sleep(POLL_INTERVAL)

        return CommandResult(
            host=self._options.host,
            exit_status=channel.recv_exit_status(),
            stdout=b"".join(out_chunks).decode("utf-8", errors="replace"),
            stderr=b"".join(err_chunks).decode("utf-8", errors="replace"),
            duration_ms=(time.time() - start) * 1000,
        )

    def disconnect(self):
        if self._ssh_client:
            self._ssh_client.close()
            self._ssh_client = None
            logger.debug(f"Disconnected from {self._options.host}")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
