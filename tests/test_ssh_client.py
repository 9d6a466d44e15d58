"""Tests for SSHClient against a stand-in paramiko.SSHClient."""

from __future__ import annotations

import socket

import paramiko
import pytest

from hvstorage.ssh import client as ssh_client
from hvstorage.ssh.client import SSHClient, SSHClientOptions, SSHCredentials


class FakeChannel:
    """Serves stdout/stderr chunks alternately, then an exit status."""

    def __init__(self, stdout_chunks=(), stderr_chunks=(), exit_status=0, finishes=True):
        self.stdout_chunks = list(stdout_chunks)
        self.stderr_chunks = list(stderr_chunks)
        self.exit_status = exit_status
        self.finishes = finishes
        self.closed = False

    def recv_ready(self):
        return bool(self.stdout_chunks)

    def recv(self, size):
        return self.stdout_chunks.pop(0)

    def recv_stderr_ready(self):
        return bool(self.stderr_chunks)

    def recv_stderr(self, size):
        return self.stderr_chunks.pop(0)

    def exit_status_ready(self):
        return self.finishes and not self.stdout_chunks and not self.stderr_chunks

    def recv_exit_status(self):
        return self.exit_status

    def close(self):
        self.closed = True


class FakeStream:
    def __init__(self, channel):
        self.channel = channel


class FakeParamikoClient:
    """Records connect() parameters; optionally fails to connect."""

    instances = []
    connect_error = None
    channel = None

    def __init__(self):
        self.connect_params = None
        self.policy = None
        self.closed = False
        self.commands = []
        FakeParamikoClient.instances.append(self)

    def set_missing_host_key_policy(self, policy):
        self.policy = policy

    def connect(self, **params):
        self.connect_params = params
        if FakeParamikoClient.connect_error:
            raise FakeParamikoClient.connect_error

    def exec_command(self, command, timeout=None):
        self.commands.append((command, timeout))
        stream = FakeStream(FakeParamikoClient.channel)
        return None, stream, stream

    def close(self):
        self.closed = True


@pytest.fixture
def fake_paramiko(monkeypatch):
    FakeParamikoClient.instances = []
    FakeParamikoClient.connect_error = None
    FakeParamikoClient.channel = FakeChannel()
    monkeypatch.setattr(paramiko, "SSHClient", FakeParamikoClient)
    monkeypatch.setattr(ssh_client, "POLL_INTERVAL", 0)
    return FakeParamikoClient


def make_client(**cred_kwargs) -> SSHClient:
    creds = SSHCredentials(username="admin", **cred_kwargs)
    return SSHClient(SSHClientOptions(host="Node1", credentials=creds, port=2222, timeout=7))


def test_password_auth_parameters(fake_paramiko):
    make_client(password="secret").connect()

    params = fake_paramiko.instances[0].connect_params
    assert params == {
        "hostname": "Node1",
        "port": 2222,
        "username": "admin",
        "timeout": 7,
        "allow_agent": False,
        "look_for_keys": False,
        "password": "secret",
    }
    assert isinstance(fake_paramiko.instances[0].policy, paramiko.AutoAddPolicy)


def test_key_file_passed_as_pkey(fake_paramiko, tmp_path, monkeypatch):
    key_file = tmp_path / "id_ed25519"
    key_file.write_text("not really a key")
    loaded = object()
    seen = {}

    def load(filename, password=None):
        seen["args"] = (filename, password)
        return loaded

    monkeypatch.setattr(paramiko.Ed25519Key, "from_private_key_file", load)

    make_client(key_file=str(key_file), key_passphrase="pp").connect()

    params = fake_paramiko.instances[0].connect_params
    assert params["pkey"] is loaded
    assert "password" not in params
    assert seen["args"] == (str(key_file), "pp")


def test_key_file_with_password_fallback(fake_paramiko, tmp_path, monkeypatch):
    key_file = tmp_path / "id_rsa"
    key_file.write_text("x")
    monkeypatch.setattr(paramiko.Ed25519Key, "from_private_key_file",
                        lambda filename, password=None: "key")

    make_client(key_file=str(key_file), password="secret").connect()

    params = fake_paramiko.instances[0].connect_params
    assert params["pkey"] == "key"
    assert params["password"] == "secret"


def test_missing_key_file(fake_paramiko, tmp_path):
    client = make_client(key_file=str(tmp_path / "missing"))

    with pytest.raises(ValueError, match="Key file not found"):
        client.connect()


def test_failed_connect_closes_and_resets(fake_paramiko):
    fake_paramiko.connect_error = paramiko.AuthenticationException("Authentication failed.")
    client = make_client(password="wrong")

    with pytest.raises(paramiko.AuthenticationException):
        client.connect()

    assert fake_paramiko.instances[0].closed
    assert client._ssh_client is None


def test_execute_returns_status_and_both_streams(fake_paramiko):
    fake_paramiko.channel = FakeChannel(
        stdout_chunks=[b'["Node1",', b'"Node2"]'],
        stderr_chunks=[b"WARNING: ", b"slow node"],
        exit_status=3,
    )

    with make_client(password="secret") as client:
        result = client.execute("powershell.exe -Command x")

    assert result.exit_status == 3
    assert not result.success
    assert result.stdout == '["Node1","Node2"]'
    assert result.stderr == "WARNING: slow node"
    assert result.host == "Node1"
    assert fake_paramiko.instances[0].commands == [("powershell.exe -Command x", 120)]
    assert fake_paramiko.instances[0].closed


def test_execute_drains_large_stderr(fake_paramiko):
    fake_paramiko.channel = FakeChannel(
        stdout_chunks=[b"ok"],
        stderr_chunks=[b"e" * 32768] * 20,
    )

    with make_client(password="secret") as client:
        result = client.execute("cmd")

    assert result.stdout == "ok"
    assert len(result.stderr) == 32768 * 20


def test_execute_replaces_undecodable_bytes(fake_paramiko):
    fake_paramiko.channel = FakeChannel(stdout_chunks=[b'"VM\xff"'])

    with make_client(password="secret") as client:
        result = client.execute("cmd")

    assert result.stdout == '"VM\ufffd"'


def test_execute_times_out(fake_paramiko):
    fake_paramiko.channel = FakeChannel(finishes=False)
    creds = SSHCredentials(username="admin", password="secret")
    client = SSHClient(SSHClientOptions(host="Node1", credentials=creds, command_timeout=0))

    with pytest.raises(socket.timeout, match="command timed out"):
        client.execute("cmd")

    assert fake_paramiko.channel.closed
