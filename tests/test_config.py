"""Tests for YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from hvstorage.core.config import DEFAULT_RESULTS_FILE, Config, get_config


def test_missing_file_gives_defaults(tmp_path):
    config = Config.load(tmp_path / "nope.yaml")

    assert config.results_file == DEFAULT_RESULTS_FILE
    assert DEFAULT_RESULTS_FILE.name == "ps_HyperV_GetVMStorageLocationResults.csv"
    assert config.transport == "local"
    assert config.powershell.executable == "powershell.exe"
    assert config.logging.level == "WARNING"


def test_overrides_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "results_file: /reports/disks.csv\n"
        "transport: SSH\n"
        "powershell:\n"
        "  executable: pwsh\n"
        "  timeout: 30\n"
        "ssh:\n"
        "  username: admin\n"
        "  port: 2222\n"
        "  cluster_host: node1\n"
        "logging:\n"
        "  level: debug\n"
    )

    config = Config.load(path)

    assert config.results_file == Path("/reports/disks.csv")
    assert config.transport == "ssh"
    assert config.powershell.executable == "pwsh"
    assert config.powershell.timeout == 30
    assert config.ssh.username == "admin"
    assert config.ssh.port == 2222
    assert config.ssh.timeout == 30
    assert config.ssh.cluster_host == "node1"
    assert config.ssh.key_file is None
    assert config.logging.level == "DEBUG"


def test_env_var_selects_file(tmp_path, monkeypatch):
    path = tmp_path / "env.yaml"
    path.write_text("transport: ssh\n")
    monkeypatch.setenv("HVSTORAGE_CONFIG", str(path))

    assert Config.load().transport == "ssh"


def test_invalid_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("transport: [unclosed\n")

    with pytest.raises(ValueError, match="Invalid config YAML"):
        Config.load(path)


def test_invalid_transport(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("transport: telnet\n")

    with pytest.raises(ValueError, match="telnet"):
        Config.load(path)


def test_save_default_config_round_trips(tmp_path):
    path = tmp_path / "sub" / "config.yaml"
    config = Config.load(path)

    assert config.save_default_config() is True
    assert config.save_default_config() is False

    reloaded = Config.load(path)
    assert reloaded.transport == "local"
    assert reloaded.ssh.username is None
    assert reloaded.ssh.port == 22
    assert reloaded.logging.file is None


def test_get_config_caches(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("transport: ssh\n")

    first = get_config(config_path=path)
    assert get_config() is first
    assert get_config(reload=True, config_path=tmp_path / "other.yaml") is not first
