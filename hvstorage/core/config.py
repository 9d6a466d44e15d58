"""
Configuration management for hvstorage.

Handles loading config from ~/.hvstorage/config.yaml and providing
default values for all settings. Command-line options override it.
"""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


# Default paths
DEFAULT_BASE_DIR = Path.home() / ".hvstorage"
DEFAULT_CONFIG_FILE = DEFAULT_BASE_DIR / "config.yaml"

RESULTS_FILE_NAME = "ps_HyperV_GetVMStorageLocationResults.csv"
DEFAULT_RESULTS_FILE = Path(tempfile.gettempdir()) / RESULTS_FILE_NAME

TRANSPORTS = ("local", "ssh")


@dataclass
class PowerShellConfig:
    """Local PowerShell settings."""

    executable: str = "powershell.exe"
    timeout: int = 120


@dataclass
class SSHConfig:
    """SSH transport settings."""

    username: Optional[str] = None
    key_file: Optional[Path] = None
    port: int = 22
    timeout: int = 30
    cluster_host: Optional[str] = None  # where cluster cmdlets run


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "WARNING"
    file: Optional[Path] = None


@dataclass
class Config:
    """Main configuration container."""

    config_file: Path = DEFAULT_CONFIG_FILE

    results_file: Path = DEFAULT_RESULTS_FILE
    transport: str = "local"

    powershell: PowerShellConfig = field(default_factory=PowerShellConfig)
    ssh: SSHConfig = field(default_factory=SSHConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to config file. If None, uses default location.
                         Can also be set via HVSTORAGE_CONFIG env var.

        Returns:
            Config instance with values from file merged with defaults.
        """
        if config_path is None:
            config_path = Path(
                os.environ.get("HVSTORAGE_CONFIG", str(DEFAULT_CONFIG_FILE))
            )
        config_path = Path(config_path).expanduser()

        config = cls()
        config.config_file = config_path

        # If config file doesn't exist, return defaults
        if not config_path.exists():
            return config

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid config YAML: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Invalid config YAML: expected a mapping in {config_path}")

        if data.get("results_file"):
            config.results_file = Path(data["results_file"]).expanduser()

        if "transport" in data:
            transport = str(data["transport"]).lower()
            if transport not in TRANSPORTS:
                raise ValueError(
                    f"Invalid transport '{data['transport']}', expected one of: {', '.join(TRANSPORTS)}"
                )
            config.transport = transport

        if "powershell" in data:
            ps_data = data["powershell"] or {}
            config.powershell = PowerShellConfig(
                executable=ps_data.get("executable", "powershell.exe"),
                timeout=int(ps_data.get("timeout", 120)),
            )

        if "ssh" in data:
            ssh_data = data["ssh"] or {}
            key_file = ssh_data.get("key_file")
            config.ssh = SSHConfig(
                username=ssh_data.get("username"),
                key_file=Path(key_file).expanduser() if key_file else None,
                port=int(ssh_data.get("port", 22)),
                timeout=int(ssh_data.get("timeout", 30)),
                cluster_host=ssh_data.get("cluster_host"),
            )

        if "logging" in data:
            log_data = data["logging"] or {}
            log_file = log_data.get("file")
            config.logging = LoggingConfig(
                level=str(log_data.get("level", "WARNING")).upper(),
                file=Path(log_file).expanduser() if log_file else None,
            )

        return config

    def save_default_config(self) -> bool:
        """
        Save a default config file if one doesn't exist.

        Returns:
            True if a file was written.
        """
        if self.config_file.exists():
            return False

        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        default_config = f"""\
# hvstorage configuration

# =============================================================================
# Report
# =============================================================================

# Default CSV destination (--results-file-path overrides)
results_file: {self.results_file}

# How the cluster is queried: local (PowerShell on this host) or ssh
transport: {self.transport}

# =============================================================================
# Local PowerShell
# =============================================================================

powershell:
  executable: {self.powershell.executable}
  timeout: {self.powershell.timeout}          # seconds per command

# =============================================================================
# SSH transport (OpenSSH on the cluster nodes)
# =============================================================================
# Password is read from HVSTORAGE_SSH_PASS or prompted for when no key_file

ssh:
  username:
  key_file:
  port: {self.ssh.port}
  timeout: {self.ssh.timeout}            # connect timeout in seconds
  cluster_host:          # node to run cluster cmdlets on (default: cluster name)

# =============================================================================
# Logging
# =============================================================================

logging:
  level: {self.logging.level}         # DEBUG, INFO, WARNING, ERROR
  file:
"""

        with open(self.config_file, "w") as f:
            f.write(default_config)
        return True


# Singleton instance
_config: Optional[Config] = None


def get_config(reload: bool = False, config_path: Optional[Path] = None) -> Config:
    """
    Get the global configuration instance.

    Args:
        reload: Force reload from file.
        config_path: Explicit config file, implies reload.

    Returns:
        Config instance.
    """
    global _config

    if _config is None or reload or config_path is not None:
        _config = Config.load(config_path)

    return _config
