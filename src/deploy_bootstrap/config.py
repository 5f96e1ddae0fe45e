"""Configuration loading utilities for deploy-bootstrap."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .ssh.credentials import CredentialSpec, FilePath, InlineContent
from .ssh.session import AlgorithmPreferences

# Load .env file if it exists
load_dotenv()

_DEFAULT_CONFIG_PATH = Path("config/default_config.json")

ENV_PREFIX = "DEPLOY_BOOTSTRAP_"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class SSHConfig:
    """Connection and credential settings for the target host."""

    host: Optional[str] = None
    port: int = 22
    user: Optional[str] = None
    key_path: Optional[str] = None
    key_content: Optional[str] = None  # inline key text, wins over key_path
    auto_convert: bool = False
    preferred_kex: List[str] = field(default_factory=list)
    preferred_host_key: List[str] = field(default_factory=list)

    def to_credential_spec(self) -> CredentialSpec:
        if self.key_content:
            source = InlineContent(self.key_content)
        else:
            source = FilePath(self.key_path or "")
        return CredentialSpec(
            host=self.host or "",
            user=self.user or "",
            key_source=source,
            port=self.port,
            auto_convert=self.auto_convert,
        )

    def algorithm_preferences(self) -> AlgorithmPreferences:
        return AlgorithmPreferences(
            kex=tuple(self.preferred_kex),
            host_key=tuple(self.preferred_host_key),
        )


@dataclass
class DeployConfig:
    """Settings for the publish-and-run bootstrap flow."""

    publish_dir: str = "publish"
    remote_dir: Optional[str] = None  # defaults to /home/<user>/deployment-service
    command: str = "echo hello-from-bootstrap"

    def resolve_remote_dir(self, user: str) -> str:
        return self.remote_dir or f"/home/{user}/deployment-service"


@dataclass
class AppConfig:
    """Top-level configuration."""

    ssh: SSHConfig = field(default_factory=SSHConfig)
    deploy: DeployConfig = field(default_factory=DeployConfig)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AppConfig":
        # 以下划线开头的字段视为注释
        ssh_payload = _strip_comments(payload.get("ssh", {}) or {})
        deploy_payload = _strip_comments(payload.get("deploy", {}) or {})
        return cls(
            ssh=SSHConfig(**{**SSHConfig().__dict__, **ssh_payload}),
            deploy=DeployConfig(**{**DeployConfig().__dict__, **deploy_payload}),
        )


def _strip_comments(section: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in section.items() if not k.startswith("_")}


def _apply_env(config: AppConfig) -> None:
    env_host = os.getenv(f"{ENV_PREFIX}SSH_HOST")
    if env_host:
        config.ssh.host = env_host

    env_port = os.getenv(f"{ENV_PREFIX}SSH_PORT")
    if env_port:
        config.ssh.port = int(env_port)

    env_user = os.getenv(f"{ENV_PREFIX}SSH_USER")
    if env_user:
        config.ssh.user = env_user

    env_key_path = os.getenv(f"{ENV_PREFIX}SSH_KEY_PATH")
    if env_key_path:
        config.ssh.key_path = env_key_path

    env_key = os.getenv(f"{ENV_PREFIX}SSH_KEY")
    if env_key:
        config.ssh.key_content = env_key

    env_convert = os.getenv(f"{ENV_PREFIX}SSH_AUTO_CONVERT")
    if env_convert:
        config.ssh.auto_convert = env_convert.strip().lower() in _TRUTHY


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load configuration from `path` or the default location.

    Environment variables (higher priority than config file):
    - DEPLOY_BOOTSTRAP_SSH_HOST: SSH host
    - DEPLOY_BOOTSTRAP_SSH_PORT: SSH port
    - DEPLOY_BOOTSTRAP_SSH_USER: SSH username
    - DEPLOY_BOOTSTRAP_SSH_KEY_PATH: Path to SSH private key
    - DEPLOY_BOOTSTRAP_SSH_KEY: Private key content (overrides the path)
    - DEPLOY_BOOTSTRAP_SSH_AUTO_CONVERT: Convert OpenSSH keys to PEM (true/false)

    An explicit ``path`` that does not exist is an error; when no file is
    found at the default location the built-in defaults are used.
    """
    if path and not Path(path).is_file():
        raise FileNotFoundError(f"Could not find configuration file: {path}")

    candidate = Path(path) if path else _DEFAULT_CONFIG_PATH
    if candidate.is_file():
        with candidate.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        config = AppConfig.from_dict(data)
    else:
        config = AppConfig()

    _apply_env(config)
    return config
