# provisioner/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for provisioner configuration.

This module defines the structured, immutable settings for a provisioning run,
including defaults, type annotations, and descriptions. Settings are frozen
once built; every stage receives the same `AppSettings` instance.
"""

import posixpath
from typing import Dict, List, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from provisioner.config import SYSTEMD_UNIT_DIR

# --- Default Static Values (can be overridden by config file/env/cli) ---
LOG_PREFIX_DEFAULT: str = "[N8N-SETUP]"
SUPPORTED_OS_ID_DEFAULT: str = "ubuntu"
SUPPORTED_OS_VERSION_DEFAULT: str = "22.04"
ACTIVATION_DELAY_DEFAULT: float = 5.0
PUBLIC_IP_LOOKUP_URL_DEFAULT: str = "https://ifconfig.me"
PUBLIC_IP_PLACEHOLDER_DEFAULT: str = "YOUR_SERVER_IP"

PREREQUISITE_PACKAGES_DEFAULT: List[str] = [
    "curl",
    "wget",
    "gnupg2",
    "software-properties-common",
    "apt-transport-https",
    "ca-certificates",
]

N8N_USER_DEFAULT: str = "n8n"
N8N_PORT_DEFAULT: int = 5678
N8N_SERVICE_NAME_DEFAULT: str = "n8n"
N8N_PACKAGE_DEFAULT: str = "n8n"
N8N_EXEC_START_DEFAULT: str = "/usr/bin/n8n start"
N8N_BASIC_AUTH_USER_DEFAULT: str = "admin"
# IMPORTANT: User should change this via ENV/YAML or be warned.
N8N_BASIC_AUTH_PASSWORD_DEFAULT: str = "changeme123"

NODEJS_MAJOR_VERSION_DEFAULT: int = 18
NODESOURCE_BASE_URL_DEFAULT: str = "https://deb.nodesource.com"

SYMBOLS_DEFAULT: Dict[str, str] = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
    "info": "ℹ️",
    "step": "➡️",
    "gear": "⚙️",
    "package": "📦",
    "rocket": "🚀",
    "sparkles": "✨",
    "critical": "🔥",
    "debug": "🐛",
}


class ServiceSettings(BaseSettings):
    """Settings of the n8n service account, unit and runtime environment."""

    model_config = SettingsConfigDict(
        env_prefix="N8N_", extra="ignore", frozen=True
    )

    user: str = Field(
        default=N8N_USER_DEFAULT,
        description="System account that runs the service.",
    )
    home: Optional[str] = Field(
        default=None,
        description="Home directory of the account. Defaults to /home/<user>.",
    )
    shell: str = Field(
        default="/bin/bash", description="Login shell of the account."
    )
    port: int = Field(
        default=N8N_PORT_DEFAULT,
        ge=1,
        le=65535,
        description="TCP port n8n listens on.",
    )
    service_name: str = Field(
        default=N8N_SERVICE_NAME_DEFAULT,
        description="Name of the systemd service.",
    )
    unit_path: Optional[str] = Field(
        default=None,
        description="Unit file location. Defaults to the systemd unit directory.",
    )
    package: str = Field(
        default=N8N_PACKAGE_DEFAULT,
        description="npm package spec installed globally (unpinned by default).",
    )
    executable: str = Field(
        default="n8n", description="Executable the npm package provides."
    )
    exec_start: str = Field(
        default=N8N_EXEC_START_DEFAULT,
        description="ExecStart command line of the unit.",
    )
    description: str = Field(
        default="n8n - Workflow Automation Tool",
        description="Description= line of the unit.",
    )
    restart: str = Field(default="always", description="Restart= policy.")
    restart_sec: int = Field(
        default=10, ge=0, description="RestartSec= backoff in seconds."
    )
    node_env: str = Field(default="production", description="NODE_ENV value.")
    basic_auth_active: bool = Field(
        default=True, description="Enable n8n basic authentication."
    )
    basic_auth_user: str = Field(
        default=N8N_BASIC_AUTH_USER_DEFAULT,
        description="Basic authentication user.",
    )
    basic_auth_password: SecretStr = Field(
        default=SecretStr(N8N_BASIC_AUTH_PASSWORD_DEFAULT),
        description="Basic authentication password.",
    )
    host: str = Field(default="0.0.0.0", description="N8N_HOST bind address.")
    protocol: str = Field(default="http", description="N8N_PROTOCOL value.")
    webhook_url: Optional[str] = Field(
        default=None,
        description="Public callback URL. Defaults to http://localhost:<port>/.",
    )

    @model_validator(mode="after")
    def _unit_path_matches_service_name(self) -> "ServiceSettings":
        if self.unit_path is not None:
            expected = f"{self.service_name}.service"
            if posixpath.basename(self.unit_path) != expected:
                raise ValueError(
                    f"unit_path must name the unit file '{expected}' "
                    f"of service '{self.service_name}', got '{self.unit_path}'"
                )
        return self

    @property
    def home_dir(self) -> str:
        return self.home or f"/home/{self.user}"

    @property
    def config_dir(self) -> str:
        """Private n8n data directory inside the account's home."""
        return posixpath.join(self.home_dir, ".n8n")

    @property
    def unit_file_path(self) -> str:
        return self.unit_path or posixpath.join(
            SYSTEMD_UNIT_DIR, f"{self.service_name}.service"
        )

    @property
    def public_webhook_url(self) -> str:
        return self.webhook_url or f"http://localhost:{self.port}/"

    @property
    def uses_default_password(self) -> bool:
        return (
            self.basic_auth_password.get_secret_value()
            == N8N_BASIC_AUTH_PASSWORD_DEFAULT
        )


class NodejsSettings(BaseSettings):
    """Node.js runtime settings."""

    model_config = SettingsConfigDict(
        env_prefix="NODEJS_", extra="ignore", frozen=True
    )

    major_version: int = Field(
        default=NODEJS_MAJOR_VERSION_DEFAULT,
        ge=1,
        description="Pinned Node.js major version installed from NodeSource.",
    )
    setup_script_base_url: str = Field(
        default=NODESOURCE_BASE_URL_DEFAULT,
        description="Base URL serving the NodeSource setup_<major>.x scripts.",
    )

    @property
    def setup_script_url(self) -> str:
        return (
            f"{self.setup_script_base_url.rstrip('/')}/"
            f"setup_{self.major_version}.x"
        )


class FirewallSettings(BaseSettings):
    """UFW allow rules. Rules are only ever added, never removed."""

    model_config = SettingsConfigDict(
        env_prefix="UFW_", extra="ignore", frozen=True
    )

    remote_admin_rule: str = Field(
        default="ssh",
        min_length=1,
        description="Rule keeping remote administration reachable.",
    )
    extra_allow_rules: List[str] = Field(
        default_factory=list,
        description="Additional ufw allow rules, e.g. '443/tcp'.",
    )

    @field_validator("remote_admin_rule", mode="before")
    @classmethod
    def _strip_remote_admin_rule(cls, value):
        return value.strip() if isinstance(value, str) else value


class AppSettings(BaseSettings):
    """Main provisioner settings."""

    model_config = SettingsConfigDict(extra="ignore", frozen=True)

    log_prefix: str = Field(
        default=LOG_PREFIX_DEFAULT,
        description="Prefix for log messages from the provisioner.",
    )
    supported_os_id: str = Field(
        default=SUPPORTED_OS_ID_DEFAULT,
        description="Expected ID from /etc/os-release.",
    )
    supported_os_version: str = Field(
        default=SUPPORTED_OS_VERSION_DEFAULT,
        description="Expected VERSION_ID from /etc/os-release.",
    )
    prerequisite_packages: List[str] = Field(
        default_factory=lambda: list(PREREQUISITE_PACKAGES_DEFAULT),
        description="apt packages installed by the package stage.",
    )
    activation_delay: float = Field(
        default=ACTIVATION_DELAY_DEFAULT,
        ge=0,
        description="Seconds to wait after starting the service before checking it.",
    )
    public_ip_lookup_url: str = Field(
        default=PUBLIC_IP_LOOKUP_URL_DEFAULT,
        description="Endpoint returning the caller's public IP as plain text.",
    )
    public_ip_placeholder: str = Field(
        default=PUBLIC_IP_PLACEHOLDER_DEFAULT,
        description="Shown instead of the public IP when the lookup fails.",
    )

    service: ServiceSettings = Field(default_factory=ServiceSettings)
    nodejs: NodejsSettings = Field(default_factory=NodejsSettings)
    firewall: FirewallSettings = Field(default_factory=FirewallSettings)

    symbols: Dict[str, str] = Field(
        default_factory=lambda: dict(SYMBOLS_DEFAULT)
    )
