# provisioner/cli_handler.py
# -*- coding: utf-8 -*-
"""
Handles Command Line Interface (CLI) interactions for the n8n provisioner:
confirmation prompts and the text shown before and after provisioning.
"""

import datetime
import logging
from typing import Callable, List, Optional

from common.command_utils import log_provisioner
from provisioner import config as static_config
from provisioner.config_models import AppSettings
from provisioner.pipeline import StageOutcome

module_logger = logging.getLogger(__name__)

ConfirmFunc = Callable[[str], bool]

SEPARATOR = "=" * 79


def cli_confirm(
    prompt_message: str,
    app_settings: AppSettings,
    current_logger_instance: Optional[logging.Logger] = None,
) -> bool:
    """
    Ask a yes/no question on the terminal. Only "y" or "yes" (any case)
    counts as yes; EOF is treated as "no".

    Parameters:
    prompt_message : str
        The question to display.
    app_settings : AppSettings
        Settings providing the logging symbols.
    current_logger_instance : Optional[logging.Logger]
        Logger used to record an EOF answer.

    Returns:
    bool
        True if the user answered yes.
    """
    logger_to_use = (
        current_logger_instance if current_logger_instance else module_logger
    )
    symbols = app_settings.symbols
    try:
        user_input = (
            input(f"   {symbols.get('info', 'ℹ️')} {prompt_message} (y/N): ")
            .strip()
            .lower()
        )
        return user_input in ("y", "yes")
    except EOFError:
        log_provisioner(
            f"{symbols.get('warning', '!')} No user input (EOF), defaulting to 'N' for prompt: '{prompt_message}'",
            "warning",
            logger_to_use,
            app_settings,
        )
        return False


def make_confirm(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    assume_yes: bool = False,
) -> ConfirmFunc:
    """Build the confirm(prompt) -> bool callable used by the entry point."""
    logger_to_use = current_logger if current_logger else module_logger

    def confirm(prompt_message: str) -> bool:
        if assume_yes:
            log_provisioner(
                f"{app_settings.symbols.get('info', 'ℹ️')} {prompt_message} (y/N): y [--yes]",
                "info",
                logger_to_use,
                app_settings,
            )
            return True
        return cli_confirm(prompt_message, app_settings, logger_to_use)

    return confirm


def display_installation_plan(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    service = app_settings.service

    plan_text = (
        "This script will install n8n with the following configuration:\n"
        f"  - Node.js {app_settings.nodejs.major_version} (LTS)\n"
        f"  - n8n ({'latest version' if service.package == 'n8n' else service.package})\n"
        "  - Systemd service\n"
        "  - Basic firewall rules\n"
        f"  - User: {service.user}\n"
        f"  - Port: {service.port}"
    )
    log_provisioner(
        f"{symbols.get('warning', '⚠️')} {plan_text}",
        "warning",
        logger_to_use,
        app_settings,
    )
    if service.uses_default_password:
        log_provisioner(
            f"{symbols.get('warning', '⚠️')} The default basic-auth password is in use. Change it right after installation.",
            "warning",
            logger_to_use,
            app_settings,
        )


def view_configuration(
    app_config: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Log the effective configuration values (CLI > YAML > ENV > Defaults).
    The basic-auth password itself is never shown.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_config.symbols
    service = app_config.service

    password_display = (
        "[DEFAULT - Insecure! Override via ENV or YAML]"
        if service.uses_default_password
        else "[FROM CONFIGURATION (ENV/YAML)]"
    )

    config_text = f"{symbols.get('info', 'ℹ️')} Current effective configuration values (CLI > YAML > ENV > Defaults):\n\n"
    config_text += f"  Log Prefix:                    {app_config.log_prefix}\n"
    config_text += f"  Supported OS:                  {app_config.supported_os_id} {app_config.supported_os_version}\n"
    config_text += f"  Prerequisite Packages:         {' '.join(app_config.prerequisite_packages)}\n"
    config_text += f"  Activation Delay (s):          {app_config.activation_delay:g}\n"
    config_text += f"  Public IP Lookup URL:          {app_config.public_ip_lookup_url}\n\n"

    config_text += "  Service Settings (service.*):\n"
    config_text += f"    User:                        {service.user}\n"
    config_text += f"    Home:                        {service.home_dir}\n"
    config_text += f"    Port:                        {service.port}\n"
    config_text += f"    Service Name:                {service.service_name}\n"
    config_text += f"    Unit File:                   {service.unit_file_path}\n"
    config_text += f"    npm Package:                 {service.package}\n"
    config_text += f"    ExecStart:                   {service.exec_start}\n"
    config_text += f"    Restart:                     {service.restart} ({service.restart_sec}s)\n"
    config_text += f"    Basic Auth User:             {service.basic_auth_user}\n"
    config_text += f"    Basic Auth Password:         {password_display}\n"
    config_text += f"    Host / Protocol:             {service.host} / {service.protocol}\n"
    config_text += f"    Webhook URL:                 {service.public_webhook_url}\n\n"

    config_text += "  Node.js Settings (nodejs.*):\n"
    config_text += f"    Major Version:               {app_config.nodejs.major_version}\n"
    config_text += f"    Setup Script:                {app_config.nodejs.setup_script_url}\n\n"

    config_text += "  Firewall Settings (firewall.*):\n"
    config_text += f"    Remote Admin Rule:           {app_config.firewall.remote_admin_rule}\n"
    config_text += f"    Extra Allow Rules:           {', '.join(app_config.firewall.extra_allow_rules) or '-'}\n\n"

    config_text += f"  Script Version (static):       {static_config.SCRIPT_VERSION}\n"
    config_text += f"  Timestamp (current view):      {datetime.datetime.now().strftime('%Y-%m-%d-%H%M%S')}\n"

    log_provisioner(
        "Displaying current configuration:", "info", logger_to_use, app_config
    )
    log_provisioner(f"\n{config_text}", "info", logger_to_use, app_config)


def _outcome_detail(
    outcomes: List[StageOutcome], stage_name: str, key: str
) -> Optional[str]:
    for outcome in outcomes:
        if outcome.name == stage_name and key in outcome.details:
            return str(outcome.details[key])
    return None


def display_final_info(
    app_settings: AppSettings,
    outcomes: List[StageOutcome],
    server_ip: str,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Log access details, service management commands and next steps."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    service = app_settings.service
    name = service.service_name

    lines = [
        "",
        SEPARATOR,
        f"{symbols.get('success', '✅')} n8n Installation Complete!",
        SEPARATOR,
        "",
    ]

    node_version = _outcome_detail(outcomes, "runtime", "node_version")
    n8n_version = _outcome_detail(outcomes, "application", "version")
    if node_version or n8n_version:
        lines += [
            "Installed Versions:",
            f"  Node.js: {node_version or 'N/A'}",
            f"  n8n:     {n8n_version or 'N/A'}",
            "",
        ]

    lines += [
        "Access Information:",
        f"  URL: {service.protocol}://{server_ip}:{service.port}",
        f"  Default Username: {service.basic_auth_user}",
        f"  Default Password: {service.basic_auth_password.get_secret_value() if service.uses_default_password else '[as configured]'}",
        "",
        "Service Management Commands:",
        f"  Start service:           sudo systemctl start {name}",
        f"  Stop service:            sudo systemctl stop {name}",
        f"  Restart service:         sudo systemctl restart {name}",
        f"  Check service status:    sudo systemctl status {name}",
        f"  Enable auto-start:       sudo systemctl enable {name}",
        f"  Disable auto-start:      sudo systemctl disable {name}",
        "  Reload service config:   sudo systemctl daemon-reload",
        f"  View real-time logs:     sudo journalctl -u {name} -f",
        f"  View recent logs:        sudo journalctl -u {name} -n 50",
        f"  View logs since boot:    sudo journalctl -u {name} -b",
        "",
        "Configuration:",
        f"  Service file: {service.unit_file_path}",
        f"  Data directory: {service.config_dir}",
        f"  User: {service.user}",
        "",
    ]

    for outcome in outcomes:
        for warning in outcome.warnings:
            lines.append(f"  {symbols.get('warning', '⚠️')} [{outcome.name}] {warning}")
    if any(outcome.warnings for outcome in outcomes):
        lines.append("")

    lines += [
        "Security Recommendations:",
        "  1. Change the default password immediately",
        "  2. Set up SSL/TLS certificate (Let's Encrypt recommended)",
        "  3. Configure a reverse proxy (Nginx/Apache)",
        f"  4. Set up regular backups of {service.config_dir}",
        f"  5. Update n8n regularly: npm update -g {service.executable}",
        "",
        "SSL Setup (Optional):",
        "  sudo apt install certbot",
        "  sudo certbot certonly --standalone -d your-domain.com",
        f"  Update N8N_PROTOCOL=https in {service.unit_file_path}",
        "",
        "For support and documentation:",
        f"  {static_config.N8N_DOCS_URL}",
        f"  {static_config.N8N_COMMUNITY_URL}",
        SEPARATOR,
    ]
    log_provisioner("\n".join(lines), "info", logger_to_use, app_settings)
