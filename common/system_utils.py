# common/system_utils.py
# -*- coding: utf-8 -*-
"""
System-level utility functions for the provisioner.

This module wraps the systemd service manager: reloading its configuration,
enabling and starting units, and querying unit state.
"""

import logging
from typing import Optional

from common.command_utils import (
    log_provisioner,
    run_elevated_command,
)
from provisioner.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def systemd_reload(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Reload the systemd daemon.

    Raises:
        subprocess.CalledProcessError: If `systemctl daemon-reload` fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    log_provisioner(
        f"{symbols.get('gear', '⚙️')} Reloading systemd daemon...",
        "info",
        logger_to_use,
        app_settings,
    )
    try:
        run_elevated_command(
            ["systemctl", "daemon-reload"],
            app_settings,
            current_logger=logger_to_use,
        )
    except Exception as e:
        log_provisioner(
            f"{symbols.get('error', '❌')} Failed to reload systemd: {e}",
            "error",
            logger_to_use,
            app_settings,
        )
        raise
    log_provisioner(
        f"{symbols.get('success', '✅')} Systemd daemon reloaded.",
        "success",
        logger_to_use,
        app_settings,
    )


def systemd_enable(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Mark a unit to start at boot."""
    logger_to_use = current_logger if current_logger else module_logger
    run_elevated_command(
        ["systemctl", "enable", service_name],
        app_settings,
        current_logger=logger_to_use,
    )


def systemd_start(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    run_elevated_command(
        ["systemctl", "start", service_name],
        app_settings,
        current_logger=logger_to_use,
    )


def systemd_is_active(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Return True if systemd reports the unit as active.

    `systemctl is-active --quiet` signals the state through its exit code
    only, so a non-zero code is an answer here, not a failure.
    """
    logger_to_use = current_logger if current_logger else module_logger
    result = run_elevated_command(
        ["systemctl", "is-active", "--quiet", service_name],
        app_settings,
        check=False,
        current_logger=logger_to_use,
    )
    return result.returncode == 0


def systemd_status(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """
    Return the text of `systemctl status` for the unit, for diagnostics.

    `systemctl status` exits non-zero for inactive or failed units; the
    output is returned regardless.
    """
    logger_to_use = current_logger if current_logger else module_logger
    result = run_elevated_command(
        ["systemctl", "status", service_name, "--no-pager"],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=logger_to_use,
        log_output=False,
    )
    parts = [
        part.strip() for part in (result.stdout, result.stderr) if part
    ]
    return "\n".join(part for part in parts if part)
