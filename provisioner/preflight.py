# provisioner/preflight.py
# -*- coding: utf-8 -*-
"""
Checks run before the host is touched: privileges and OS identity.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Optional

from common.command_utils import log_provisioner
from provisioner.config import OS_RELEASE_PATH
from provisioner.config_models import AppSettings
from provisioner.exceptions import PrivilegeError, UnsupportedHostError
from provisioner.host_probe import OsIdentity, read_os_release

module_logger = logging.getLogger(__name__)


def check_root(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Raises:
        PrivilegeError: If the effective user is not root.
    """
    logger_to_use = current_logger if current_logger else module_logger
    if os.geteuid() != 0:
        raise PrivilegeError("This script must be run as root or with sudo")
    log_provisioner(
        f"{app_settings.symbols.get('success', '✅')} Running with root privileges.",
        "debug",
        logger_to_use,
        app_settings,
    )


def check_host_os(
    app_settings: AppSettings,
    confirm: Callable[[str], bool],
    current_logger: Optional[logging.Logger] = None,
    os_release_path: Path = OS_RELEASE_PATH,
) -> OsIdentity:
    """
    Verify the host is the supported OS release.

    A mismatch is not fatal by itself: the operator is asked whether to
    continue anyway.

    Args:
        app_settings: Settings holding the supported OS ID and version.
        confirm: Asked "Continue anyway?" on a mismatch.
        current_logger: Optional logger instance.
        os_release_path: Location of the os-release file.

    Returns:
        The identity read from os-release.

    Raises:
        UnsupportedHostError: If the OS cannot be identified, or the operator
            declines to continue on a mismatch.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols

    identity = read_os_release(os_release_path)
    if identity is None:
        raise UnsupportedHostError("Cannot determine OS version")

    expected_id = app_settings.supported_os_id
    expected_version = app_settings.supported_os_version
    if identity.id == expected_id and identity.version_id == expected_version:
        log_provisioner(
            f"{symbols.get('success', '✅')} Detected {identity.id} {identity.version_id}.",
            "info",
            logger_to_use,
            app_settings,
        )
        return identity

    log_provisioner(
        f"{symbols.get('warning', '!')} This script is designed for {expected_id.capitalize()} {expected_version}. Current OS: {identity.id} {identity.version_id}",
        "warning",
        logger_to_use,
        app_settings,
    )
    if not confirm("Continue anyway?"):
        raise UnsupportedHostError(
            f"Host runs {identity.id} {identity.version_id}, expected {expected_id} {expected_version}."
        )
    log_provisioner(
        f"{symbols.get('info', 'ℹ️')} Continuing on an unsupported OS at the operator's request.",
        "info",
        logger_to_use,
        app_settings,
    )
    return identity
