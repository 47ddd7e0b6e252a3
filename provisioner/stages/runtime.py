# provisioner/stages/runtime.py
# -*- coding: utf-8 -*-
"""
Runtime stage: install Node.js at the pinned major version from NodeSource.

Any Node.js already on the host is removed first. The stage never upgrades
in place, so every run ends with a fresh install of the configured major.
"""

import logging
from typing import Optional, Tuple

from common.command_utils import (
    command_exists,
    log_provisioner,
    run_command,
    run_elevated_command,
)
from common.debian.apt_manager import AptManager
from provisioner import host_probe
from provisioner.config import (
    NODE_EXECUTABLE,
    NODEJS_APT_PACKAGES,
    NPM_EXECUTABLE,
)
from provisioner.config_models import AppSettings
from provisioner.exceptions import StageError
from provisioner.pipeline import StageOutcome

module_logger = logging.getLogger(__name__)

STAGE_NAME = "runtime"


def _setup_nodesource_repository(
    app_settings: AppSettings, logger_to_use: logging.Logger
) -> None:
    symbols = app_settings.symbols
    setup_url = app_settings.nodejs.setup_script_url

    log_provisioner(
        f"{symbols.get('info', 'ℹ️')} Downloading NodeSource script from {setup_url}...",
        "info",
        logger_to_use,
        app_settings,
    )
    curl_res = run_command(
        ["curl", "-fsSL", setup_url],
        app_settings,
        capture_output=True,
        check=True,
        current_logger=logger_to_use,
        log_output=False,
    )

    log_provisioner(
        f"{symbols.get('info', 'ℹ️')} Executing NodeSource setup script...",
        "info",
        logger_to_use,
        app_settings,
    )
    run_elevated_command(
        ["bash", "-"],
        app_settings,
        cmd_input=curl_res.stdout,
        current_logger=logger_to_use,
    )


def _get_version(
    executable: str,
    app_settings: AppSettings,
    logger_to_use: logging.Logger,
) -> Optional[str]:
    """Return `<executable> --version` output, or None if it does not report one."""
    if not command_exists(executable):
        return None
    result = run_command(
        [executable, "--version"],
        app_settings,
        capture_output=True,
        check=False,
        current_logger=logger_to_use,
    )
    version = result.stdout.strip() if result.stdout else ""
    if result.returncode != 0 or not version:
        return None
    return version


def get_nodejs_versions(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """Return the (node, npm) version strings; None for one that does not resolve."""
    logger_to_use = current_logger if current_logger else module_logger
    return (
        _get_version(NODE_EXECUTABLE, app_settings, logger_to_use),
        _get_version(NPM_EXECUTABLE, app_settings, logger_to_use),
    )


def install_nodejs(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> StageOutcome:
    """
    Replace any existing Node.js with the configured major version.

    Raises:
        subprocess.CalledProcessError: If removal, download or installation fails.
        StageError: If node or npm do not report a version afterwards.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    major_version = app_settings.nodejs.major_version
    warnings = []

    log_provisioner(
        f"{symbols.get('step', '➡️')} Installing Node.js {major_version}...",
        "info",
        logger_to_use,
        app_settings,
    )
    apt_manager = AptManager(logger=logger_to_use)

    if host_probe.exists(host_probe.ProbeKind.EXECUTABLE, NODE_EXECUTABLE):
        message = "Existing Node.js installation found. Removing..."
        log_provisioner(
            f"{symbols.get('warning', '!')} {message}",
            "warning",
            logger_to_use,
            app_settings,
        )
        warnings.append(message)
        apt_manager.remove(list(NODEJS_APT_PACKAGES), app_settings)

    _setup_nodesource_repository(app_settings, logger_to_use)
    apt_manager.install("nodejs", app_settings, update_first=False)

    node_version, npm_version = get_nodejs_versions(
        app_settings, logger_to_use
    )
    if not node_version or not npm_version:
        missing = NODE_EXECUTABLE if not node_version else NPM_EXECUTABLE
        raise StageError(
            f"Node.js {major_version} was installed but '{missing} --version' did not report a version.",
            stage=STAGE_NAME,
        )

    log_provisioner(
        f"{symbols.get('success', '✅')} Node.js {node_version} and npm {npm_version} installed",
        "success",
        logger_to_use,
        app_settings,
    )
    return StageOutcome(
        name=STAGE_NAME,
        details={
            "major_version": major_version,
            "node_version": node_version,
            "npm_version": npm_version,
        },
        warnings=warnings,
    )
