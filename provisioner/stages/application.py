# provisioner/stages/application.py
# -*- coding: utf-8 -*-
"""
Application stage: install n8n globally with npm.

The package spec is taken as configured; by default it carries no version, so
npm installs whatever release is latest at the time of the run.
"""

import logging
from typing import Optional

from common.command_utils import (
    log_provisioner,
    run_command,
    run_elevated_command,
)
from provisioner import host_probe
from provisioner.config import NPM_EXECUTABLE
from provisioner.config_models import AppSettings
from provisioner.exceptions import StageError
from provisioner.pipeline import StageOutcome

module_logger = logging.getLogger(__name__)

STAGE_NAME = "application"


def install_n8n(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> StageOutcome:
    """
    Run `npm install -g <package>` and check the executable reports a version.

    Raises:
        subprocess.CalledProcessError: If npm or the version query fails.
        StageError: If the executable does not resolve on PATH or prints nothing.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    service = app_settings.service

    log_provisioner(
        f"{symbols.get('package', '📦')} Installing {service.package}...",
        "info",
        logger_to_use,
        app_settings,
    )
    run_elevated_command(
        [NPM_EXECUTABLE, "install", "-g", service.package],
        app_settings,
        current_logger=logger_to_use,
    )

    if not host_probe.exists(
        host_probe.ProbeKind.EXECUTABLE, service.executable
    ):
        raise StageError(
            f"'{service.executable}' is not on PATH after installing {service.package}.",
            stage=STAGE_NAME,
        )

    version_res = run_command(
        [service.executable, "--version"],
        app_settings,
        capture_output=True,
        check=True,
        current_logger=logger_to_use,
    )
    app_version = version_res.stdout.strip() if version_res.stdout else ""
    if not app_version:
        raise StageError(
            f"'{service.executable} --version' did not report a version.",
            stage=STAGE_NAME,
        )

    log_provisioner(
        f"{symbols.get('success', '✅')} n8n {app_version} installed",
        "success",
        logger_to_use,
        app_settings,
    )
    return StageOutcome(
        name=STAGE_NAME,
        details={"package": service.package, "version": app_version},
    )
