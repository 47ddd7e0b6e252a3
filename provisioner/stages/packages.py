# provisioner/stages/packages.py
# -*- coding: utf-8 -*-
"""
Package stage: refresh the apt index, upgrade the host and install the tools
later stages rely on (curl for the NodeSource script, transport helpers).
"""

import logging
from typing import Optional

from common.command_utils import log_provisioner
from common.debian.apt_manager import AptManager
from provisioner.config_models import AppSettings
from provisioner.pipeline import StageOutcome

module_logger = logging.getLogger(__name__)

STAGE_NAME = "packages"


def update_system(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> StageOutcome:
    """
    Update package lists, upgrade installed packages and install prerequisites.

    A full upgrade has no idempotent form; re-running it is non-destructive.

    Raises:
        subprocess.CalledProcessError: If any apt command fails.
        FileNotFoundError: If apt-get is not available.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols

    log_provisioner(
        f"{symbols.get('package', '📦')} Updating system packages...",
        "info",
        logger_to_use,
        app_settings,
    )
    apt_manager = AptManager(logger=logger_to_use)
    apt_manager.update(app_settings)
    apt_manager.upgrade(app_settings)
    apt_manager.install(
        list(app_settings.prerequisite_packages),
        app_settings,
        update_first=False,
    )

    log_provisioner(
        f"{symbols.get('success', '✅')} System packages updated",
        "success",
        logger_to_use,
        app_settings,
    )
    return StageOutcome(
        name=STAGE_NAME,
        details={"prerequisites": list(app_settings.prerequisite_packages)},
    )
