# provisioner/stages/activation.py
# -*- coding: utf-8 -*-
"""
Activation stage: start the service and confirm systemd reports it active.

There is one check after a fixed delay, not a retry loop:
NOT_STARTED -> STARTING -> ACTIVE, or FAILED with the unit status attached.
"""

import logging
import time
from enum import Enum
from typing import Optional

from common.command_utils import log_provisioner
from common.system_utils import (
    systemd_is_active,
    systemd_start,
    systemd_status,
)
from provisioner.config_models import AppSettings
from provisioner.exceptions import ServiceActivationError
from provisioner.pipeline import StageOutcome

module_logger = logging.getLogger(__name__)

STAGE_NAME = "activation"


class ActivationState(str, Enum):
    NOT_STARTED = "not-started"
    STARTING = "starting"
    ACTIVE = "active"
    FAILED = "failed"


def start_service(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> StageOutcome:
    """
    Start the service, wait `activation_delay` seconds and check it once.

    Raises:
        subprocess.CalledProcessError: If `systemctl start` fails.
        ServiceActivationError: If the unit is not active after the delay. The
            exception carries the output of `systemctl status`.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    service_name = app_settings.service.service_name
    state = ActivationState.NOT_STARTED

    log_provisioner(
        f"{symbols.get('rocket', '🚀')} Starting {service_name} service...",
        "info",
        logger_to_use,
        app_settings,
    )
    systemd_start(service_name, app_settings, logger_to_use)
    state = ActivationState.STARTING

    time.sleep(app_settings.activation_delay)

    if systemd_is_active(service_name, app_settings, logger_to_use):
        state = ActivationState.ACTIVE
        log_provisioner(
            f"{symbols.get('success', '✅')} {service_name} service started successfully",
            "success",
            logger_to_use,
            app_settings,
        )
        return StageOutcome(
            name=STAGE_NAME,
            details={"service": service_name, "state": state.value},
        )

    state = ActivationState.FAILED
    log_provisioner(
        f"{symbols.get('error', '❌')} Failed to start {service_name} service",
        "error",
        logger_to_use,
        app_settings,
    )
    diagnostics = systemd_status(service_name, app_settings, logger_to_use)
    raise ServiceActivationError(
        f"{service_name} is not active {app_settings.activation_delay:g}s after start (state: {state.value}).",
        stage=STAGE_NAME,
        diagnostics=diagnostics,
    )
