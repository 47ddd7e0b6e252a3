# provisioner/stages/identity.py
# -*- coding: utf-8 -*-
"""
Identity stage: the unprivileged system account n8n runs as.
"""

import logging
from typing import Optional

from common.command_utils import log_provisioner, run_elevated_command
from provisioner import host_probe
from provisioner.config_models import AppSettings
from provisioner.pipeline import StageOutcome

module_logger = logging.getLogger(__name__)

STAGE_NAME = "identity"


def create_service_user(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> StageOutcome:
    """
    Create the service account if missing, then reconcile its data directory.

    An existing account is left untouched (warning only). The data directory
    is created and chowned on every run, whether or not the account is new.

    Raises:
        subprocess.CalledProcessError: If useradd, mkdir or chown fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    service = app_settings.service
    user = service.user
    warnings = []

    log_provisioner(
        f"{symbols.get('step', '➡️')} Creating {user} user...",
        "info",
        logger_to_use,
        app_settings,
    )

    if host_probe.exists(host_probe.ProbeKind.USER, user):
        message = f"User {user} already exists"
        log_provisioner(
            f"{symbols.get('warning', '!')} {message}",
            "warning",
            logger_to_use,
            app_settings,
        )
        warnings.append(message)
        created = False
    else:
        run_elevated_command(
            [
                "useradd",
                "--system",
                "--create-home",
                "--home-dir",
                service.home_dir,
                "--shell",
                service.shell,
                user,
            ],
            app_settings,
            current_logger=logger_to_use,
        )
        log_provisioner(
            f"{symbols.get('success', '✅')} User {user} created",
            "success",
            logger_to_use,
            app_settings,
        )
        created = True

    run_elevated_command(
        ["mkdir", "-p", service.config_dir],
        app_settings,
        current_logger=logger_to_use,
    )
    run_elevated_command(
        ["chown", "-R", f"{user}:{user}", service.config_dir],
        app_settings,
        current_logger=logger_to_use,
    )

    return StageOutcome(
        name=STAGE_NAME,
        details={
            "user": user,
            "created": created,
            "home": service.home_dir,
            "config_dir": service.config_dir,
        },
        warnings=warnings,
    )
