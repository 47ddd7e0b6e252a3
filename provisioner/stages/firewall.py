# provisioner/stages/firewall.py
# -*- coding: utf-8 -*-
"""
Network exposure stage: open the n8n port in UFW without locking out SSH.
"""

import logging
from typing import List, Optional

from common.command_utils import log_provisioner, run_elevated_command
from provisioner import host_probe
from provisioner.config import UFW_EXECUTABLE
from provisioner.config_models import AppSettings
from provisioner.pipeline import StageOutcome, StageStatus

module_logger = logging.getLogger(__name__)

STAGE_NAME = "firewall"


def build_allow_rules(app_settings: AppSettings) -> List[str]:
    """
    Return the allow rules in the order they are applied.

    The remote-administration rule always comes first, followed by the
    application port and any extra rules. Duplicates are dropped.
    """
    candidates = [
        app_settings.firewall.remote_admin_rule,
        f"{app_settings.service.port}/tcp",
        *app_settings.firewall.extra_allow_rules,
    ]
    rules: List[str] = []
    for rule in candidates:
        rule = rule.strip()
        if rule and rule not in rules:
            rules.append(rule)
    return rules


def _ensure_ufw_active(
    app_settings: AppSettings, logger_to_use: logging.Logger
) -> bool:
    """Enable UFW if it is not active. Returns True if it had to be enabled."""
    symbols = app_settings.symbols
    status_result = run_elevated_command(
        [UFW_EXECUTABLE, "status"],
        app_settings,
        capture_output=True,
        check=False,
        current_logger=logger_to_use,
    )
    status_output = (status_result.stdout or "").lower()

    if status_result.returncode == 0 and "inactive" not in status_output:
        log_provisioner(
            f"{symbols.get('info', 'ℹ️')} UFW is already active.",
            "info",
            logger_to_use,
            app_settings,
        )
        return False

    log_provisioner(
        f"{symbols.get('warning', '!')} UFW is inactive. Enabling now.",
        "warning",
        logger_to_use,
        app_settings,
    )
    run_elevated_command(
        [UFW_EXECUTABLE, "--force", "enable"],
        app_settings,
        current_logger=logger_to_use,
    )
    return True


def configure_firewall(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> StageOutcome:
    """
    Allow SSH and the n8n port, then make sure UFW is active.

    Rules are only added. SSH is allowed before the firewall is enabled so a
    remote session survives activation. Without UFW the stage logs the rules
    the operator must open by hand and finishes as degraded.

    Raises:
        subprocess.CalledProcessError: If a ufw command fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    allow_rules = build_allow_rules(app_settings)

    log_provisioner(
        f"{symbols.get('step', '➡️')} Configuring firewall...",
        "info",
        logger_to_use,
        app_settings,
    )

    if not host_probe.exists(host_probe.ProbeKind.EXECUTABLE, UFW_EXECUTABLE):
        message = "UFW not installed. Please configure firewall manually."
        log_provisioner(
            f"{symbols.get('warning', '!')} {message} Required allow rules: {', '.join(allow_rules)}",
            "warning",
            logger_to_use,
            app_settings,
        )
        return StageOutcome(
            name=STAGE_NAME,
            status=StageStatus.DEGRADED,
            details={"allow_rules": allow_rules, "managed": False},
            warnings=[message],
        )

    for rule in allow_rules:
        log_provisioner(
            f"{symbols.get('info', 'ℹ️')} Allowing {rule} via UFW...",
            "info",
            logger_to_use,
            app_settings,
        )
        run_elevated_command(
            [UFW_EXECUTABLE, "allow", *rule.split()],
            app_settings,
            current_logger=logger_to_use,
        )

    enabled_now = _ensure_ufw_active(app_settings, logger_to_use)

    run_elevated_command(
        [UFW_EXECUTABLE, "status"],
        app_settings,
        current_logger=logger_to_use,
    )
    log_provisioner(
        f"{symbols.get('success', '✅')} Firewall configured",
        "success",
        logger_to_use,
        app_settings,
    )
    return StageOutcome(
        name=STAGE_NAME,
        details={
            "allow_rules": allow_rules,
            "managed": True,
            "enabled_now": enabled_now,
        },
    )
