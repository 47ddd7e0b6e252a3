# provisioner/stages/service_unit.py
# -*- coding: utf-8 -*-
"""
Service definition stage: render the n8n systemd unit and register it.

The unit is rebuilt from settings on every run and written over whatever is on
disk. Rendering is pure, so identical settings always give identical bytes.
"""

import hashlib
import logging
import posixpath
from typing import Optional

from common.command_utils import log_provisioner, run_elevated_command
from common.system_utils import systemd_enable, systemd_reload
from provisioner import host_probe
from provisioner.config_models import AppSettings
from provisioner.pipeline import StageOutcome
from provisioner.unit_file import UnitFile

module_logger = logging.getLogger(__name__)

STAGE_NAME = "service"

RESTRICTED_ADDRESS_FAMILIES = ["AF_UNIX", "AF_INET", "AF_INET6"]
REDACTED_PASSWORD = "********"


def build_service_unit(
    app_settings: AppSettings, redact_password: bool = False
) -> UnitFile:
    """
    Assemble the unit description for the configured service. With
    redact_password the basic-auth password is replaced by a placeholder, for
    output shown to an operator rather than written to disk.
    """
    service = app_settings.service
    password = (
        REDACTED_PASSWORD
        if redact_password
        else service.basic_auth_password.get_secret_value()
    )
    unit = UnitFile()

    unit.section("Unit").set("Description", service.description).set(
        "After", "network.target"
    )

    service_section = unit.section("Service")
    (
        service_section.set("Type", "simple")
        .set("User", service.user)
        .set("ExecStart", service.exec_start)
        .set("Restart", service.restart)
        .set("RestartSec", service.restart_sec)
        .environment("NODE_ENV", service.node_env)
        .environment("N8N_BASIC_AUTH_ACTIVE", service.basic_auth_active)
        .environment("N8N_BASIC_AUTH_USER", service.basic_auth_user)
        .environment("N8N_BASIC_AUTH_PASSWORD", password)
        .environment("N8N_HOST", service.host)
        .environment("N8N_PORT", service.port)
        .environment("N8N_PROTOCOL", service.protocol)
        .environment("WEBHOOK_URL", service.public_webhook_url)
        .set("WorkingDirectory", service.home_dir)
    )

    # Sandboxing: writes confined to the account's home, deny-by-default syscalls.
    (
        service_section.blank()
        .comment("Security settings")
        .set("NoNewPrivileges", True)
        .set("PrivateTmp", True)
        .set("ProtectSystem", "strict")
        .set("ReadWritePaths", service.home_dir)
        .set("ProtectHome", True)
        .set("ProtectControlGroups", True)
        .set("ProtectKernelModules", True)
        .set("ProtectKernelTunables", True)
        .set("RestrictAddressFamilies", RESTRICTED_ADDRESS_FAMILIES)
        .set("RestrictRealtime", True)
        .set("RestrictSUIDSGID", True)
        .set("MemoryDenyWriteExecute", True)
        .set("SystemCallFilter", "@system-service")
        .set("SystemCallErrorNumber", "EPERM")
    )

    unit.section("Install").set("WantedBy", "multi-user.target")
    return unit


def render_service_unit(
    app_settings: AppSettings, redact_password: bool = False
) -> str:
    return build_service_unit(app_settings, redact_password).render()


def create_systemd_service(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> StageOutcome:
    """
    Write the unit file, reload systemd and enable the service.

    The reload and enable run on every invocation, whether or not the file
    content changed.

    Raises:
        subprocess.CalledProcessError: If writing the file or a systemctl call fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    service = app_settings.service
    unit_path = service.unit_file_path

    log_provisioner(
        f"{symbols.get('step', '➡️')} Creating systemd service...",
        "info",
        logger_to_use,
        app_settings,
    )
    unit_content = render_service_unit(app_settings)
    replaced = host_probe.exists(
        host_probe.ProbeKind.SERVICE_UNIT,
        service.service_name,
        unit_dir=posixpath.dirname(unit_path),
    )

    run_elevated_command(
        ["tee", unit_path],
        app_settings,
        cmd_input=unit_content,
        capture_output=True,
        current_logger=logger_to_use,
        log_output=False,
    )
    log_provisioner(
        f"{symbols.get('success', '✅')} {'Replaced' if replaced else 'Created'} {unit_path}",
        "success",
        logger_to_use,
        app_settings,
    )

    systemd_reload(app_settings, logger_to_use)
    systemd_enable(service.service_name, app_settings, logger_to_use)

    log_provisioner(
        f"{symbols.get('success', '✅')} Systemd service created and enabled",
        "success",
        logger_to_use,
        app_settings,
    )
    return StageOutcome(
        name=STAGE_NAME,
        details={
            "unit_path": unit_path,
            "replaced": replaced,
            "sha256": hashlib.sha256(unit_content.encode("utf-8")).hexdigest(),
        },
    )
