# provisioner/main.py
# -*- coding: utf-8 -*-
"""
Command-line entry point of the n8n provisioner.

Runs the preflight checks, shows the installation plan, asks for
confirmation and then applies every stage in order. Any failure stops the
run and is reported with its category; the process exits non-zero.
"""

import argparse
import logging
import subprocess
import sys
from typing import Callable, List, Optional

from pydantic import ValidationError

from common.command_utils import log_provisioner
from common.core_utils import setup_logging
from common.network_utils import get_public_ip_address
from provisioner import config as static_config
from provisioner.cli_handler import (
    ConfirmFunc,
    display_final_info,
    display_installation_plan,
    make_confirm,
    view_configuration,
)
from provisioner.config_loader import load_app_settings
from provisioner.config_models import SYMBOLS_DEFAULT, AppSettings
from provisioner.exceptions import ProvisionerError, ServiceActivationError
from provisioner.pipeline import Pipeline
from provisioner.preflight import check_host_os, check_root
from provisioner.stages import build_default_pipeline
from provisioner.stages.service_unit import render_service_unit

logger = logging.getLogger(__name__)

PipelineFactory = Callable[[AppSettings, Optional[logging.Logger]], Pipeline]


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Provision an n8n server on Ubuntu: Node.js, n8n, a systemd service and firewall rules.",
        epilog="Example: sudo n8n-provision --yes --port 5678",
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to the YAML configuration file.",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Answer yes to every confirmation prompt.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--view-config",
        action="store_true",
        help="View current configuration settings and exit.",
    )
    parser.add_argument(
        "--print-unit",
        action="store_true",
        help="Print the systemd unit that would be written and exit.",
    )

    config_group = parser.add_argument_group("Configuration Overrides")
    config_group.add_argument(
        "--user", default=None, help="System account that runs n8n."
    )
    config_group.add_argument(
        "--port", type=int, default=None, help="TCP port n8n listens on."
    )
    config_group.add_argument(
        "--node-version",
        type=int,
        default=None,
        help="Node.js major version to install from NodeSource.",
    )
    config_group.add_argument(
        "-l",
        "--log-prefix",
        default=None,
        help="Prefix for log messages from this script.",
    )
    return parser.parse_args(args)


def _run_provisioning(
    app_settings: AppSettings,
    confirm: ConfirmFunc,
    pipeline_factory: PipelineFactory,
) -> int:
    symbols = app_settings.symbols

    check_root(app_settings, logger)
    check_host_os(app_settings, confirm, logger)

    display_installation_plan(app_settings, logger)
    if not confirm("Do you want to continue?"):
        log_provisioner(
            f"{symbols.get('info', 'ℹ️')} Installation cancelled",
            "info",
            logger,
            app_settings,
        )
        return 0

    pipeline = pipeline_factory(app_settings, logger)
    outcomes = pipeline.run()

    server_ip = get_public_ip_address(app_settings, logger)
    display_final_info(app_settings, outcomes, server_ip, logger)
    log_provisioner(
        f"{symbols.get('sparkles', '✨')} Installation completed successfully!",
        "success",
        logger,
        app_settings,
    )
    return 0


def main(
    argv: Optional[List[str]] = None,
    confirm: Optional[ConfirmFunc] = None,
    pipeline_factory: PipelineFactory = build_default_pipeline,
) -> int:
    """
    Run the provisioner.

    Args:
        argv: Command-line arguments, defaults to sys.argv[1:].
        confirm: Replaces the interactive yes/no prompt.
        pipeline_factory: Builds the stage pipeline for the resolved settings.

    Returns:
        The process exit code: 0 on success or when the operator cancels,
        1 on any failure.
    """
    parsed_args = parse_args(argv)
    log_level = logging.DEBUG if parsed_args.verbose else logging.INFO

    setup_logging(log_level=log_level, symbols=SYMBOLS_DEFAULT)

    try:
        app_settings = load_app_settings(
            cli_args=parsed_args,
            config_file_path=parsed_args.config,
            current_logger=logger,
        )
    except ValidationError as e:
        logger.critical(f"Invalid configuration: {e}")
        return 1

    setup_logging(
        log_level=log_level,
        log_prefix=app_settings.log_prefix,
        symbols=app_settings.symbols,
    )
    symbols = app_settings.symbols

    if parsed_args.view_config:
        view_configuration(app_settings, logger)
        return 0
    if parsed_args.print_unit:
        sys.stdout.write(
            render_service_unit(
                app_settings,
                redact_password=not app_settings.service.uses_default_password,
            )
        )
        return 0

    log_provisioner(
        f"{symbols.get('sparkles', '✨')} Starting n8n installation on {app_settings.supported_os_id.capitalize()} {app_settings.supported_os_version} (Script Version: {static_config.SCRIPT_VERSION})...",
        "info",
        logger,
        app_settings,
    )

    if confirm is None:
        confirm = make_confirm(app_settings, logger, assume_yes=parsed_args.yes)

    try:
        return _run_provisioning(app_settings, confirm, pipeline_factory)
    except ServiceActivationError as e:
        log_provisioner(
            f"{symbols.get('critical', '🔥')} {e.category}: {e}",
            "critical",
            logger,
            app_settings,
        )
        if e.diagnostics:
            log_provisioner(
                f"Service status:\n{e.diagnostics}",
                "error",
                logger,
                app_settings,
            )
        return 1
    except ProvisionerError as e:
        stage_info = f" (stage: {e.stage})" if e.stage else ""
        log_provisioner(
            f"{symbols.get('critical', '🔥')} {e.category}{stage_info}: {e}",
            "critical",
            logger,
            app_settings,
        )
        return 1
    except subprocess.CalledProcessError as e:
        cmd_str = (
            subprocess.list2cmdline(e.cmd)
            if isinstance(e.cmd, list)
            else str(e.cmd)
        )
        log_provisioner(
            f"{symbols.get('critical', '🔥')} Command failed: {cmd_str} (rc {e.returncode})",
            "critical",
            logger,
            app_settings,
        )
        return 1
    except FileNotFoundError as e:
        log_provisioner(
            f"{symbols.get('critical', '🔥')} Required tool not found: {e}",
            "critical",
            logger,
            app_settings,
        )
        return 1
    except KeyboardInterrupt:
        log_provisioner(
            f"{symbols.get('warning', '⚠️')} Installation interrupted by user.",
            "warning",
            logger,
            app_settings,
        )
        return 130


if __name__ == "__main__":
    sys.exit(main())
