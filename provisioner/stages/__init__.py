# provisioner/stages/__init__.py
"""
The provisioning stages, in the order they run.
"""

import logging
from typing import List, Optional, Tuple

from provisioner.config_models import AppSettings
from provisioner.pipeline import Pipeline, StageFunction

from .activation import start_service
from .application import install_n8n
from .firewall import configure_firewall
from .identity import create_service_user
from .packages import update_system
from .runtime import install_nodejs
from .service_unit import create_systemd_service

# (name, description, function); each stage depends on the ones before it.
DEFAULT_STAGES: List[Tuple[str, str, StageFunction]] = [
    ("packages", "Update system packages", update_system),
    ("runtime", "Install Node.js", install_nodejs),
    ("application", "Install n8n", install_n8n),
    ("identity", "Create service user", create_service_user),
    ("service", "Create systemd service", create_systemd_service),
    ("firewall", "Configure firewall", configure_firewall),
    ("activation", "Start and verify service", start_service),
]


def build_default_pipeline(
    app_settings: AppSettings, logger: Optional[logging.Logger] = None
) -> Pipeline:
    pipeline = Pipeline(app_settings, logger)
    for name, description, func in DEFAULT_STAGES:
        pipeline.add_stage(name, description, func)
    return pipeline
