# common/network_utils.py
# -*- coding: utf-8 -*-
"""
Network-related utility functions.
"""
import logging
from typing import Optional

import requests

from provisioner.config_models import AppSettings
from .command_utils import log_provisioner

module_logger = logging.getLogger(__name__)

PUBLIC_IP_LOOKUP_TIMEOUT = 10


def get_public_ip_address(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """
    Look up the host's public IP address.

    The lookup is best-effort: any request failure or an empty answer yields
    `app_settings.public_ip_placeholder` instead of an error.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    placeholder = app_settings.public_ip_placeholder

    try:
        response = requests.get(
            app_settings.public_ip_lookup_url,
            timeout=PUBLIC_IP_LOOKUP_TIMEOUT,
        )
        response.raise_for_status()
    except requests.exceptions.RequestException as req_err:
        log_provisioner(
            f"{symbols.get('warning', '!')} Could not determine public IP address: {req_err}",
            "warning",
            logger_to_use,
            app_settings,
        )
        return placeholder

    ip_address = response.text.strip()
    if not ip_address:
        log_provisioner(
            f"{symbols.get('warning', '!')} Public IP lookup returned an empty response.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return placeholder
    return ip_address
