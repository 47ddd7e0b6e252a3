# provisioner/host_probe.py
# -*- coding: utf-8 -*-
"""
Read-only queries about the host.

Every stage that mutates the host asks this module first whether the thing it
is about to create is already there. Nothing in here changes host state.
"""

import logging
import posixpath
import pwd
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict

from common.command_utils import command_exists
from provisioner.config import OS_RELEASE_PATH, SYSTEMD_UNIT_DIR

module_logger = logging.getLogger(__name__)


class ProbeKind(str, Enum):
    EXECUTABLE = "executable"
    USER = "user"
    SERVICE_UNIT = "service-unit"


class OsIdentity(BaseModel):
    """The ID and VERSION_ID pair from os-release."""

    model_config = ConfigDict(frozen=True)

    id: str
    version_id: str
    pretty_name: str = ""


def user_exists(user_name: str) -> bool:
    try:
        pwd.getpwnam(user_name)
    except KeyError:
        return False
    return True


def service_unit_exists(
    service_name: str, unit_dir: str = SYSTEMD_UNIT_DIR
) -> bool:
    unit_file = (
        service_name
        if service_name.endswith(".service")
        else f"{service_name}.service"
    )
    return Path(posixpath.join(unit_dir, unit_file)).is_file()


def exists(
    kind: Union[ProbeKind, str],
    name: str,
    unit_dir: str = SYSTEMD_UNIT_DIR,
) -> bool:
    """
    Report whether an executable, a user account or a service unit exists.

    Args:
        kind: What to look for. Plain strings ("executable", "user",
              "service-unit") are accepted as well as ProbeKind members.
        name: Executable name, account name or service name.
        unit_dir: Directory searched for service units.

    Returns:
        True if the resource exists, False otherwise.

    Raises:
        ValueError: If `kind` is not a known probe kind.
    """
    probe_kind = ProbeKind(kind)
    if probe_kind is ProbeKind.EXECUTABLE:
        found = command_exists(name)
    elif probe_kind is ProbeKind.USER:
        found = user_exists(name)
    else:
        found = service_unit_exists(name, unit_dir)
    module_logger.debug(
        f"Probe {probe_kind.value} '{name}': {'present' if found else 'absent'}"
    )
    return found


def _parse_os_release(content: str) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        values[key.strip()] = value
    return values


def read_os_release(
    os_release_path: Path = OS_RELEASE_PATH,
) -> Optional[OsIdentity]:
    """
    Return the host's OS identity, or None when it cannot be determined.
    """
    try:
        content = Path(os_release_path).read_text(encoding="utf-8")
    except (FileNotFoundError, PermissionError) as e:
        module_logger.debug(f"Cannot read {os_release_path}: {e}")
        return None

    values = _parse_os_release(content)
    if "ID" not in values:
        return None
    return OsIdentity(
        id=values["ID"],
        version_id=values.get("VERSION_ID", ""),
        pretty_name=values.get("PRETTY_NAME", ""),
    )
