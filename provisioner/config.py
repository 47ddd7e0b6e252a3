# provisioner/config.py
"""
Static constants for the n8n provisioner.

Values here are fixed paths and identifiers of the host tools the provisioner
drives. Anything a user may want to change lives in `config_models`.
"""

from pathlib import Path
from typing import List

# Represents the version of the provisioning logic.
SCRIPT_VERSION: str = "1.0.0"

OS_RELEASE_PATH: Path = Path("/etc/os-release")
SYSTEMD_UNIT_DIR: str = "/etc/systemd/system"

# Executables probed before the stages that depend on them.
NODE_EXECUTABLE: str = "node"
NPM_EXECUTABLE: str = "npm"
UFW_EXECUTABLE: str = "ufw"

NODEJS_APT_PACKAGES: List[str] = ["nodejs", "npm"]

N8N_DOCS_URL: str = "https://docs.n8n.io"
N8N_COMMUNITY_URL: str = "https://community.n8n.io"
