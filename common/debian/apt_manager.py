# common/debian/apt_manager.py
# -*- coding: utf-8 -*-
import logging
import subprocess
from typing import List, Optional, Union

from common.command_utils import (
    command_exists,
    run_command,
    run_elevated_command,
)
from provisioner.config_models import AppSettings


class AptManager:
    """
    A centralized manager for Debian/Ubuntu apt packages using command-line tools.

    Every operation logs and re-raises on failure so a provisioning stage stops
    at the first failing apt command.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initializes the AptManager.
        Args:
            logger: An optional logging object.
        """
        self.logger = logger or logging.getLogger(__name__)
        if not command_exists("apt-get"):
            self.logger.critical(
                "'apt-get' command not found. This manager cannot function."
            )
            raise FileNotFoundError(
                "'apt-get' not found. Is this a Debian-based system?"
            )

    def update(self, app_settings: AppSettings) -> None:
        """
        Updates the list of available packages using 'apt-get update'.

        Args:
            app_settings: The application settings.

        Raises:
            subprocess.CalledProcessError: If apt-get fails.
        """
        self.logger.info("Updating apt package lists via 'apt-get update'...")
        try:
            run_elevated_command(
                ["apt-get", "update", "-y"],
                app_settings,
                current_logger=self.logger,
            )
        except Exception as e:
            self.logger.error(f"Failed to update apt cache: {e}")
            raise
        self.logger.info("Apt package lists updated successfully.")

    def upgrade(self, app_settings: AppSettings) -> None:
        """
        Upgrades all installed packages using 'apt-get upgrade'.

        Raises:
            subprocess.CalledProcessError: If apt-get fails.
        """
        self.logger.info("Upgrading installed packages via 'apt-get upgrade'...")
        try:
            run_elevated_command(
                ["apt-get", "upgrade", "-y"],
                app_settings,
                current_logger=self.logger,
            )
        except Exception as e:
            self.logger.error(f"Failed to upgrade packages: {e}")
            raise
        self.logger.info("Installed packages upgraded successfully.")

    def is_installed(self, pkg_name: str, app_settings: AppSettings) -> bool:
        """Return True if dpkg reports the package as installed."""
        status_cmd = [
            "dpkg-query",
            "-W",
            "-f=${db:Status-Status}",
            pkg_name,
        ]
        try:
            result = run_command(
                status_cmd,
                app_settings,
                capture_output=True,
                check=True,
                current_logger=self.logger,
            )
        except subprocess.CalledProcessError:
            return False
        return (
            "installed" in result.stdout
            and "not-installed" not in result.stdout
        )

    def install(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
        update_first: bool = True,
    ) -> None:
        """
        Installs one or more packages using 'apt-get install'. Packages dpkg
        already reports as installed are skipped.

        Args:
            packages: A single package name or a list of package names.
            app_settings: The application settings.
            update_first: Whether to update the package lists before installing.

        Raises:
            subprocess.CalledProcessError: If apt-get fails.
        """
        if not isinstance(packages, list):
            packages = [packages]

        if update_first:
            self.update(app_settings)

        packages_to_install = []
        for pkg_name in packages:
            if self.is_installed(pkg_name, app_settings):
                self.logger.info(
                    f"Package '{pkg_name}' is already installed. Skipping."
                )
            else:
                self.logger.info(
                    f"Marking package for installation: {pkg_name}"
                )
                packages_to_install.append(pkg_name)

        if not packages_to_install:
            self.logger.info("All requested packages are already installed.")
            return

        self.logger.info(
            f"Committing installation for: {', '.join(packages_to_install)}"
        )
        try:
            run_elevated_command(
                ["apt-get", "install", "-y"] + packages_to_install,
                app_settings,
                current_logger=self.logger,
            )
        except Exception as e:
            self.logger.error(f"Failed to install packages: {e}")
            raise
        self.logger.info("Packages installed successfully.")

    def remove(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
    ) -> None:
        """
        Removes one or more packages using 'apt-get remove'. Configuration
        files are kept.

        Raises:
            subprocess.CalledProcessError: If apt-get fails.
        """
        if not isinstance(packages, list):
            packages = [packages]

        self.logger.info(f"Removing packages: {', '.join(packages)}")
        try:
            run_elevated_command(
                ["apt-get", "remove", "-y"] + packages,
                app_settings,
                current_logger=self.logger,
            )
        except Exception as e:
            self.logger.error(f"Failed to remove packages: {e}")
            raise
        self.logger.info("Packages removed successfully.")
