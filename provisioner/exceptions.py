# provisioner/exceptions.py
# -*- coding: utf-8 -*-
"""
Error categories raised by the provisioner.

Failures of the external tools themselves surface as the
`subprocess.CalledProcessError` raised by `common.command_utils.run_command`;
the classes here cover everything the provisioner decides on its own.
"""

from typing import Optional


class ProvisionerError(Exception):
    """Base exception for provisioning errors."""

    category: str = "Provisioning error"

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.stage = stage
        self.original_error = original_error
        super().__init__(message)


class PrivilegeError(ProvisionerError):
    """The provisioner is not running with root privileges."""

    category = "Privilege check failed"


class UnsupportedHostError(ProvisionerError):
    """The host OS could not be identified, or a mismatch was not accepted."""

    category = "Unsupported host"


class StageError(ProvisionerError):
    """A stage finished its commands but its post-condition does not hold."""

    category = "Stage failed"


class ServiceActivationError(StageError):
    """The service did not report an active state after being started."""

    category = "Service activation failed"

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        diagnostics: str = "",
    ):
        self.diagnostics = diagnostics
        super().__init__(message, stage=stage)
