"""Exceptions raised while planning or provisioning UDR deployment units"""
from typing import Optional


class DeploymentError(Exception):
    """Base class for deployment errors"""


class ConfigurationFailure(DeploymentError):
    """
    A required input is missing or malformed.

    Raised before any resource is declared, so a failed configuration never
    leaves a partial stack behind.
    """


class ProvisioningFailure(DeploymentError):
    """A deployment unit failed to deploy or tear down"""

    def __init__(self, unit: str, action: str, exit_code: Optional[int] = None):
        self.unit = unit
        self.action = action
        self.exit_code = exit_code
        message = f"{action} of {unit} failed"
        if exit_code is not None:
            message += f" (exit code {exit_code})"
        super().__init__(message)
