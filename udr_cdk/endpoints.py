"""Endpoint references passed between deployment units"""
from dataclasses import dataclass

from udr_cdk.errors import ConfigurationFailure


@dataclass(frozen=True)
class EndpointReference:
    """
    URL produced by one unit and baked into a dependent unit's configuration.

    The value may be a CDK token (a cross-stack reference). Dependents hold a
    copy taken at provisioning time; a changed upstream URL only reaches them
    when they are re-provisioned.
    """
    producer: str
    url: str

    def __post_init__(self):
        if not self.producer:
            raise ConfigurationFailure("Endpoint reference has no producing unit")
        if not self.url:
            raise ConfigurationFailure(f"{self.producer} produced an empty endpoint URL")

    def with_path(self, path: str) -> str:
        """
        Get the URL with a path appended.

        Args:
            path: Path to append, e.g. "/v1"

        Returns:
            The joined URL string
        """
        return f"{self.url.rstrip('/')}/{path.lstrip('/')}"

    def __str__(self) -> str:
        return self.url
