"""Source-repository binding for the frontend hosting application"""
from dataclasses import dataclass
from typing import Optional, Union

from udr_cdk.errors import ConfigurationFailure


@dataclass(frozen=True)
class ConnectedSource:
    """Frontend bound to a GitHub repository with a token held in Secrets Manager"""
    owner: str
    repository: str
    credential_ref: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repository}"

    @property
    def repository_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repository}"


@dataclass(frozen=True)
class Disconnected:
    """Frontend with no repository; the operator connects one in the console"""


FrontendSource = Union[ConnectedSource, Disconnected]


def resolve_source(
    repo: Optional[str],
    credential_ref: Optional[str]
) -> FrontendSource:
    """
    Decide the frontend provisioning path.

    Args:
        repo: Repository identifier in "owner/name" form
        credential_ref: Secrets Manager name of the repository access token

    Returns:
        ConnectedSource when both are given, Disconnected when neither is

    Raises:
        ConfigurationFailure: exactly one of the two is given, or the
            repository identifier is malformed
    """
    if not repo and not credential_ref:
        return Disconnected()
    if not repo:
        raise ConfigurationFailure(
            "github_token_secret was supplied without github_repo"
        )
    if not credential_ref:
        raise ConfigurationFailure(
            "github_repo was supplied without github_token_secret"
        )

    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ConfigurationFailure(
            f"github_repo must look like 'owner/repository', got {repo!r}"
        )

    owner, repository = parts
    return ConnectedSource(
        owner=owner,
        repository=repository,
        credential_ref=credential_ref
    )
