"""Secrets construct for the backend API credentials"""
import json

from aws_cdk import (
    aws_ecs as ecs,
    aws_iam as iam,
    aws_secretsmanager as secretsmanager,
    RemovalPolicy
)
from constructs import Construct

from udr_cdk.config import SecretsConfig


class ApiSecretsConstruct(Construct):
    """
    Construct creating the backend's API credential secret.

    One secret holds two JSON fields: the search API key (created empty) and
    the model provider key (created with a generated placeholder). Both must
    be replaced by the operator after the first deployment; nothing here reads
    or validates their contents.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: SecretsConfig
    ) -> None:
        """
        Initialize the secrets construct.

        Args:
            scope: Parent construct
            construct_id: Unique identifier for this construct
            config: Secrets configuration settings
        """
        super().__init__(scope, construct_id)

        self._secret = secretsmanager.Secret(
            self, "Secret",
            description=config.description,
            generate_secret_string=secretsmanager.SecretStringGenerator(
                secret_string_template=json.dumps({config.search_api_key_field: ""}),
                generate_string_key=config.model_api_key_field,
                exclude_characters=config.exclude_characters
            ),
            removal_policy=RemovalPolicy.DESTROY
        )

        self._config = config

    def grant_read(self, grantee: iam.IGrantable) -> iam.Grant:
        """Allow a principal to read the secret value"""
        return self._secret.grant_read(grantee)

    def container_secrets(self) -> dict:
        """Get container secrets referencing each credential field by name"""
        return {
            self._config.model_api_key_env: ecs.Secret.from_secrets_manager(
                self._secret, self._config.model_api_key_field
            ),
            self._config.search_api_key_env: ecs.Secret.from_secrets_manager(
                self._secret, self._config.search_api_key_field
            )
        }

    @property
    def secret(self) -> secretsmanager.ISecret:
        """Get the credential secret"""
        return self._secret
