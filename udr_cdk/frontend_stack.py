from typing import Optional

from aws_cdk import (
    Stack,
    CfnOutput
)
from constructs import Construct

from udr_cdk.config import HostingConfig
from udr_cdk.constructs.hosting import AmplifyHostingConstruct, build_environment
from udr_cdk.constructs.iam_roles import create_amplify_service_role
from udr_cdk.endpoints import EndpointReference
from udr_cdk.source import FrontendSource


class UDRFrontendStack(Stack):
    """
    UDR Frontend.

    Hosts the Next.js frontend on Amplify. The backend URL is baked into the
    build environment; without one the frontend is built in dry-run mode.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        source: FrontendSource,
        config: HostingConfig,
        backend: Optional[EndpointReference] = None,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        service_role = create_amplify_service_role(
            self, "AmplifyServiceRole",
            config.service_role_policy
        )

        self._environment = build_environment(config, backend)

        self._hosting = AmplifyHostingConstruct(
            self, "UDRAmplifyApp",
            config=config,
            source=source,
            environment=self._environment,
            service_role=service_role
        )

        self._endpoint = EndpointReference(construct_id, self._hosting.url)

        CfnOutput(
            self, "FrontendURL",
            value=self._endpoint.url,
            description="UDR Frontend URL",
            export_name=config.url_export_name
        )

        CfnOutput(
            self, "AmplifyAppId",
            value=self._hosting.app_id,
            description="Amplify App ID"
        )

        CfnOutput(
            self, "AmplifyAppName",
            value=self._hosting.app_name,
            description="Amplify App Name"
        )

        if self._hosting.manual_trigger_url:
            CfnOutput(
                self, "WebhookURL",
                value=self._hosting.manual_trigger_url,
                description="Webhook URL for manual deployments"
            )

    @property
    def endpoint(self) -> EndpointReference:
        """Get the hosted frontend URL"""
        return self._endpoint

    @property
    def build_environment(self) -> dict:
        """Get a copy of the variables baked into the frontend build"""
        return dict(self._environment)

    @property
    def hosting(self) -> AmplifyHostingConstruct:
        return self._hosting
