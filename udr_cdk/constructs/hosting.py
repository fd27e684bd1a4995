"""Amplify hosting construct for the Next.js frontend"""
import logging
from typing import Dict, Optional

from aws_cdk import (
    aws_amplify as amplify,
    aws_codebuild as codebuild,
    aws_iam as iam,
    SecretValue,
    Stack
)
from constructs import Construct

from udr_cdk.config import BuildSpecConfig, HostingConfig
from udr_cdk.endpoints import EndpointReference
from udr_cdk.source import ConnectedSource, Disconnected, FrontendSource

logger = logging.getLogger(__name__)

BACKEND_BASE_URL = "NEXT_PUBLIC_BACKEND_BASE_URL"
BACKEND_PORT = "NEXT_PUBLIC_BACKEND_PORT"
API_VERSION = "NEXT_PUBLIC_API_VERSION"
ENABLE_V2_API = "NEXT_PUBLIC_ENABLE_V2_API"
DRY_RUN = "NEXT_PUBLIC_DRY_RUN"
LIVE_UPDATES = "_LIVE_UPDATES"


def build_environment(
    config: HostingConfig,
    backend: Optional[EndpointReference]
) -> Dict[str, str]:
    """
    Environment variables baked into every frontend build.

    The frontend renders a degraded dry-run mode when no backend URL could be
    resolved, and talks to the live backend otherwise.

    Args:
        config: Hosting configuration holding the fixed values
        backend: Backend endpoint, or None when there is none to point at

    Returns:
        Mapping of variable name to value
    """
    return {
        BACKEND_BASE_URL: backend.url if backend else config.fallback_backend_url,
        BACKEND_PORT: config.backend_port,
        API_VERSION: config.api_version,
        ENABLE_V2_API: config.enable_v2_api,
        DRY_RUN: "false" if backend else "true",
        LIVE_UPDATES: config.live_updates
    }


def build_spec_document(config: BuildSpecConfig, environment: Dict[str, str]) -> dict:
    """Amplify build specification for the frontend application"""
    return {
        "version": "1.0",
        "applications": [
            {
                "frontend": {
                    "phases": {
                        "preBuild": {
                            "commands": [f"cd {config.app_root}", *config.install_commands]
                        },
                        "build": {
                            "commands": list(config.build_commands)
                        }
                    },
                    "artifacts": {
                        "baseDirectory": config.artifact_directory,
                        "files": list(config.artifact_files)
                    },
                    "cache": {
                        "paths": list(config.cache_paths)
                    }
                }
            }
        ],
        "env": {
            "variables": dict(environment)
        }
    }


class AmplifyHostingConstruct(Construct):
    """
    Construct for an Amplify app serving the frontend.

    With a ConnectedSource the app is bound to the GitHub repository and its
    main branch builds on every push. When Disconnected, the app and branch
    are created without a repository; the operator connects one in the
    console, and a non-building webhook branch backs the manual build
    trigger URL.

    Build results are reported by Amplify after the app exists; a failed
    build never fails this construct.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: HostingConfig,
        source: FrontendSource,
        environment: Dict[str, str],
        service_role: iam.IRole
    ) -> None:
        """
        Initialize the hosting construct.

        Args:
            scope: Parent construct
            construct_id: Unique identifier for this construct
            config: Hosting configuration settings
            source: Resolved repository binding
            environment: Build environment variables
            service_role: Role Amplify assumes for builds
        """
        super().__init__(scope, construct_id)

        self._config = config
        self._source = source
        self._webhook_branch = None

        app_kwargs = {
            "name": config.app_name,
            "platform": config.platform,
            "build_spec": codebuild.BuildSpec.from_object_to_yaml(
                build_spec_document(config.build_spec, environment)
            ).to_build_spec(),
            "environment_variables": [
                amplify.CfnApp.EnvironmentVariableProperty(name=name, value=value)
                for name, value in environment.items()
            ],
            "iam_service_role": service_role.role_arn
        }

        if isinstance(source, ConnectedSource):
            logger.info("Binding %s to %s", config.app_name, source.full_name)
            # Dynamic reference; the token value never appears in the template
            app_kwargs["repository"] = source.repository_url
            app_kwargs["oauth_token"] = SecretValue.secrets_manager(
                source.credential_ref
            ).unsafe_unwrap()
        else:
            logger.info(
                "No repository for %s; connect one in the Amplify console",
                config.app_name
            )

        self._app = amplify.CfnApp(self, "App", **app_kwargs)

        self._branch = amplify.CfnBranch(
            self, "MainBranch",
            app_id=self._app.attr_app_id,
            branch_name=config.branch_name,
            enable_auto_build=True,
            environment_variables=[
                amplify.CfnBranch.EnvironmentVariableProperty(name=name, value=value)
                for name, value in environment.items()
            ]
        )

        if isinstance(source, Disconnected):
            self._webhook_branch = amplify.CfnBranch(
                self, "WebhookBranch",
                app_id=self._app.attr_app_id,
                branch_name=config.webhook_branch_name,
                enable_auto_build=False
            )

    @property
    def app(self) -> amplify.CfnApp:
        """Get the Amplify app"""
        return self._app

    @property
    def app_id(self) -> str:
        return self._app.attr_app_id

    @property
    def app_name(self) -> str:
        return self._app.attr_app_name

    @property
    def branch(self) -> amplify.CfnBranch:
        """Get the tracked production branch"""
        return self._branch

    @property
    def webhook_branch(self) -> Optional[amplify.CfnBranch]:
        """Get the manual-build branch, present only when Disconnected"""
        return self._webhook_branch

    @property
    def url(self) -> str:
        """Get the hosted URL of the production branch"""
        return f"https://{self._config.branch_name}.{self._app.attr_default_domain}"

    @property
    def manual_trigger_url(self) -> Optional[str]:
        """
        Get the URL that starts a build by hand, present only when Disconnected.

        The token query parameter is left as a placeholder for the operator to
        fill in from an incoming webhook created in the Amplify console.
        """
        if self._webhook_branch is None:
            return None
        region = Stack.of(self).region
        return (
            f"https://webhooks.amplify.{region}.amazonaws.com/prod/webhooks"
            f"?id={self.app_id}&token=<token>&operation=startbuild"
        )
