"""Configuration management for UDR CDK infrastructure"""
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import aws_cdk as cdk

from udr_cdk.source import FrontendSource, resolve_source


DEFAULT_REGION = "us-east-1"


@dataclass
class VpcConfig:
    """VPC and networking configuration"""
    max_azs: int = 2
    nat_gateways: int = 1
    public_subnet_cidr_mask: int = 24
    private_subnet_cidr_mask: int = 24
    vpc_name: Optional[str] = None
    # Tasks in public subnets with public IPs; no private subnets or NAT
    public_tasks: bool = False


@dataclass
class EcsClusterConfig:
    """ECS cluster configuration"""
    cluster_name: Optional[str] = None
    enable_container_insights: bool = True
    # Relative weight of FARGATE_SPOT against FARGATE; 0 keeps plain Fargate
    spot_weight: int = 0
    # Tasks always placed on on-demand FARGATE when spot is in use
    on_demand_base: int = 1


@dataclass
class TaskDefinitionConfig:
    """ECS task definition configuration"""
    cpu: int = 512
    memory_limit_mib: int = 1024


@dataclass
class HealthCheckConfig:
    """Application Load Balancer health check configuration"""
    path: str = "/"
    healthy_http_codes: str = "200-399"
    interval_seconds: int = 30
    timeout_seconds: int = 5
    healthy_threshold_count: int = 2
    unhealthy_threshold_count: int = 3
    grace_period_seconds: int = 60


@dataclass
class ContainerHealthCheckConfig:
    """Container-level health check run by the ECS agent"""
    command: List[str]
    interval_seconds: int = 30
    timeout_seconds: int = 5
    retries: int = 3
    start_period_seconds: int = 60


@dataclass
class OriginRoutingConfig:
    """Listener rule forwarding requests by their Origin header"""
    header_name: str = "Origin"
    values: List[str] = field(default_factory=lambda: ["*.amplifyapp.com"])
    priority: int = 100


@dataclass
class ServiceConfig:
    """Fargate service configuration"""
    family: str
    container_name: str
    container_port: int
    stream_prefix: str
    # Directory holding the Dockerfile; falls back to image_name when unset
    image_directory: Optional[str] = None
    image_name: str = "nginx:alpine"
    service_name: Optional[str] = None
    load_balancer_name: Optional[str] = None
    desired_count: int = 1
    listener_port: int = 80
    task_definition: TaskDefinitionConfig = None
    health_check: HealthCheckConfig = None
    container_health_check: Optional[ContainerHealthCheckConfig] = None
    environment_variables: Dict[str, str] = None

    def __post_init__(self):
        if self.task_definition is None:
            self.task_definition = TaskDefinitionConfig()
        if self.health_check is None:
            self.health_check = HealthCheckConfig()
        if self.environment_variables is None:
            self.environment_variables = {}


@dataclass
class SecretsConfig:
    """Secrets Manager configuration for the backend API credentials"""
    description: str = "API keys for UDR backend application"
    search_api_key_field: str = "tavily_api_key"
    model_api_key_field: str = "nvidia_api_key"
    search_api_key_env: str = "TAVILY_API_KEY"
    model_api_key_env: str = "NVIDIA_API_KEY"
    exclude_characters: str = "\"@/\\"


@dataclass
class GatewayConfig:
    """Bedrock Access Gateway unit configuration"""
    stack_name: str = "BedrockGatewayStack"
    description: str = "Bedrock Access Gateway for OpenAI compatibility"
    vpc: VpcConfig = None
    ecs_cluster: EcsClusterConfig = None
    service: ServiceConfig = None
    managed_policies: List[str] = field(
        default_factory=lambda: ["AmazonBedrockFullAccess"]
    )
    url_export_name: str = "BedrockGatewayURL"

    def __post_init__(self):
        if self.vpc is None:
            self.vpc = VpcConfig()
        if self.ecs_cluster is None:
            self.ecs_cluster = EcsClusterConfig()
        if self.service is None:
            self.service = ServiceConfig(
                family="bedrock-gateway-task",
                container_name="GatewayContainer",
                container_port=8080,
                stream_prefix="bedrock-gateway",
                image_directory="infrastructure/bedrock-gateway/src",
                environment_variables={
                    "PORT": "8080"
                }
            )


@dataclass
class BackendConfig:
    """UDR backend unit configuration"""
    stack_name: str = "UDRBackendStack"
    description: str = "Universal Deep Research Backend (FastAPI + ECS)"
    vpc: VpcConfig = None
    ecs_cluster: EcsClusterConfig = None
    service: ServiceConfig = None
    secrets: SecretsConfig = None
    origin_routing: OriginRoutingConfig = None
    gateway_api_path: str = "/v1"
    url_export_name: str = "UDRBackendURL"

    def __post_init__(self):
        if self.vpc is None:
            self.vpc = VpcConfig()
        if self.ecs_cluster is None:
            self.ecs_cluster = EcsClusterConfig(cluster_name="udr-backend-cluster")
        if self.secrets is None:
            self.secrets = SecretsConfig()
        if self.origin_routing is None:
            self.origin_routing = OriginRoutingConfig()
        if self.service is None:
            self.service = ServiceConfig(
                family="udr-backend-task",
                container_name="BackendContainer",
                container_port=8000,
                stream_prefix="udr-backend",
                image_directory="backend",
                service_name="udr-backend-service",
                load_balancer_name="udr-backend-alb",
                task_definition=TaskDefinitionConfig(
                    cpu=1024,
                    memory_limit_mib=2048
                ),
                health_check=HealthCheckConfig(healthy_http_codes="200"),
                container_health_check=ContainerHealthCheckConfig(
                    command=["CMD-SHELL", "curl -f http://localhost:8000/ || exit 1"]
                ),
                environment_variables={
                    "HOST": "0.0.0.0",
                    "PORT": "8000",
                    "LOG_LEVEL": "info",
                    "DEFAULT_MODEL": "claude-3-sonnet",
                    "LLM_API_KEY_FILE": "/tmp/dummy_key.txt",
                    "TAVILY_API_KEY_FILE": "/tmp/tavily_key.txt",
                    "MAX_TOPICS": "3",
                    "MAX_SEARCH_PHRASES": "5"
                }
            )


@dataclass
class BuildSpecConfig:
    """Amplify build specification for the Next.js frontend"""
    app_root: str = "frontend"
    install_commands: List[str] = field(
        default_factory=lambda: ["npm ci --cache .npm --prefer-offline"]
    )
    build_commands: List[str] = field(default_factory=lambda: ["npm run build"])
    artifact_directory: str = "frontend/.next"
    artifact_files: List[str] = field(default_factory=lambda: ["**/*"])
    cache_paths: List[str] = field(
        default_factory=lambda: [
            "frontend/node_modules/**/*",
            "frontend/.next/cache/**/*"
        ]
    )


@dataclass
class HostingConfig:
    """Amplify hosting configuration for the frontend unit"""
    stack_name: str = "UDRFrontendStack"
    description: str = "Universal Deep Research Frontend (Next.js + Amplify)"
    app_name: str = "universal-deep-research"
    platform: str = "WEB_COMPUTE"
    branch_name: str = "main"
    webhook_branch_name: str = "webhook"
    service_role_policy: str = "AdministratorAccess-Amplify"
    fallback_backend_url: str = "http://localhost:8000"
    backend_port: str = "80"
    api_version: str = "v2"
    enable_v2_api: str = "true"
    live_updates: str = (
        '[{"name":"Next.js version","pkg":"next","type":"npm","version":"latest"}]'
    )
    url_export_name: str = "UDRFrontendURL"
    build_spec: BuildSpecConfig = None

    def __post_init__(self):
        if self.build_spec is None:
            self.build_spec = BuildSpecConfig()


@dataclass
class UdrConfig:
    """Main configuration for UDR CDK infrastructure"""
    gateway: GatewayConfig
    backend: BackendConfig
    frontend: HostingConfig

    @classmethod
    def default(cls, source_root: str = ".") -> "UdrConfig":
        """
        Create default configuration for the three deployment units.

        Args:
            source_root: Directory the container source paths are relative to
        """
        gateway = GatewayConfig()
        backend = BackendConfig()
        for service in (gateway.service, backend.service):
            service.image_directory = os.path.join(source_root, service.image_directory)

        return cls(
            gateway=gateway,
            backend=backend,
            frontend=HostingConfig()
        )


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return False


@dataclass(frozen=True)
class DeploymentContext:
    """
    Runtime parameters for one deployment invocation.

    Units receive this explicitly; nothing inside a stack reads ambient
    process state.
    """
    account: Optional[str] = None
    region: str = DEFAULT_REGION
    github_repo: Optional[str] = None
    github_token_secret: Optional[str] = None
    backend_url: Optional[str] = None
    frontend_only: bool = False
    source_root: Optional[str] = None

    @classmethod
    def from_app(cls, app: cdk.App) -> "DeploymentContext":
        """
        Read deployment parameters from CDK context, then the CDK CLI defaults.

        Args:
            app: CDK app whose context holds the `-c key=value` parameters

        Returns:
            DeploymentContext for this synthesis
        """
        node = app.node
        return cls(
            account=node.try_get_context("account") or os.environ.get("CDK_DEFAULT_ACCOUNT"),
            region=(
                node.try_get_context("region")
                or os.environ.get("CDK_DEFAULT_REGION")
                or DEFAULT_REGION
            ),
            github_repo=node.try_get_context("github_repo") or None,
            github_token_secret=node.try_get_context("github_token_secret") or None,
            backend_url=node.try_get_context("backend_url") or None,
            frontend_only=_as_bool(node.try_get_context("frontend_only")),
            source_root=node.try_get_context("source_root") or None
        )

    @property
    def environment(self) -> cdk.Environment:
        """Get the CDK environment targeted by this deployment"""
        return cdk.Environment(account=self.account, region=self.region)

    @property
    def build_root(self) -> str:
        """Get the directory container build paths are relative to"""
        return self.source_root or "."

    def frontend_source(self) -> FrontendSource:
        """Resolve the frontend source variant, rejecting partial input"""
        return resolve_source(self.github_repo, self.github_token_secret)

    def to_cdk_context(self) -> Dict[str, str]:
        """Render the parameters as `-c key=value` pairs for the CDK CLI"""
        values = {
            "account": self.account,
            "region": self.region,
            "github_repo": self.github_repo,
            "github_token_secret": self.github_token_secret,
            "backend_url": self.backend_url,
            "frontend_only": "true" if self.frontend_only else None,
            "source_root": self.source_root
        }
        return {key: value for key, value in values.items() if value}
