from aws_cdk import (
    Stack,
    CfnOutput
)
from constructs import Construct

from udr_cdk.config import BackendConfig
from udr_cdk.constructs.ecs_cluster import EcsClusterConstruct
from udr_cdk.constructs.fargate_service import FargateServiceConstruct
from udr_cdk.constructs.iam_roles import TaskRolesConstruct
from udr_cdk.constructs.networking import NetworkingConstruct
from udr_cdk.constructs.secrets import ApiSecretsConstruct
from udr_cdk.endpoints import EndpointReference


class UDRBackendStack(Stack):
    """
    UDR Backend.

    Runs the FastAPI research backend on Fargate. The gateway URL is baked
    into the container environment at provisioning time, so a new gateway
    URL only reaches the backend when this stack is deployed again.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        gateway: EndpointReference,
        config: BackendConfig,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        networking = NetworkingConstruct(self, "BackendNetworking", config.vpc)

        cluster = EcsClusterConstruct(
            self, "UDRBackendCluster",
            vpc=networking.vpc,
            config=config.ecs_cluster
        )

        # Placeholders only; the operator sets the real keys after deployment
        api_secrets = ApiSecretsConstruct(self, "UDRBackendSecrets", config.secrets)

        roles = TaskRolesConstruct(self, "BackendRoles")
        api_secrets.grant_read(roles.task_role)

        self._service = FargateServiceConstruct(
            self, "BackendService",
            cluster=cluster.cluster,
            config=config.service,
            task_role=roles.task_role,
            execution_role=roles.execution_role,
            task_subnets=networking.task_subnets,
            assign_public_ip=networking.assign_public_ip,
            capacity_provider_strategies=cluster.capacity_provider_strategies,
            additional_environment={
                "LLM_BASE_URL": gateway.with_path(config.gateway_api_path)
            },
            secrets=api_secrets.container_secrets()
        )

        self._service.add_origin_routing(config.origin_routing)

        self._endpoint = EndpointReference(construct_id, self._service.url)
        self._load_balancer_arn = self._service.load_balancer.load_balancer_arn

        CfnOutput(
            self, "BackendURL",
            value=self._endpoint.url,
            description="UDR Backend API URL",
            export_name=config.url_export_name
        )

        CfnOutput(
            self, "BackendALBArn",
            value=self._load_balancer_arn,
            description="Backend ALB ARN"
        )

        CfnOutput(
            self, "BackendClusterName",
            value=cluster.cluster_name,
            description="Backend ECS Cluster Name"
        )

        CfnOutput(
            self, "BackendServiceName",
            value=self._service.service.service_name,
            description="Backend ECS Service Name"
        )

    @property
    def endpoint(self) -> EndpointReference:
        """Get the backend's public URL"""
        return self._endpoint

    @property
    def load_balancer_arn(self) -> str:
        return self._load_balancer_arn

    @property
    def service(self) -> FargateServiceConstruct:
        return self._service
