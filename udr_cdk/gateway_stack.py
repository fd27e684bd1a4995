from aws_cdk import (
    Stack,
    CfnOutput
)
from constructs import Construct

from udr_cdk.config import GatewayConfig
from udr_cdk.constructs.ecs_cluster import EcsClusterConstruct
from udr_cdk.constructs.fargate_service import FargateServiceConstruct
from udr_cdk.constructs.iam_roles import TaskRolesConstruct
from udr_cdk.constructs.networking import NetworkingConstruct
from udr_cdk.endpoints import EndpointReference


class BedrockGatewayStack(Stack):
    """
    Bedrock Access Gateway.

    Runs the OpenAI-compatible translation gateway on Fargate behind a public
    load balancer. Its only output is the gateway URL.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: GatewayConfig,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        networking = NetworkingConstruct(self, "GatewayNetworking", config.vpc)

        cluster = EcsClusterConstruct(
            self, "GatewayCluster",
            vpc=networking.vpc,
            config=config.ecs_cluster
        )

        # Task role carries the Bedrock permissions the gateway proxies with
        roles = TaskRolesConstruct(
            self, "GatewayRoles",
            managed_policies=config.managed_policies
        )

        self._service = FargateServiceConstruct(
            self, "GatewayService",
            cluster=cluster.cluster,
            config=config.service,
            task_role=roles.task_role,
            execution_role=roles.execution_role,
            task_subnets=networking.task_subnets,
            assign_public_ip=networking.assign_public_ip,
            capacity_provider_strategies=cluster.capacity_provider_strategies,
            additional_environment={
                "AWS_REGION": self.region
            }
        )

        self._endpoint = EndpointReference(construct_id, self._service.url)

        CfnOutput(
            self, "GatewayURL",
            value=self._endpoint.url,
            description="Bedrock Access Gateway URL"
        )

        CfnOutput(
            self, "GatewayURLExport",
            value=self._endpoint.url,
            export_name=config.url_export_name
        )

    @property
    def endpoint(self) -> EndpointReference:
        """Get the gateway's public URL"""
        return self._endpoint

    @property
    def service(self) -> FargateServiceConstruct:
        return self._service
