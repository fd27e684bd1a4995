"""ECS cluster construct"""
from typing import List, Optional

from aws_cdk import (
    aws_ecs as ecs,
    aws_ec2 as ec2
)
from constructs import Construct

from udr_cdk.config import EcsClusterConfig


def capacity_strategies(config: EcsClusterConfig) -> Optional[List[ecs.CapacityProviderStrategy]]:
    """
    Capacity provider mix for services in the cluster.

    Returns None for plain Fargate, in which case services keep the FARGATE
    launch type. With a spot weight, `on_demand_base` tasks stay on FARGATE
    and the rest are split by weight.
    """
    if config.spot_weight <= 0:
        return None
    return [
        ecs.CapacityProviderStrategy(
            capacity_provider="FARGATE",
            base=config.on_demand_base,
            weight=1
        ),
        ecs.CapacityProviderStrategy(
            capacity_provider="FARGATE_SPOT",
            weight=config.spot_weight
        )
    ]


class EcsClusterConstruct(Construct):
    """
    Construct for a Fargate-only ECS cluster.

    Capacity is managed by Fargate. The Fargate capacity providers are only
    attached when the unit's configuration asks for spot capacity.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        vpc: ec2.IVpc,
        config: EcsClusterConfig
    ) -> None:
        super().__init__(scope, construct_id)

        self._strategies = capacity_strategies(config)

        self._cluster = ecs.Cluster(
            self, "Cluster",
            vpc=vpc,
            cluster_name=config.cluster_name,
            container_insights=config.enable_container_insights,
            enable_fargate_capacity_providers=self._strategies is not None
        )

    @property
    def cluster(self) -> ecs.Cluster:
        """Get the ECS cluster"""
        return self._cluster

    @property
    def cluster_name(self) -> str:
        return self._cluster.cluster_name

    @property
    def capacity_provider_strategies(self) -> Optional[List[ecs.CapacityProviderStrategy]]:
        """Get the strategy services should use, or None for the FARGATE launch type"""
        return self._strategies
