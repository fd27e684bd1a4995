"""Networking construct giving each deployment unit its own VPC"""
from typing import List

from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from udr_cdk.config import VpcConfig


def subnet_layout(config: VpcConfig) -> List[ec2.SubnetConfiguration]:
    """Subnet tiers for a unit's VPC; public-task units get no private tier"""
    subnets = [
        ec2.SubnetConfiguration(
            name="Public",
            subnet_type=ec2.SubnetType.PUBLIC,
            cidr_mask=config.public_subnet_cidr_mask
        )
    ]
    if not config.public_tasks:
        subnets.append(
            ec2.SubnetConfiguration(
                name="Private",
                subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
                cidr_mask=config.private_subnet_cidr_mask
            )
        )
    return subnets


class NetworkingConstruct(Construct):
    """
    Construct for an isolated per-unit network.

    The internet-facing load balancer always sits in the public subnets.
    By default Fargate tasks run in private subnets and reach Bedrock, the
    search APIs and the image registry through a NAT gateway. With
    `public_tasks` the VPC has no private tier and no NAT, and tasks get a
    public IP instead, which is how a default-VPC placement behaves.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: VpcConfig
    ) -> None:
        """
        Initialize the networking construct.

        Args:
            scope: Parent construct
            construct_id: Unique identifier for this construct
            config: VPC configuration settings
        """
        super().__init__(scope, construct_id)

        self._config = config

        self._vpc = ec2.Vpc(
            self, "Vpc",
            max_azs=config.max_azs,
            nat_gateways=0 if config.public_tasks else config.nat_gateways,
            subnet_configuration=subnet_layout(config),
            vpc_name=config.vpc_name
        )

    @property
    def vpc(self) -> ec2.Vpc:
        """Get the VPC resource"""
        return self._vpc

    @property
    def task_subnets(self) -> ec2.SubnetSelection:
        """Subnets where Fargate tasks are placed"""
        if self._config.public_tasks:
            return ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC)
        return ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS)

    @property
    def assign_public_ip(self) -> bool:
        """Whether tasks need a public IP to reach the internet"""
        return self._config.public_tasks
