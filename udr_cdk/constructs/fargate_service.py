"""Fargate service construct with Application Load Balancer"""
from typing import Dict, List, Optional
from aws_cdk import (
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_ecs_patterns as ecs_patterns,
    aws_elasticloadbalancingv2 as elbv2,
    aws_iam as iam,
    aws_logs as logs,
    Duration,
    RemovalPolicy
)
from constructs import Construct

from udr_cdk.config import OriginRoutingConfig, ServiceConfig


def container_image(config: ServiceConfig) -> ecs.ContainerImage:
    """Build the image from its source directory, or use the registry image"""
    if config.image_directory:
        return ecs.ContainerImage.from_asset(config.image_directory)
    return ecs.ContainerImage.from_registry(config.image_name)


class FargateServiceConstruct(Construct):
    """
    Construct for creating a Fargate service with Application Load Balancer.

    Creates the task definition, container, log group, service, and a public
    ALB whose listener forwards to the container port. The ALB target health
    probe and the optional container health check report a degraded service;
    neither triggers a rollback, ECS only replaces failed tasks.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        cluster: ecs.ICluster,
        config: ServiceConfig,
        task_role: iam.IRole,
        execution_role: iam.IRole,
        task_subnets: Optional[ec2.SubnetSelection] = None,
        assign_public_ip: bool = False,
        capacity_provider_strategies: Optional[List[ecs.CapacityProviderStrategy]] = None,
        additional_environment: Optional[Dict[str, str]] = None,
        secrets: Optional[Dict[str, ecs.Secret]] = None
    ) -> None:
        """
        Initialize the Fargate service construct.

        Args:
            scope: Parent construct
            construct_id: Unique identifier for this construct
            cluster: ECS cluster to deploy the service to
            config: Service configuration settings
            task_role: IAM role for the task
            execution_role: IAM execution role for the task
            task_subnets: Subnets for the tasks (private subnets by default)
            assign_public_ip: Give tasks a public IP (tasks in public subnets)
            capacity_provider_strategies: Capacity mix, or None for the FARGATE launch type
            additional_environment: Additional environment variables to add
            secrets: Secrets to inject into the container
        """
        super().__init__(scope, construct_id)

        log_group = logs.LogGroup(
            self, "LogGroup",
            retention=logs.RetentionDays.ONE_WEEK,
            removal_policy=RemovalPolicy.DESTROY
        )

        task_definition = ecs.FargateTaskDefinition(
            self, "TaskDef",
            family=config.family,
            task_role=task_role,
            execution_role=execution_role,
            cpu=config.task_definition.cpu,
            memory_limit_mib=config.task_definition.memory_limit_mib
        )

        environment = config.environment_variables.copy()
        if additional_environment:
            environment.update(additional_environment)

        container_kwargs = {
            "image": container_image(config),
            "logging": ecs.LogDrivers.aws_logs(
                log_group=log_group,
                stream_prefix=config.stream_prefix
            ),
            "port_mappings": [
                ecs.PortMapping(
                    container_port=config.container_port,
                    protocol=ecs.Protocol.TCP
                )
            ],
            "environment": environment
        }

        if secrets:
            container_kwargs["secrets"] = secrets

        if config.container_health_check:
            probe = config.container_health_check
            container_kwargs["health_check"] = ecs.HealthCheck(
                command=probe.command,
                interval=Duration.seconds(probe.interval_seconds),
                timeout=Duration.seconds(probe.timeout_seconds),
                retries=probe.retries,
                start_period=Duration.seconds(probe.start_period_seconds)
            )

        self._container = task_definition.add_container(
            config.container_name,
            **container_kwargs
        )

        self._service = ecs_patterns.ApplicationLoadBalancedFargateService(
            self, "Service",
            cluster=cluster,
            service_name=config.service_name,
            task_definition=task_definition,
            desired_count=config.desired_count,
            public_load_balancer=True,
            load_balancer_name=config.load_balancer_name,
            listener_port=config.listener_port,
            assign_public_ip=assign_public_ip,
            task_subnets=task_subnets,
            capacity_provider_strategies=capacity_provider_strategies,
            health_check_grace_period=Duration.seconds(
                config.health_check.grace_period_seconds
            )
        )

        self._service.target_group.configure_health_check(
            path=config.health_check.path,
            healthy_http_codes=config.health_check.healthy_http_codes,
            interval=Duration.seconds(config.health_check.interval_seconds),
            timeout=Duration.seconds(config.health_check.timeout_seconds),
            healthy_threshold_count=config.health_check.healthy_threshold_count,
            unhealthy_threshold_count=config.health_check.unhealthy_threshold_count
        )

    def add_origin_routing(self, config: OriginRoutingConfig) -> elbv2.ApplicationListenerRule:
        """
        Forward requests whose Origin header matches the given patterns.

        Requests from any other origin fall through to the listener's
        default forward action.

        Args:
            config: Header name, patterns and rule priority

        Returns:
            The listener rule
        """
        return elbv2.ApplicationListenerRule(
            self, "OriginRoutingRule",
            listener=self._service.listener,
            priority=config.priority,
            conditions=[
                elbv2.ListenerCondition.http_header(config.header_name, config.values)
            ],
            action=elbv2.ListenerAction.forward([self._service.target_group])
        )

    @property
    def service(self) -> ecs.FargateService:
        """Get the Fargate service"""
        return self._service.service

    @property
    def load_balancer(self) -> elbv2.ApplicationLoadBalancer:
        """Get the public load balancer"""
        return self._service.load_balancer

    @property
    def load_balancer_dns_name(self) -> str:
        """Get the load balancer DNS name"""
        return self._service.load_balancer.load_balancer_dns_name

    @property
    def url(self) -> str:
        """Get the public HTTP URL of the service"""
        return f"http://{self.load_balancer_dns_name}"

    @property
    def container(self) -> ecs.ContainerDefinition:
        """Get the container definition"""
        return self._container
