"""Tests for VPC and networking configuration"""
import pytest
import aws_cdk as core
import aws_cdk.assertions as assertions

from udr_cdk.backend_stack import UDRBackendStack
from udr_cdk.config import BackendConfig, VpcConfig
from udr_cdk.endpoints import EndpointReference
from tests.test_constants import ResourceType, InfraConfig, StackName, TEST_ACCOUNT, TEST_REGION
from tests.test_helpers import (
    assert_resource_count,
    assert_resource_count_at_least,
    assert_has_property
)


@pytest.fixture(params=["gateway", "backend"])
def service_template(request, gateway_template, backend_template):
    """Template of each unit that owns a VPC"""
    return {"gateway": gateway_template, "backend": backend_template}[request.param]


class TestVPCConfiguration:
    """Test the per-unit VPCs"""

    def test_vpc_is_created(self, service_template):
        """Test that each container unit gets exactly one VPC"""
        assert_resource_count(service_template, ResourceType.VPC, 1)

    def test_vpc_has_correct_number_of_subnets(self, service_template):
        """Test that VPC uses 2 availability zones (2 public + 2 private subnets)"""
        assert_resource_count(service_template, ResourceType.SUBNET, InfraConfig.EXPECTED_SUBNETS)

    def test_vpc_has_nat_gateway(self, service_template):
        """Test that VPC has exactly 1 NAT gateway"""
        assert_resource_count(service_template, ResourceType.NAT_GATEWAY, InfraConfig.EXPECTED_NAT_GATEWAYS)

    def test_vpc_has_internet_gateway(self, service_template):
        """Test that VPC has an internet gateway"""
        assert_resource_count(service_template, ResourceType.INTERNET_GATEWAY, 1)

    def test_vpc_subnets_have_correct_cidr_mask(self, service_template):
        """Test that subnets use /24 CIDR mask"""
        subnets = service_template.find_resources(ResourceType.SUBNET)

        for subnet_id, subnet in subnets.items():
            cidr = subnet["Properties"]["CidrBlock"]
            # CIDR blocks should contain /24 or be a CloudFormation function
            assert InfraConfig.SUBNET_CIDR_MASK in str(cidr) or cidr.get("Fn::Select") is not None

    def test_frontend_has_no_vpc(self, frontend_template):
        """Test that the Amplify frontend provisions no network of its own"""
        assert_resource_count(frontend_template, ResourceType.VPC, 0)


class TestSecurityGroups:
    """Test security group configuration"""

    def test_security_groups_created(self, service_template):
        """Test that the ALB and the service each get a security group"""
        assert_resource_count_at_least(service_template, ResourceType.SECURITY_GROUP, 2)

    def test_tasks_have_no_public_ip(self, service_template):
        """Test that Fargate tasks run in private subnets without public IPs"""
        services = service_template.find_resources(ResourceType.ECS_SERVICE)
        for service in services.values():
            network = service["Properties"]["NetworkConfiguration"]["AwsvpcConfiguration"]
            assert network["AssignPublicIp"] == "DISABLED"


def _backend_template(vpc_config):
    """Synthesize a backend with the given network settings and a registry image"""
    config = BackendConfig(vpc=vpc_config)
    config.service.image_directory = None
    stack = UDRBackendStack(
        core.App(), StackName.BACKEND,
        gateway=EndpointReference(StackName.GATEWAY, "http://gw.example"),
        config=config,
        env=core.Environment(account=TEST_ACCOUNT, region=TEST_REGION)
    )
    return assertions.Template.from_stack(stack)


class TestTaskPlacement:
    """Test where the Fargate tasks of a unit are placed"""

    @pytest.fixture(scope="class")
    def public_template(self):
        """Backend stack with its tasks in public subnets"""
        return _backend_template(VpcConfig(public_tasks=True))

    def test_public_tasks_have_no_private_tier(self, public_template):
        """Test that public-task units only get the public subnets"""
        assert_resource_count(public_template, ResourceType.SUBNET, 2)
        assert_resource_count(public_template, ResourceType.NAT_GATEWAY, 0)

    def test_public_tasks_get_public_ip(self, public_template):
        """Test that tasks in public subnets are given a public IP"""
        assert_has_property(public_template, ResourceType.ECS_SERVICE, {
            "NetworkConfiguration": {
                "AwsvpcConfiguration": assertions.Match.object_like({
                    "AssignPublicIp": "ENABLED"
                })
            }
        })

    def test_public_tasks_keep_public_load_balancer(self, public_template):
        """Test that the ALB stays internet-facing with public task placement"""
        assert_has_property(public_template, ResourceType.ALB, {
            "Scheme": "internet-facing"
        })

    def test_nat_count_follows_config(self):
        """Test that private-task units get the configured number of NAT gateways"""
        template = _backend_template(VpcConfig(nat_gateways=2))
        assert_resource_count(template, ResourceType.NAT_GATEWAY, 2)
