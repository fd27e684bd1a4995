"""Pytest configuration and shared fixtures for CDK tests"""
import pytest
import aws_cdk as core
import aws_cdk.assertions as assertions

from udr_cdk.config import DeploymentContext, UdrConfig
from udr_cdk.deployment import build_stacks
from tests.test_constants import TEST_ACCOUNT, TEST_REGION


@pytest.fixture(scope="module")
def source_root(tmp_path_factory):
    """Directory tree holding the gateway and backend Docker build contexts"""
    root = tmp_path_factory.mktemp("udr-src")
    for directory in ("infrastructure/bedrock-gateway/src", "backend"):
        build_context = root / directory
        build_context.mkdir(parents=True)
        (build_context / "Dockerfile").write_text("FROM python:3.12-slim\n")
    return str(root)


@pytest.fixture(scope="module")
def udr_config(source_root):
    """Default unit configuration pointed at the test build contexts"""
    return UdrConfig.default(source_root=source_root)


@pytest.fixture(scope="module")
def deployment_context():
    """Deployment parameters without a frontend repository"""
    return DeploymentContext(account=TEST_ACCOUNT, region=TEST_REGION)


@pytest.fixture(scope="module")
def cdk_app():
    """Create a CDK app for testing (module-scoped for performance)"""
    return core.App()


@pytest.fixture(scope="module")
def deployed(cdk_app, udr_config, deployment_context):
    """Declare all three stacks (module-scoped for performance)"""
    return build_stacks(cdk_app, udr_config, deployment_context)


@pytest.fixture(scope="module")
def gateway_template(deployed):
    """Generate CloudFormation template from the gateway stack"""
    return assertions.Template.from_stack(deployed.gateway)


@pytest.fixture(scope="module")
def backend_template(deployed):
    """Generate CloudFormation template from the backend stack"""
    return assertions.Template.from_stack(deployed.backend)


@pytest.fixture(scope="module")
def frontend_template(deployed):
    """Generate CloudFormation template from the frontend stack"""
    return assertions.Template.from_stack(deployed.frontend)
