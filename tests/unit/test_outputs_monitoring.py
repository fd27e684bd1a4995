"""Tests for CloudFormation outputs and CloudWatch monitoring"""
import pytest
from tests.test_constants import ResourceType, InfraConfig, OutputName
from tests.test_helpers import (
    assert_resource_count_at_least,
    assert_has_property,
    assert_output_exists,
    assert_output_export
)


class TestGatewayOutputs:
    """Test gateway stack outputs"""

    def test_gateway_url_output(self, gateway_template):
        """Test that the gateway URL is an output"""
        assert_output_exists(gateway_template, OutputName.GATEWAY_URL, "Bedrock Access Gateway URL")

    def test_gateway_url_export(self, gateway_template):
        """Test that the gateway URL is exported for other stacks"""
        assert_output_export(gateway_template, OutputName.GATEWAY_URL_EXPORT, "BedrockGatewayURL")


class TestBackendOutputs:
    """Test backend stack outputs"""

    def test_backend_url_output(self, backend_template):
        """Test that the backend URL is an exported output"""
        assert_output_exists(backend_template, OutputName.BACKEND_URL, "UDR Backend API URL")
        assert_output_export(backend_template, OutputName.BACKEND_URL, "UDRBackendURL")

    def test_backend_alb_arn_output(self, backend_template):
        """Test that the backend ALB ARN is an output"""
        assert_output_exists(backend_template, OutputName.BACKEND_ALB_ARN, "Backend ALB ARN")

    def test_backend_cluster_and_service_outputs(self, backend_template):
        """Test that the backend cluster and service names are outputs"""
        assert_output_exists(backend_template, OutputName.BACKEND_CLUSTER_NAME, "Backend ECS Cluster Name")
        assert_output_exists(backend_template, OutputName.BACKEND_SERVICE_NAME, "Backend ECS Service Name")


class TestFrontendOutputs:
    """Test frontend stack outputs"""

    def test_frontend_url_output(self, frontend_template):
        """Test that the frontend URL is an exported output"""
        assert_output_exists(frontend_template, OutputName.FRONTEND_URL, "UDR Frontend URL")
        assert_output_export(frontend_template, OutputName.FRONTEND_URL, "UDRFrontendURL")

    def test_amplify_app_outputs(self, frontend_template):
        """Test that the Amplify app id and name are outputs"""
        assert_output_exists(frontend_template, OutputName.AMPLIFY_APP_ID, "Amplify App ID")
        assert_output_exists(frontend_template, OutputName.AMPLIFY_APP_NAME, "Amplify App Name")


class TestCloudWatchLogs:
    """Test CloudWatch logging configuration"""

    def test_log_groups_created(self, gateway_template, backend_template):
        """Test that each container unit writes to its own log group"""
        assert_resource_count_at_least(gateway_template, ResourceType.LOG_GROUP, 1)
        assert_resource_count_at_least(backend_template, ResourceType.LOG_GROUP, 1)

    def test_log_retention_configured(self, gateway_template, backend_template):
        """Test that log retention is set to one week"""
        for template in (gateway_template, backend_template):
            assert_has_property(template, ResourceType.LOG_GROUP, {
                "RetentionInDays": InfraConfig.LOG_RETENTION_DAYS
            })
