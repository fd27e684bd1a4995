#!/usr/bin/env python3
"""
Universal Deep Research (UDR) CDK application.

Deploys, in order:
1. BedrockGatewayStack: Bedrock Access Gateway (OpenAI-compatible API on ECS)
2. UDRBackendStack: FastAPI backend on ECS, pointed at the gateway
3. UDRFrontendStack: Next.js frontend on Amplify, pointed at the backend

Pass `-c frontend_only=true [-c backend_url=...]` to deploy only the frontend.
"""
import logging

import aws_cdk as cdk

from udr_cdk.config import DeploymentContext, UdrConfig
from udr_cdk.deployment import build_frontend_only, build_stacks

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

app = cdk.App()

context = DeploymentContext.from_app(app)
config = UdrConfig.default(source_root=context.build_root)

if context.frontend_only:
    build_frontend_only(app, config, context)
else:
    build_stacks(app, config, context)

app.synth()
