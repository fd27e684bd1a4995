"""Deployment units and the order they are provisioned and torn down in"""
import logging
from dataclasses import dataclass
from graphlib import CycleError, TopologicalSorter
from typing import Dict, Iterable, List, Optional, Tuple

import aws_cdk as cdk

from udr_cdk.backend_stack import UDRBackendStack
from udr_cdk.config import DeploymentContext, UdrConfig
from udr_cdk.endpoints import EndpointReference
from udr_cdk.errors import ConfigurationFailure
from udr_cdk.frontend_stack import UDRFrontendStack
from udr_cdk.gateway_stack import BedrockGatewayStack

logger = logging.getLogger(__name__)

GATEWAY = "BedrockGatewayStack"
BACKEND = "UDRBackendStack"
FRONTEND = "UDRFrontendStack"


@dataclass(frozen=True)
class DeploymentUnit:
    """One independently provisionable and destroyable stack"""
    name: str
    description: str = ""
    depends_on: Tuple[str, ...] = ()
    outputs: Tuple[str, ...] = ()


class DeploymentPlan:
    """
    Acyclic dependency graph over deployment units.

    Units are provisioned in topological order and torn down in exactly the
    reverse order, since a dependent may hold a predecessor's output.
    """

    def __init__(self, units: Iterable[DeploymentUnit]) -> None:
        self._units: Dict[str, DeploymentUnit] = {}
        for unit in units:
            if unit.name in self._units:
                raise ConfigurationFailure(f"Duplicate deployment unit {unit.name}")
            self._units[unit.name] = unit

        for unit in self._units.values():
            unknown = [name for name in unit.depends_on if name not in self._units]
            if unknown:
                raise ConfigurationFailure(
                    f"{unit.name} depends on unknown unit(s): {', '.join(unknown)}"
                )

        sorter = TopologicalSorter(
            {unit.name: unit.depends_on for unit in self._units.values()}
        )
        try:
            sorter.prepare()
        except CycleError as e:
            raise ConfigurationFailure(f"Deployment units form a cycle: {e.args[1]}") from e

        declared = list(self._units)
        order: List[str] = []
        # Ties between ready units keep declaration order
        while sorter.is_active():
            ready = sorted(sorter.get_ready(), key=declared.index)
            order.extend(ready)
            sorter.done(*ready)
        self._order = order

    def __contains__(self, name: str) -> bool:
        return name in self._units

    def __len__(self) -> int:
        return len(self._units)

    def unit(self, name: str) -> DeploymentUnit:
        try:
            return self._units[name]
        except KeyError:
            raise ConfigurationFailure(f"Unknown deployment unit {name}") from None

    def predecessors(self, name: str) -> Tuple[str, ...]:
        """Get the units that must be provisioned before the named one"""
        return self.unit(name).depends_on

    def provisioning_order(self) -> List[DeploymentUnit]:
        """Get units in the order they must be created or updated"""
        return [self._units[name] for name in self._order]

    def teardown_order(self) -> List[DeploymentUnit]:
        """Get units in the order they must be destroyed"""
        return list(reversed(self.provisioning_order()))

    def subset(self, names: Iterable[str]) -> "DeploymentPlan":
        """
        Restrict the plan to the named units.

        Dependencies on units outside the subset are dropped; the caller is
        responsible for supplying what those units would have produced.
        """
        keep = set(names)
        for name in keep:
            self.unit(name)
        return DeploymentPlan(
            DeploymentUnit(
                name=unit.name,
                description=unit.description,
                depends_on=tuple(dep for dep in unit.depends_on if dep in keep),
                outputs=unit.outputs
            )
            for unit in self._units.values()
            if unit.name in keep
        )


UDR_PLAN = DeploymentPlan([
    DeploymentUnit(
        name=GATEWAY,
        description="Bedrock Access Gateway for OpenAI compatibility",
        outputs=("GatewayURL",)
    ),
    DeploymentUnit(
        name=BACKEND,
        description="Universal Deep Research Backend (FastAPI + ECS)",
        depends_on=(GATEWAY,),
        outputs=("BackendURL", "BackendALBArn")
    ),
    DeploymentUnit(
        name=FRONTEND,
        description="Universal Deep Research Frontend (Next.js + Amplify)",
        depends_on=(BACKEND,),
        outputs=("FrontendURL", "AmplifyAppId", "AmplifyAppName")
    ),
])

FRONTEND_ONLY_PLAN = UDR_PLAN.subset([FRONTEND])


@dataclass
class DeployedStacks:
    """Stacks declared for one synthesis, keyed by unit name"""
    plan: DeploymentPlan
    stacks: Dict[str, cdk.Stack]

    @property
    def gateway(self) -> Optional[BedrockGatewayStack]:
        return self.stacks.get(GATEWAY)

    @property
    def backend(self) -> Optional[UDRBackendStack]:
        return self.stacks.get(BACKEND)

    @property
    def frontend(self) -> Optional[UDRFrontendStack]:
        return self.stacks.get(FRONTEND)


def _wire_dependencies(plan: DeploymentPlan, stacks: Dict[str, cdk.Stack]) -> None:
    for unit in plan.provisioning_order():
        for predecessor in unit.depends_on:
            stacks[unit.name].add_dependency(stacks[predecessor])


def build_stacks(
    app: cdk.App,
    config: UdrConfig,
    context: DeploymentContext
) -> DeployedStacks:
    """
    Declare the gateway, backend and frontend stacks in dependency order.

    Each stack receives its predecessor's EndpointReference as a constructor
    argument. The frontend source is resolved first, so a partial repository
    configuration fails before any stack exists.

    Args:
        app: CDK app to declare the stacks in
        config: Unit configuration
        context: Deployment parameters

    Returns:
        The declared stacks

    Raises:
        ConfigurationFailure: repository and credential were not supplied together
    """
    source = context.frontend_source()
    env = context.environment
    stacks: Dict[str, cdk.Stack] = {}
    endpoints: Dict[str, EndpointReference] = {}

    for unit in UDR_PLAN.provisioning_order():
        logger.info("Declaring %s", unit.name)
        if unit.name == GATEWAY:
            stack = BedrockGatewayStack(
                app, unit.name,
                config=config.gateway,
                env=env,
                description=unit.description
            )
        elif unit.name == BACKEND:
            stack = UDRBackendStack(
                app, unit.name,
                gateway=endpoints[GATEWAY],
                config=config.backend,
                env=env,
                description=unit.description
            )
        else:
            stack = UDRFrontendStack(
                app, unit.name,
                source=source,
                config=config.frontend,
                backend=endpoints[BACKEND],
                env=env,
                description=unit.description
            )
        stacks[unit.name] = stack
        endpoints[unit.name] = stack.endpoint

    _wire_dependencies(UDR_PLAN, stacks)
    return DeployedStacks(plan=UDR_PLAN, stacks=stacks)


def build_frontend_only(
    app: cdk.App,
    config: UdrConfig,
    context: DeploymentContext
) -> DeployedStacks:
    """
    Declare only the frontend stack.

    The backend URL comes from the `backend_url` parameter; without it the
    frontend is built in dry-run mode.
    """
    source = context.frontend_source()
    backend = None
    if context.backend_url:
        backend = EndpointReference(BACKEND, context.backend_url)
    else:
        logger.warning("No backend_url given; %s will build in dry-run mode", FRONTEND)

    unit = FRONTEND_ONLY_PLAN.unit(FRONTEND)
    logger.info("Declaring %s", unit.name)
    stack = UDRFrontendStack(
        app, unit.name,
        source=source,
        config=config.frontend,
        backend=backend,
        env=context.environment,
        description=unit.description
    )
    return DeployedStacks(plan=FRONTEND_ONLY_PLAN, stacks={FRONTEND: stack})


def plan_for(context: DeploymentContext) -> DeploymentPlan:
    """Get the plan a deployment with these parameters would use"""
    return FRONTEND_ONLY_PLAN if context.frontend_only else UDR_PLAN
