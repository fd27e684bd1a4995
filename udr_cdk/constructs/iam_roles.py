"""IAM roles construct for ECS tasks and Amplify hosting"""
from typing import List, Optional
from aws_cdk import aws_iam as iam
from constructs import Construct


ECS_TASKS_PRINCIPAL = "ecs-tasks.amazonaws.com"
AMPLIFY_PRINCIPAL = "amplify.amazonaws.com"
TASK_EXECUTION_POLICY = "service-role/AmazonECSTaskExecutionRolePolicy"


class TaskRolesConstruct(Construct):
    """
    Construct for the pair of roles an ECS task needs.

    The task role is what the application code runs as; the execution role
    is what ECS uses to pull the image, ship logs and resolve secrets.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        managed_policies: Optional[List[str]] = None,
        task_role_name: Optional[str] = None,
        execution_role_name: Optional[str] = None
    ) -> None:
        """
        Initialize the task roles construct.

        Args:
            scope: Parent construct
            construct_id: Unique identifier for this construct
            managed_policies: AWS managed policy names attached to the task role
            task_role_name: Optional physical name for the task role
            execution_role_name: Optional physical name for the execution role
        """
        super().__init__(scope, construct_id)

        self._task_role = iam.Role(
            self, "TaskRole",
            role_name=task_role_name,
            assumed_by=iam.ServicePrincipal(ECS_TASKS_PRINCIPAL),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(name)
                for name in (managed_policies or [])
            ]
        )

        self._execution_role = iam.Role(
            self, "ExecutionRole",
            role_name=execution_role_name,
            assumed_by=iam.ServicePrincipal(ECS_TASKS_PRINCIPAL),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(TASK_EXECUTION_POLICY)
            ]
        )

    @property
    def task_role(self) -> iam.Role:
        """Get the role assumed by the running container"""
        return self._task_role

    @property
    def execution_role(self) -> iam.Role:
        """Get the role ECS uses to start the task"""
        return self._execution_role


def create_amplify_service_role(
    scope: Construct,
    construct_id: str,
    policy_name: str
) -> iam.Role:
    """Create the service role Amplify assumes while building and deploying"""
    return iam.Role(
        scope, construct_id,
        assumed_by=iam.ServicePrincipal(AMPLIFY_PRINCIPAL),
        managed_policies=[
            iam.ManagedPolicy.from_aws_managed_policy_name(policy_name)
        ]
    )
