"""Command-line wrapper around the CDK CLI for the UDR deployment units"""
import argparse
import logging
import subprocess
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from udr_cdk.config import DEFAULT_REGION, DeploymentContext
from udr_cdk.deployment import DeploymentPlan, plan_for
from udr_cdk.errors import ConfigurationFailure, ProvisioningFailure

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PROVISIONING_FAILURE = 1
EXIT_CONFIGURATION_FAILURE = 2

# Runs a command and returns its exit status
CommandRunner = Callable[[List[str], Path], int]


def run_command(command: List[str], cwd: Path) -> int:
    """Run a CDK CLI command, streaming its output to the terminal"""
    logger.debug("Running %s in %s", " ".join(command), cwd)
    try:
        return subprocess.run(command, cwd=cwd).returncode
    except FileNotFoundError:
        logger.error("cdk CLI not found. Install it with `npm install -g aws-cdk`.")
        return 127


class CdkDeployer:
    """
    Drives `cdk` one deployment unit at a time, in plan order.

    Deploys stop at the first failing unit and leave earlier units in place.
    Teardown walks the plan in reverse and stops at the first failure.
    """

    def __init__(
        self,
        context: DeploymentContext,
        app_dir: Path,
        runner: CommandRunner = run_command,
        cdk_command: Sequence[str] = ("cdk",)
    ) -> None:
        self._context = context
        self._plan: DeploymentPlan = plan_for(context)
        self._app_dir = app_dir
        self._runner = runner
        self._cdk = list(cdk_command)

    @property
    def plan(self) -> DeploymentPlan:
        return self._plan

    def _context_args(self) -> List[str]:
        args = []
        for key, value in self._context.to_cdk_context().items():
            args.extend(["-c", f"{key}={value}"])
        return args

    def _run(self, *args: str) -> int:
        command = self._cdk + list(args) + self._context_args()
        return self._runner(command, self._app_dir)

    def _all_stacks(self) -> List[str]:
        return [unit.name for unit in self._plan.provisioning_order()]

    def deploy(self) -> List[str]:
        """
        Deploy every unit in provisioning order.

        Returns:
            Names of the deployed units

        Raises:
            ConfigurationFailure: invalid repository parameters; nothing was run
            ProvisioningFailure: a unit failed; later units were not attempted
        """
        self._context.frontend_source()

        deployed = []
        for unit in self._plan.provisioning_order():
            logger.info("Deploying %s", unit.name)
            code = self._run(
                "deploy", unit.name,
                "--exclusively",
                "--require-approval", "never"
            )
            if code != 0:
                if deployed:
                    logger.warning("Leaving already deployed units in place: %s", ", ".join(deployed))
                raise ProvisioningFailure(unit.name, "deploy", code)
            deployed.append(unit.name)
        return deployed

    def destroy(self) -> List[str]:
        """
        Destroy every unit in reverse provisioning order.

        Returns:
            Names of the destroyed units

        Raises:
            ConfigurationFailure: invalid repository parameters; nothing was run
            ProvisioningFailure: a unit could not be destroyed; its
                predecessors were left in place
        """
        self._context.frontend_source()

        destroyed = []
        for unit in self._plan.teardown_order():
            logger.info("Destroying %s", unit.name)
            code = self._run("destroy", unit.name, "--exclusively", "--force")
            if code != 0:
                raise ProvisioningFailure(unit.name, "destroy", code)
            destroyed.append(unit.name)
        return destroyed

    def diff(self) -> int:
        """Show the difference between the declared and the deployed stacks"""
        self._context.frontend_source()
        return self._run("diff", *self._all_stacks())

    def synth(self) -> int:
        """Synthesize the CloudFormation templates without deploying"""
        self._context.frontend_source()
        return self._run("synth", *self._all_stacks())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="udr-deploy",
        description="Deploy the Universal Deep Research gateway, backend and frontend"
    )
    parser.add_argument("--account", help="Target AWS account id")
    parser.add_argument("--region", default=DEFAULT_REGION, help="Target AWS region")
    parser.add_argument(
        "--app-dir", type=Path, default=Path.cwd(),
        help="Directory containing cdk.json"
    )
    parser.add_argument(
        "--source-root",
        help="Directory the gateway and backend Docker build paths are relative to "
             "(defaults to the source_root in cdk.json)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    # Inputs that shape the synthesized app; shared by every command
    unit_options = argparse.ArgumentParser(add_help=False)
    unit_options.add_argument("--github-repo", help="Frontend repository as owner/name")
    unit_options.add_argument(
        "--github-token-secret",
        help="Secrets Manager name of the GitHub access token"
    )
    unit_options.add_argument(
        "--frontend-only", action="store_true",
        help="Act on the frontend unit only"
    )
    unit_options.add_argument(
        "--backend-url",
        help="Backend URL for --frontend-only runs"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "deploy", parents=[unit_options], help="Deploy all units in order"
    )
    subparsers.add_parser(
        "destroy", parents=[unit_options], help="Tear down all units in reverse order"
    )
    subparsers.add_parser(
        "diff", parents=[unit_options], help="Compare declared and deployed stacks"
    )
    subparsers.add_parser(
        "synth", parents=[unit_options], help="Synthesize templates without deploying"
    )

    return parser


def context_from_args(args: argparse.Namespace) -> DeploymentContext:
    return DeploymentContext(
        account=args.account,
        region=args.region,
        github_repo=args.github_repo,
        github_token_secret=args.github_token_secret,
        backend_url=args.backend_url,
        frontend_only=args.frontend_only,
        source_root=args.source_root
    )


def main(argv: Optional[Sequence[str]] = None, runner: CommandRunner = run_command) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    deployer = CdkDeployer(context_from_args(args), args.app_dir, runner=runner)

    try:
        if args.command == "deploy":
            deployer.deploy()
            return EXIT_OK
        if args.command == "destroy":
            deployer.destroy()
            return EXIT_OK
        if args.command == "diff":
            return EXIT_OK if deployer.diff() == 0 else EXIT_PROVISIONING_FAILURE
        return EXIT_OK if deployer.synth() == 0 else EXIT_PROVISIONING_FAILURE
    except ConfigurationFailure as e:
        logger.error("Invalid configuration: %s", e)
        return EXIT_CONFIGURATION_FAILURE
    except ProvisioningFailure as e:
        logger.error("%s", e)
        return EXIT_PROVISIONING_FAILURE


if __name__ == "__main__":
    sys.exit(main())
