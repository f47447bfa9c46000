"""
Post-deploy reconciliation of the target server.

Compares what the server should look like after a deploy (checkout present,
process supervisor installed, app process registered and running, process
table saved) with what it actually looks like, then runs only the actions
that close the gap:

    supervisor:        absent -> install    present -> nothing
    managed process:   absent -> start      present -> restart
    checkout:          missing -> clone     repository -> pull
                       plain directory -> error

The first failing remote command aborts the remaining actions. Nothing is
retried or rolled back.
"""
import json
import logging
import shlex
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from deployment.pipeline.config import DeploySettings
from deployment.pipeline.errors import DeploymentError
from deployment.pipeline.remote import quote_remote_path
from tasklist_api.utils.decorators import log_execution_time

logger = logging.getLogger(__name__)


class CheckoutState(Enum):
    """State of the app directory on the server."""
    MISSING = "missing"
    REPOSITORY = "repository"
    NOT_A_REPOSITORY = "not_a_repository"


class Action(Enum):
    """Reconciliation actions, in the order they are applied."""
    CLONE = "clone"
    PULL = "pull"
    INSTALL_DEPENDENCIES = "install_dependencies"
    INSTALL_SUPERVISOR = "install_supervisor"
    START_PROCESS = "start_process"
    RESTART_PROCESS = "restart_process"
    SAVE_PROCESS_TABLE = "save_process_table"


@dataclass(frozen=True)
class DesiredState:
    app_dir: str
    repo_url: str
    process_name: str
    start_command: str

    @classmethod
    def from_settings(cls, settings: DeploySettings) -> "DesiredState":
        return cls(
            app_dir=settings.app_dir,
            repo_url=settings.repo_url,
            process_name=settings.process_name,
            start_command=settings.start_command,
        )


@dataclass(frozen=True)
class ObservedState:
    checkout: CheckoutState
    supervisor_installed: bool
    process_running: bool


def plan_actions(observed: ObservedState) -> List[Action]:
    """Return the ordered actions that bring the observed server to the desired state."""
    actions: List[Action] = []

    if observed.checkout is CheckoutState.MISSING:
        actions.append(Action.CLONE)
    elif observed.checkout is CheckoutState.REPOSITORY:
        actions.append(Action.PULL)
    else:
        raise DeploymentError(
            "App directory exists but is not a git checkout; refusing to deploy over it"
        )
    actions.append(Action.INSTALL_DEPENDENCIES)

    if not observed.supervisor_installed:
        actions.append(Action.INSTALL_SUPERVISOR)

    if observed.process_running:
        actions.append(Action.RESTART_PROCESS)
    else:
        actions.append(Action.START_PROCESS)

    actions.append(Action.SAVE_PROCESS_TABLE)
    return actions


class Pm2Supervisor:
    """pm2 driven through a remote shell."""

    INSTALL_COMMAND = "npm install -g pm2"

    def __init__(self, shell):
        self.shell = shell

    def is_installed(self) -> bool:
        return self.shell.run("command -v pm2", check=False).returncode == 0

    def managed_process_names(self) -> List[str]:
        result = self.shell.run("pm2 jlist")
        return [process.get("name") for process in _parse_process_list(result.stdout)]

    def is_managed(self, name: str) -> bool:
        return name in self.managed_process_names()

    def install(self) -> None:
        self.shell.run(self.INSTALL_COMMAND)

    def start(self, name: str, command: str, cwd: str) -> None:
        self.shell.run(
            f"pm2 start {shlex.quote(command)} --name {shlex.quote(name)} --cwd {quote_remote_path(cwd)}"
        )

    def restart(self, name: str) -> None:
        self.shell.run(f"pm2 restart {shlex.quote(name)} --update-env")

    def save(self) -> None:
        self.shell.run("pm2 save")


def _parse_process_list(output: str) -> list:
    """Parse `pm2 jlist` output, skipping any banner lines pm2 prints first."""
    output = (output or "").strip()
    if not output:
        return []
    try:
        return json.loads(output)
    except ValueError:
        pass
    for line in reversed(output.splitlines()):
        if line.startswith("["):
            try:
                return json.loads(line)
            except ValueError:
                break
    raise DeploymentError(f"Could not parse pm2 process list: {output[:200]}")


class DeploymentReconciler:
    """Observe the server, plan, and apply the difference."""

    def __init__(self, shell, desired: DesiredState, supervisor: Optional[Pm2Supervisor] = None):
        self.shell = shell
        self.desired = desired
        self.supervisor = supervisor or Pm2Supervisor(shell)

    def observe_checkout(self) -> CheckoutState:
        app_dir = quote_remote_path(self.desired.app_dir)
        if self.shell.run(f"test -d {app_dir}/.git", check=False).returncode == 0:
            return CheckoutState.REPOSITORY
        if self.shell.run(f"test -e {app_dir}", check=False).returncode == 0:
            return CheckoutState.NOT_A_REPOSITORY
        return CheckoutState.MISSING

    def observe(self) -> ObservedState:
        supervisor_installed = self.supervisor.is_installed()
        observed = ObservedState(
            checkout=self.observe_checkout(),
            supervisor_installed=supervisor_installed,
            # Without the supervisor there is nothing it could be running
            process_running=(
                supervisor_installed and self.supervisor.is_managed(self.desired.process_name)
            ),
        )
        logger.info(
            f"Observed: checkout={observed.checkout.value}, "
            f"supervisor_installed={observed.supervisor_installed}, "
            f"process_running={observed.process_running}"
        )
        return observed

    def plan(self, observed: Optional[ObservedState] = None) -> List[Action]:
        return plan_actions(observed or self.observe())

    def apply(self, actions: List[Action]) -> None:
        for action in actions:
            logger.info(f"Applying {action.value}")
            self._apply_one(action)

    def _apply_one(self, action: Action) -> None:
        desired = self.desired
        app_dir = quote_remote_path(desired.app_dir)

        if action is Action.CLONE:
            self.shell.run(f"git clone {shlex.quote(desired.repo_url)} {app_dir}")
        elif action is Action.PULL:
            self.shell.run(f"git -C {app_dir} pull --ff-only")
        elif action is Action.INSTALL_DEPENDENCIES:
            self.shell.run(
                f"cd {app_dir} && python3 -m venv .venv && .venv/bin/pip install --upgrade ."
            )
        elif action is Action.INSTALL_SUPERVISOR:
            self.supervisor.install()
        elif action is Action.START_PROCESS:
            self.supervisor.start(desired.process_name, desired.start_command, desired.app_dir)
        elif action is Action.RESTART_PROCESS:
            self.supervisor.restart(desired.process_name)
        elif action is Action.SAVE_PROCESS_TABLE:
            self.supervisor.save()

    @log_execution_time
    def reconcile(self) -> List[Action]:
        """Bring the server to the desired state and return the actions taken."""
        actions = self.plan()
        self.apply(actions)
        logger.info(f"Reconciled {self.desired.process_name}: {[a.value for a in actions]}")
        return actions
