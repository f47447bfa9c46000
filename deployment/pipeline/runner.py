"""
Linear install -> test -> deploy pipeline.

Stages run strictly in order. The first failure marks every later stage as
skipped; a stage limited to other branches is skipped without failing the run.
"""
import logging
import subprocess
import sys
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

from deployment.pipeline.config import DeploySettings
from deployment.pipeline.errors import PipelineError
from deployment.pipeline.reconcile import Action, DeploymentReconciler, DesiredState
from deployment.pipeline.remote import SSHRemoteShell, private_key_file

logger = logging.getLogger(__name__)


class StageStatus(Enum):
    """Outcome of a single stage."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class Stage:
    name: str
    action: Callable[[], None]
    branches: Optional[Sequence[str]] = None

    def runs_on(self, branch: Optional[str]) -> bool:
        return self.branches is None or branch in self.branches


@dataclass
class StageResult:
    name: str
    status: StageStatus = StageStatus.PENDING
    duration_seconds: Optional[float] = None
    error_message: Optional[str] = None


@dataclass
class PipelineResult:
    branch: Optional[str]
    stages: List[StageResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(stage.status is not StageStatus.FAILED for stage in self.stages)

    def status_of(self, name: str) -> StageStatus:
        for stage in self.stages:
            if stage.name == name:
                return stage.status
        raise KeyError(name)


def command_stage(
    name: str,
    commands: Sequence[Sequence[str]],
    runner=subprocess.run,
    cwd: Optional[str] = None,
    branches: Optional[Sequence[str]] = None,
) -> Stage:
    """Build a stage that runs each argv in turn; any non-zero exit fails it."""
    def run_commands():
        for command in commands:
            logger.info(f"[{name}] $ {' '.join(command)}")
            runner(list(command), cwd=cwd, check=True)

    return Stage(name=name, action=run_commands, branches=branches)


class Pipeline:
    def __init__(self, stages: Sequence[Stage]):
        self.stages = list(stages)

    def run(self, branch: Optional[str], raise_on_failure: bool = False) -> PipelineResult:
        result = PipelineResult(branch=branch, stages=[StageResult(stage.name) for stage in self.stages])
        failure: Optional[PipelineError] = None

        for stage, stage_result in zip(self.stages, result.stages):
            if failure is not None:
                stage_result.status = StageStatus.SKIPPED
                logger.info(f"Skipping {stage.name}: an earlier stage failed")
                continue
            if not stage.runs_on(branch):
                stage_result.status = StageStatus.SKIPPED
                logger.info(f"Skipping {stage.name}: only runs on {list(stage.branches)}, not {branch}")
                continue

            logger.info(f"Running stage: {stage.name}")
            started_at = time.time()
            try:
                stage.action()
            except Exception as e:
                stage_result.status = StageStatus.FAILED
                stage_result.error_message = str(e)
                failure = PipelineError(stage.name, e)
                logger.error(f"❌ Stage {stage.name} failed: {e}")
            else:
                stage_result.status = StageStatus.COMPLETED
                logger.info(f"✅ Stage {stage.name} completed")
            finally:
                stage_result.duration_seconds = time.time() - started_at

        if failure is not None and raise_on_failure:
            raise failure
        return result


def deploy_over_ssh(settings: DeploySettings, runner=subprocess.run) -> List[Action]:
    """Log into the server with the configured key and reconcile it."""
    settings.require_credentials()
    with private_key_file(settings.private_key.get_secret_value()) as key_path:
        shell = SSHRemoteShell(settings.host, settings.user, key_path, port=settings.port, runner=runner)
        reconciler = DeploymentReconciler(shell, DesiredState.from_settings(settings))
        return reconciler.reconcile()


def build_default_pipeline(
    settings: DeploySettings,
    project_dir: str = ".",
    runner=subprocess.run,
) -> Pipeline:
    """install -> test -> deploy, with deploy limited to the deploy branch."""
    return Pipeline([
        command_stage(
            "install",
            [[sys.executable, "-m", "pip", "install", "-e", ".[test]"]],
            runner=runner,
            cwd=project_dir,
        ),
        command_stage(
            "test",
            [[sys.executable, "-m", "pytest"]],
            runner=runner,
            cwd=project_dir,
        ),
        Stage(
            name="deploy",
            action=lambda: deploy_over_ssh(settings, runner=runner),
            branches=[settings.deploy_branch],
        ),
    ])
