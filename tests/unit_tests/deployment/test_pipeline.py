import subprocess
import sys

import pytest

from deployment.pipeline.config import DeploySettings
from deployment.pipeline.errors import PipelineError
from deployment.pipeline.runner import (
    Pipeline,
    Stage,
    StageStatus,
    build_default_pipeline,
    command_stage,
)
from tests.consts import TEST_APP_DIR, TEST_PRIVATE_KEY, TEST_PROCESS_NAME, TEST_REPO_URL
from tests.fixtures.remote_fixtures import FakeServer, FakeSSHRunner


def recording_pipeline(calls, fail_on=None):
    def step(name):
        def action():
            calls.append(name)
            if name == fail_on:
                raise subprocess.CalledProcessError(1, [name])
        return action

    return Pipeline([
        Stage("install", step("install")),
        Stage("test", step("test")),
        Stage("deploy", step("deploy"), branches=["main"]),
    ])


def test_stages_run_in_order_on_main():
    calls = []

    result = recording_pipeline(calls).run("main")

    assert calls == ["install", "test", "deploy"]
    assert result.succeeded
    assert [stage.status for stage in result.stages] == [StageStatus.COMPLETED] * 3
    assert all(stage.duration_seconds is not None for stage in result.stages)


def test_deploy_skipped_off_main():
    calls = []

    result = recording_pipeline(calls).run("feature/new-form")

    assert calls == ["install", "test"]
    assert result.succeeded
    assert result.status_of("deploy") is StageStatus.SKIPPED


def test_failed_test_blocks_deploy():
    calls = []

    result = recording_pipeline(calls, fail_on="test").run("main")

    assert calls == ["install", "test"]
    assert not result.succeeded
    assert result.status_of("test") is StageStatus.FAILED
    assert result.status_of("deploy") is StageStatus.SKIPPED


def test_failed_install_aborts_everything_after_it():
    calls = []

    result = recording_pipeline(calls, fail_on="install").run("main")

    assert calls == ["install"]
    assert result.status_of("test") is StageStatus.SKIPPED
    assert result.status_of("deploy") is StageStatus.SKIPPED
    assert "returned non-zero exit status 1" in result.stages[0].error_message


def test_raise_on_failure():
    with pytest.raises(PipelineError) as excinfo:
        recording_pipeline([], fail_on="test").run("main", raise_on_failure=True)

    assert excinfo.value.stage == "test"


def test_command_stage_runs_each_command_with_check():
    calls = []

    def runner(argv, **kwargs):
        calls.append((argv, kwargs))
        return subprocess.CompletedProcess(argv, 0)

    stage = command_stage("install", [["pip", "install", "."], ["pytest"]], runner=runner, cwd="/src")
    stage.action()

    assert calls == [
        (["pip", "install", "."], {"cwd": "/src", "check": True}),
        (["pytest"], {"cwd": "/src", "check": True}),
    ]


@pytest.fixture
def deploy_settings():
    return DeploySettings(
        host="203.0.113.10",
        user="ubuntu",
        private_key=TEST_PRIVATE_KEY,
        app_dir=TEST_APP_DIR,
        repo_url=TEST_REPO_URL,
        process_name=TEST_PROCESS_NAME,
    )


def test_default_pipeline_deploys_on_main(deploy_settings):
    server = FakeServer()
    runner = FakeSSHRunner(server)

    result = build_default_pipeline(deploy_settings, runner=runner).run("main")

    assert result.succeeded
    assert runner.local_commands == [
        [sys.executable, "-m", "pip", "install", "-e", ".[test]"],
        [sys.executable, "-m", "pytest"],
    ]
    assert server.processes == [TEST_PROCESS_NAME]
    assert server.saves == 1


def test_default_pipeline_twice_restarts_once_installed(deploy_settings):
    server = FakeServer()
    pipeline = build_default_pipeline(deploy_settings, runner=FakeSSHRunner(server))

    pipeline.run("main")
    pipeline.run("main")

    assert server.count("npm install -g pm2") == 1
    assert server.processes == [TEST_PROCESS_NAME]
    assert server.restarts == [TEST_PROCESS_NAME]


def test_default_pipeline_without_credentials_fails_deploy():
    settings = DeploySettings(host=None, private_key=None)
    server = FakeServer()

    result = build_default_pipeline(settings, runner=FakeSSHRunner(server)).run("main")

    assert not result.succeeded
    assert result.status_of("deploy") is StageStatus.FAILED
    assert server.commands == []
