import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from tasklist_api.config.settings import Settings
from tasklist_api.main import create_app
from tasklist_api.store import TaskStore
from deployment.pipeline.reconcile import DesiredState
from tests.consts import TEST_APP_DIR, TEST_PROCESS_NAME, TEST_REGION, TEST_REPO_URL
from tests.fixtures.remote_fixtures import FakeServer


@pytest.fixture
def aws_credentials(monkeypatch):
    """Point boto3 at fake credentials so nothing can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)


@pytest.fixture
def mocked_aws(aws_credentials):
    with mock_aws():
        yield


@pytest.fixture
def store() -> TaskStore:
    return TaskStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(app_name="tasklist-test", deployment_mode="local-dev")


@pytest.fixture
def client(settings: Settings, store: TaskStore):
    with TestClient(create_app(settings=settings, store=store)) as test_client:
        yield test_client


@pytest.fixture
def desired_state() -> DesiredState:
    return DesiredState(
        app_dir=TEST_APP_DIR,
        repo_url=TEST_REPO_URL,
        process_name=TEST_PROCESS_NAME,
        start_command=".venv/bin/python -m tasklist_api.cli serve",
    )


@pytest.fixture
def fake_server() -> FakeServer:
    return FakeServer()
