import pytest
from pydantic import ValidationError

from deployment.pipeline.config import DeploySettings
from tasklist_api.config.settings import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in [
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_ENDPOINT_URL",
        "DEPLOYMENT_MODE",
        "DEPLOY_HOST",
        "DEPLOY_PRIVATE_KEY",
        "DEPLOY_BRANCH",
        "DEPLOY_BRANCH_NAME",
        "GITHUB_REF_NAME",
    ]:
        monkeypatch.delenv(name, raising=False)


def test_legacy_deployment_mode_is_normalized(clean_env):
    assert Settings(deployment_mode="cloud").deployment_mode == "aws-prod"
    assert Settings(deployment_mode="local-mock").deployment_mode == "local-dev"


def test_invalid_deployment_mode_is_rejected(clean_env):
    with pytest.raises(ValidationError):
        Settings(deployment_mode="staging")


def test_local_modes_get_mock_credentials(clean_env):
    settings = Settings(deployment_mode="local-dev")

    assert settings.aws_access_key_id == "mock"
    assert settings.aws_secret_access_key == "mock"
    assert settings.aws_endpoint_url is None


def test_mock_mode_defaults_endpoint(clean_env):
    assert Settings(deployment_mode="aws-mock").aws_endpoint_url == "http://localhost:5000"


def test_prod_mode_leaves_credentials_to_boto(clean_env):
    settings = Settings(deployment_mode="aws-prod")

    assert settings.aws_access_key_id is None


def test_settings_read_from_environment(clean_env, monkeypatch):
    monkeypatch.setenv("DEPLOYMENT_MODE", "aws-mock")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings()

    assert settings.deployment_mode == "aws-mock"
    assert settings.port == 8080
    assert settings.log_level == "DEBUG"


def test_deploy_settings_from_environment(clean_env, monkeypatch):
    monkeypatch.setenv("DEPLOY_HOST", "203.0.113.10")
    monkeypatch.setenv("DEPLOY_PRIVATE_KEY", "key material")
    monkeypatch.setenv("GITHUB_REF_NAME", "main")

    settings = DeploySettings()

    assert settings.host == "203.0.113.10"
    assert settings.private_key.get_secret_value() == "key material"
    assert "key material" not in repr(settings)
    assert settings.branch == "main"
    assert settings.user == "ubuntu"


def test_deploy_settings_require_credentials(clean_env):
    with pytest.raises(ValueError, match="DEPLOY_HOST, DEPLOY_PRIVATE_KEY"):
        DeploySettings().require_credentials()


def test_deploy_branch_from_environment(clean_env, monkeypatch):
    monkeypatch.setenv("DEPLOY_BRANCH", "release")

    assert DeploySettings().deploy_branch == "release"
    assert DeploySettings(deploy_branch="production").deploy_branch == "production"


def test_deploy_branch_defaults_to_main(clean_env):
    assert DeploySettings().deploy_branch == "main"
