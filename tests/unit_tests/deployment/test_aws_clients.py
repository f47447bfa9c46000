import pytest

from deployment.aws.utils.aws_clients import AWSClientManager, get_ec2_client, get_s3_client
from tasklist_api.config.settings import get_settings


@pytest.fixture
def fresh_manager(mocked_aws, monkeypatch):
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    get_settings.cache_clear()
    monkeypatch.setattr(AWSClientManager, "_instance", None)
    monkeypatch.setattr(AWSClientManager, "_clients", {})
    yield
    get_settings.cache_clear()


def test_manager_is_a_singleton(fresh_manager):
    assert AWSClientManager() is AWSClientManager()


def test_clients_are_cached_per_service_and_region(fresh_manager):
    first = get_ec2_client()
    again = get_ec2_client()
    other_region = get_ec2_client("eu-west-1")

    assert first is again
    assert other_region is not first
    assert other_region.meta.region_name == "eu-west-1"
    assert get_s3_client() is not first
    region = get_settings().aws_region
    assert set(AWSClientManager._clients) == {
        ("ec2", region),
        ("ec2", "eu-west-1"),
        ("s3", region),
    }


def test_default_region_comes_from_settings(fresh_manager):
    assert get_ec2_client().meta.region_name == get_settings().aws_region
