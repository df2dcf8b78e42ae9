import boto3
import pytest
from moto import mock_aws

from services.parameter_store import (ParameterStoreConfig, env_var_name,
                                      get_parameter)
from utils.exceptions import ConfigError


@pytest.fixture
def ssm():
    with mock_aws():
        yield boto3.client("ssm")


def test_env_var_name():
    assert env_var_name("/price-tracker/jwt-secret") == "PRICE_TRACKER_JWT_SECRET"
    assert env_var_name("/price-tracker/db-pool-size") == "PRICE_TRACKER_DB_POOL_SIZE"


def test_parameter_read_from_ssm(ssm):
    ssm.put_parameter(
        Name="/price-tracker/jwt-secret", Value="from-ssm", Type="SecureString"
    )

    assert ParameterStoreConfig().get("jwt-secret") == "from-ssm"


def test_environment_overrides_ssm(ssm, monkeypatch):
    ssm.put_parameter(Name="/price-tracker/table-name", Value="FromSsm", Type="String")
    monkeypatch.setenv("PRICE_TRACKER_TABLE_NAME", "FromEnv")

    assert get_parameter("/price-tracker/table-name") == "FromEnv"


def test_missing_parameter_uses_default(ssm):
    config = ParameterStoreConfig()

    assert config.get("storage-backend") is None
    assert ParameterStoreConfig().get("storage-backend", "dynamodb") == "dynamodb"


def test_get_required_raises(ssm):
    with pytest.raises(ConfigError):
        ParameterStoreConfig().get_required("jwt-secret")


def test_get_int(monkeypatch, ssm):
    monkeypatch.setenv("PRICE_TRACKER_DB_POOL_SIZE", "7")
    monkeypatch.setenv("PRICE_TRACKER_DB_MAX_OVERFLOW", "many")
    config = ParameterStoreConfig()

    assert config.get_int("db-pool-size", 5) == 7
    with pytest.raises(ConfigError):
        config.get_int("db-max-overflow", 10)


def test_storage_config_defaults_to_dynamodb(ssm):
    assert ParameterStoreConfig().load_storage_config() == {
        "backend": "dynamodb",
        "table_name": "UserProducts",
    }


def test_storage_config_for_sql(ssm, monkeypatch):
    monkeypatch.setenv("PRICE_TRACKER_STORAGE_BACKEND", "SQL")
    monkeypatch.setenv("PRICE_TRACKER_DATABASE_URL", "sqlite://")

    assert ParameterStoreConfig().load_storage_config() == {
        "backend": "sql",
        "database_url": "sqlite://",
        "pool_size": 5,
        "max_overflow": 10,
    }


def test_storage_config_sql_requires_url(ssm, monkeypatch):
    monkeypatch.setenv("PRICE_TRACKER_STORAGE_BACKEND", "sql")

    with pytest.raises(ConfigError):
        ParameterStoreConfig().load_storage_config()


def test_storage_config_unknown_backend(ssm, monkeypatch):
    monkeypatch.setenv("PRICE_TRACKER_STORAGE_BACKEND", "mongo")

    with pytest.raises(ConfigError):
        ParameterStoreConfig().load_storage_config()
