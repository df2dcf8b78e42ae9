from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from services.secrets import get_secret, get_signing_secrets


@pytest.fixture
def secretsmanager():
    with mock_aws():
        yield boto3.client("secretsmanager")


def test_get_secret(secretsmanager):
    secretsmanager.create_secret(Name="jwt", SecretString="current")

    assert get_secret("jwt", client=secretsmanager) == "current"


def test_signing_secrets_after_rotation(secretsmanager):
    secretsmanager.create_secret(Name="jwt", SecretString="old")
    secretsmanager.put_secret_value(SecretId="jwt", SecretString="new")

    assert get_signing_secrets("jwt", client=secretsmanager) == ["new", "old"]


def _client_error(code):
    return ClientError({"Error": {"Code": code, "Message": code}}, "GetSecretValue")


def test_signing_secrets_without_previous_version():
    client = MagicMock()
    client.get_secret_value.side_effect = [
        {"SecretString": "current"},
        _client_error("ResourceNotFoundException"),
    ]

    assert get_signing_secrets("jwt", client=client) == ["current"]


def test_signing_secrets_other_errors_propagate():
    client = MagicMock()
    client.get_secret_value.side_effect = [
        {"SecretString": "current"},
        _client_error("AccessDeniedException"),
    ]

    with pytest.raises(ClientError):
        get_signing_secrets("jwt", client=client)


def test_missing_current_secret_is_fatal(secretsmanager):
    with pytest.raises(ClientError):
        get_signing_secrets("does-not-exist", client=secretsmanager)
