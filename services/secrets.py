# Signing secret management with rotation support.
# The JWT secret can live in AWS Secrets Manager; both the current and the
# previous version are loaded so tokens survive a rotation.

import boto3
from botocore.exceptions import ClientError

from utils.logging import setup_logger

logger = setup_logger(__name__)


def get_secret(secret_id: str, version_stage: str = "AWSCURRENT", client=None) -> str:
    """
    Get secret from AWS Secrets Manager.

    Args:
        secret_id: Name or ARN of the secret
        version_stage: The version stage to retrieve (AWSCURRENT or AWSPREVIOUS)
        client: Optional Secrets Manager client

    Returns:
        The secret string value
    """
    client = client or boto3.client("secretsmanager")

    response = client.get_secret_value(SecretId=secret_id, VersionStage=version_stage)

    return response["SecretString"]


def get_signing_secrets(secret_id: str, client=None) -> list[str]:
    """
    Get all available secret versions for JWT signing and validation.

    The first entry is the current secret. A previous version, if there is
    one, follows it so tokens signed before a rotation keep verifying.
    """
    client = client or boto3.client("secretsmanager")

    # No current version is a hard failure.
    secrets = [get_secret(secret_id, "AWSCURRENT", client)]

    try:
        previous = get_secret(secret_id, "AWSPREVIOUS", client)
        if previous and previous not in secrets:
            secrets.append(previous)
    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceNotFoundException":
            raise
        logger.info(
            "No previous signing secret version", extra={"secret_id": secret_id}
        )

    return secrets
