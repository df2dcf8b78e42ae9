#!/usr/bin/env python3
"""
Upload environment variables to AWS Parameter Store.

This script reads the price tracker settings from a .env file and uploads
them to AWS Parameter Store, encrypting the signing secret and the
database URL.
"""

import os
import secrets
import sys
from pathlib import Path

import boto3
import click
from botocore.exceptions import ClientError
from dotenv import dotenv_values

# .env variable -> parameter key under the prefix
ENV_TO_PARAMETER = {
    "JWT_SECRET": "jwt-secret",
    "JWT_SECRET_ID": "jwt-secret-id",
    "STORAGE_BACKEND": "storage-backend",
    "TABLE_NAME": "table-name",
    "DATABASE_URL": "database-url",
    "DB_POOL_SIZE": "db-pool-size",
    "DB_MAX_OVERFLOW": "db-max-overflow",
}

SECURE_PARAMETERS = {"jwt-secret", "database-url"}


def load_env_file(env_file_path: str = ".env") -> dict:
    """
    Load price tracker settings from a .env file.

    Args:
        env_file_path: Path to .env file

    Returns:
        Dictionary of parameter keys to values
    """
    if not Path(env_file_path).exists():
        click.secho(f"Error: {env_file_path} file not found", fg="red", err=True)
        sys.exit(1)

    values = dotenv_values(env_file_path)

    parameters = {
        key: values[env_name]
        for env_name, key in ENV_TO_PARAMETER.items()
        if values.get(env_name)
    }

    if not parameters:
        click.secho("Warning: No price tracker settings found in .env file", fg="yellow")
        click.echo(f"Expected variables: {', '.join(ENV_TO_PARAMETER)}")

    return parameters


def parameter_type(param_name: str) -> str:
    """SecureString for the signing secret and connection string, String otherwise."""
    return "SecureString" if param_name in SECURE_PARAMETERS else "String"


def mask(param_name: str, value: str) -> str:
    """Nothing of a secure value is shown; plain values keep a short prefix."""
    if param_name in SECURE_PARAMETERS or len(value) <= 4:
        return "***"
    return value[:4] + "..."


def upload_parameters(
    parameters: dict, parameter_prefix: str = "/price-tracker", dry_run: bool = False
) -> int:
    """
    Upload parameters to AWS Parameter Store.

    Args:
        parameters: Dictionary of parameter names to values
        parameter_prefix: Prefix for parameter names
        dry_run: If True, only print what would be uploaded

    Returns:
        Number of parameters that failed to upload
    """
    if not parameters:
        click.secho("No parameters to upload", fg="yellow")
        return 0

    if dry_run:
        click.secho("DRY RUN - Would upload the following parameters:", fg="blue")
        for param_name, value in parameters.items():
            full_name = f"{parameter_prefix}/{param_name}"
            shown = mask(param_name, value)
            click.echo(f"  {full_name} ({parameter_type(param_name)}) = {shown}")
        return 0

    ssm = boto3.client("ssm")
    failures = 0

    for param_name, value in parameters.items():
        full_name = f"{parameter_prefix}/{param_name}"

        try:
            response = ssm.put_parameter(
                Name=full_name,
                Value=value,
                Type=parameter_type(param_name),
                Description=f"Price tracker parameter: {param_name}",
                Overwrite=True,
            )

            click.secho(
                f"Uploaded {full_name} (version {response['Version']})", fg="green"
            )

        except ClientError as e:
            failures += 1
            click.secho(
                f"Failed to upload {full_name}: {e.response['Error']['Code']}",
                fg="red",
                err=True,
            )

    return failures


def verify_parameters(
    parameters: dict, parameter_prefix: str = "/price-tracker"
) -> int:
    """
    Verify that parameters were uploaded correctly.

    Args:
        parameters: Dictionary of parameter names to check
        parameter_prefix: Prefix for parameter names

    Returns:
        Number of parameters that are missing or differ
    """
    click.secho("\nVerifying uploaded parameters...", fg="blue")
    ssm = boto3.client("ssm")
    problems = 0

    for param_name, expected in parameters.items():
        full_name = f"{parameter_prefix}/{param_name}"

        try:
            response = ssm.get_parameter(Name=full_name, WithDecryption=True)
        except ClientError as e:
            problems += 1
            if e.response["Error"]["Code"] == "ParameterNotFound":
                click.secho(f"{full_name} not found", fg="red")
            else:
                click.secho(f"Error checking {full_name}", fg="red")
            continue

        if response["Parameter"]["Value"] != expected:
            problems += 1
            click.secho(f"{full_name} does not match the .env value", fg="red")
        else:
            click.secho(
                f"{full_name} exists (version {response['Parameter']['Version']})",
                fg="green",
            )

    return problems


@click.command()
@click.option("--env-file", default=".env", help="Path to .env file", show_default=True)
@click.option(
    "--prefix",
    default="/price-tracker",
    help="Parameter Store prefix",
    show_default=True,
)
@click.option(
    "--generate-jwt-secret",
    is_flag=True,
    help="Upload a freshly generated JWT signing secret instead of JWT_SECRET",
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be uploaded without uploading"
)
@click.option("--verify", is_flag=True, help="Verify parameters after upload")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def main(
    env_file: str,
    prefix: str,
    generate_jwt_secret: bool,
    dry_run: bool,
    verify: bool,
    verbose: bool,
):
    """
    Upload price tracker settings from a .env file to AWS Parameter Store.

    The signing secret and database URL are stored as SecureString.
    """
    if verbose:
        click.secho(f"Loading settings from {os.path.abspath(env_file)}", fg="blue")

    parameters = load_env_file(env_file)

    if generate_jwt_secret:
        parameters["jwt-secret"] = secrets.token_urlsafe(48)
        click.secho("Generated a new JWT signing secret", fg="blue")

    if not parameters:
        click.secho("No parameters found to upload", fg="red", err=True)
        sys.exit(1)

    click.secho(f"Found {len(parameters)} parameters", fg="green")

    if verbose:
        click.secho("Parameters to process:", fg="blue")
        for param_name in parameters.keys():
            click.echo(f"  - {param_name}")

    failures = upload_parameters(parameters, prefix, dry_run)

    if not dry_run and verify:
        failures += verify_parameters(parameters, prefix)

    if failures:
        click.secho(f"\n{failures} parameter(s) failed", fg="red", err=True)
        sys.exit(1)

    if dry_run:
        click.secho("\nDry run complete.", fg="blue")
    else:
        click.secho("\nParameter upload complete!", fg="green")
        click.echo(f"Parameters are now available at prefix: {prefix}")


if __name__ == "__main__":
    main()
