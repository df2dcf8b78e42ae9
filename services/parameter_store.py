"""
AWS Systems Manager Parameter Store service.

This module provides secure parameter retrieval from AWS Parameter Store
with local development support using .env files and python-dotenv.
"""

import os
from functools import lru_cache
from typing import Any, Dict

import boto3
from botocore.exceptions import ClientError
from dotenv import load_dotenv

from utils.exceptions import ConfigError
from utils.logging import setup_logger

logger = setup_logger(__name__)

# Load .env file for local development
load_dotenv()

DEFAULT_PREFIX = "/price-tracker"

# Cache for Parameter Store client
_ssm_client = None


def get_ssm_client():
    """Get or create SSM client with caching."""
    global _ssm_client
    if _ssm_client is None:
        _ssm_client = boto3.client("ssm")
    return _ssm_client


def env_var_name(parameter_name: str) -> str:
    """Environment variable overriding a parameter, e.g. PRICE_TRACKER_JWT_SECRET."""
    return parameter_name.lstrip("/").replace("/", "_").replace("-", "_").upper()


@lru_cache(maxsize=128)
def get_parameter(parameter_name: str, decrypt: bool = True) -> str | None:
    """
    Get a parameter from AWS Parameter Store with caching.

    Environment variables win, so local development never touches AWS.

    Args:
        parameter_name: The name of the parameter to retrieve
        decrypt: Whether to decrypt SecureString parameters

    Returns:
        Parameter value or None if not found
    """
    local_value = os.getenv(env_var_name(parameter_name))

    if local_value:
        logger.debug(f"Using local environment variable for {parameter_name}")
        return local_value

    try:
        ssm = get_ssm_client()
        response = ssm.get_parameter(Name=parameter_name, WithDecryption=decrypt)
        value = response["Parameter"]["Value"]

        logger.debug(f"Retrieved parameter {parameter_name} from Parameter Store")
        return value

    except ClientError as e:
        error_code = e.response["Error"]["Code"]

        if error_code == "ParameterNotFound":
            logger.debug(f"Parameter {parameter_name} not found in Parameter Store")
            return None

        logger.error(f"Error retrieving parameter {parameter_name}: {error_code}")
        raise


class ParameterStoreConfig:
    """
    Configuration class that loads parameters from Parameter Store or environment.

    Provides a clean interface for accessing configuration values with automatic
    fallback and caching.
    """

    def __init__(self, parameter_prefix: str = DEFAULT_PREFIX):
        """
        Initialize configuration with parameter prefix.

        Args:
            parameter_prefix: Prefix for parameter names in Parameter Store
        """
        self.parameter_prefix = parameter_prefix.rstrip("/")
        self._config_cache: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key (will be prefixed with parameter_prefix)
            default: Default value if not found

        Returns:
            Configuration value or default
        """
        if key in self._config_cache:
            return self._config_cache[key]

        value = get_parameter(f"{self.parameter_prefix}/{key}")

        if value is None:
            value = default

        self._config_cache[key] = value
        return value

    def get_required(self, key: str) -> str:
        """
        Get a required configuration value.

        Raises:
            ConfigError: If parameter is not found
        """
        value = self.get(key)
        if value is None:
            raise ConfigError(
                f"Required parameter {self.parameter_prefix}/{key} not found"
            )
        return value

    def get_int(self, key: str, default: int) -> int:
        value = self.get(key, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigError(
                f"Parameter {self.parameter_prefix}/{key} must be an integer"
            ) from None

    def load_storage_config(self) -> Dict[str, Any]:
        """
        Load storage backend selection and its connection settings.

        Raises:
            ConfigError: If the backend is unknown or its settings are missing
        """
        backend = str(self.get("storage-backend", "dynamodb")).lower()

        if backend == "dynamodb":
            storage = {
                "backend": backend,
                "table_name": self.get(
                    "table-name", os.getenv("TABLE_NAME", "UserProducts")
                ),
            }
        elif backend == "sql":
            storage = {
                "backend": backend,
                "database_url": self.get_required("database-url"),
                "pool_size": self.get_int("db-pool-size", 5),
                "max_overflow": self.get_int("db-max-overflow", 10),
            }
        else:
            raise ConfigError(f"Unknown storage backend: {backend}")

        logger.info("Loaded storage configuration", extra={"backend": backend})
        return storage


# Global config instance
config = ParameterStoreConfig()


def clear_cache():
    """Clear parameter cache. Useful for testing or config updates."""
    get_parameter.cache_clear()
    config._config_cache.clear()
    logger.info("Parameter Store cache cleared")
