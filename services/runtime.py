"""
Process-wide clients shared across warm Lambda invocations.

Each client is built once, on first use, from services.parameter_store
configuration. Nothing here is mutated per request.
"""

import atexit
from typing import Optional

from services.notifications import SmsSandboxNotifier
from services.parameter_store import config
from services.secrets import get_signing_secrets
from services.store import RecordStore
from services.tokens import SessionTokenService
from utils.logging import setup_logger

logger = setup_logger(__name__)

_token_service: Optional[SessionTokenService] = None
_store: Optional[RecordStore] = None
_notifier: Optional[SmsSandboxNotifier] = None


def _build_token_service() -> SessionTokenService:
    secret_id = config.get("jwt-secret-id")
    if secret_id:
        secrets = get_signing_secrets(secret_id)
        logger.info(
            "Loaded signing secrets from Secrets Manager",
            extra={"secret_versions": len(secrets)},
        )
        return SessionTokenService(secrets[0], previous_secrets=secrets[1:])

    return SessionTokenService(config.get_required("jwt-secret"))


def _build_store() -> RecordStore:
    storage = config.load_storage_config()

    if storage["backend"] == "sql":
        from services.sql import SqlRecordStore, create_database_engine

        engine = create_database_engine(
            storage["database_url"],
            pool_size=storage["pool_size"],
            max_overflow=storage["max_overflow"],
        )
        store = SqlRecordStore(engine)
        store.create_schema()
        return store

    from services.dynamodb import UserProductsTable

    return UserProductsTable(storage["table_name"])


def get_token_service() -> SessionTokenService:
    global _token_service
    if _token_service is None:
        _token_service = _build_token_service()
    return _token_service


def get_store() -> RecordStore:
    global _store
    if _store is None:
        _store = _build_store()
        logger.info("Storage backend initialized", extra={"backend": _store.backend})
    return _store


def get_notifier() -> SmsSandboxNotifier:
    global _notifier
    if _notifier is None:
        _notifier = SmsSandboxNotifier()
    return _notifier


def configure(
    token_service: Optional[SessionTokenService] = None,
    store: Optional[RecordStore] = None,
    notifier: Optional[SmsSandboxNotifier] = None,
) -> None:
    """Install pre-built clients, e.g. at startup or from tests."""
    global _token_service, _store, _notifier
    if token_service is not None:
        _token_service = token_service
    if store is not None:
        _store = store
    if notifier is not None:
        _notifier = notifier


def shutdown() -> None:
    """Close the store (draining any connection pool) and forget all clients."""
    global _token_service, _store, _notifier
    if _store is not None:
        _store.close()
        logger.info("Storage backend closed", extra={"backend": _store.backend})
    _token_service = None
    _store = None
    _notifier = None


atexit.register(shutdown)
