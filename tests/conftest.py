"""Shared fixtures: mocked AWS, both storage backends and handler events."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws
from sqlalchemy.orm import Session

from models.sql import ProductModel
from services import dynamodb as dynamodb_service
from services import parameter_store, runtime
from services.dynamodb import UserProductsTable
from services.notifications import SmsSandboxNotifier
from services.sql import SqlRecordStore, create_database_engine
from services.tokens import SessionTokenService

REGION = "us-east-1"
TABLE_NAME = "UserProducts"
JWT_SECRET = "test-signing-secret-0123456789abcdef0123456789abcdef0123456789ab"
OTHER_SECRET = "another-signing-secret-fedcba9876543210fedcba9876543210fedcba98"


@pytest.fixture(autouse=True)
def aws_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set minimal AWS env vars required by boto3 and moto."""
    monkeypatch.setenv("AWS_REGION", REGION)
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    for name in (
        "PRICE_TRACKER_JWT_SECRET",
        "PRICE_TRACKER_JWT_SECRET_ID",
        "PRICE_TRACKER_STORAGE_BACKEND",
        "PRICE_TRACKER_TABLE_NAME",
        "PRICE_TRACKER_DATABASE_URL",
        "PRICE_TRACKER_DB_POOL_SIZE",
        "PRICE_TRACKER_DB_MAX_OVERFLOW",
        "TABLE_NAME",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def clean_process_state():
    """Every test starts without cached config or process-wide clients."""
    parameter_store.clear_cache()
    parameter_store._ssm_client = None
    runtime.shutdown()
    dynamodb_service.reset_dynamodb_resource()
    yield
    runtime.shutdown()
    dynamodb_service.reset_dynamodb_resource()
    parameter_store.clear_cache()
    parameter_store._ssm_client = None


def create_products_table(dynamodb: Any, table_name: str = TABLE_NAME) -> Any:
    return dynamodb.create_table(
        TableName=table_name,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "PK", "AttributeType": "S"},
            {"AttributeName": "SK", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )


@pytest.fixture
def dynamodb_store():
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name=REGION)
        create_products_table(dynamodb)
        yield UserProductsTable(TABLE_NAME, dynamodb_resource=dynamodb)


@pytest.fixture
def sql_store():
    store = SqlRecordStore(create_database_engine("sqlite://"))
    store.create_schema()
    yield store
    store.close()


@pytest.fixture(params=["dynamodb", "sql"])
def store(request: pytest.FixtureRequest):
    """Runs the test once against each storage backend."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def token_service() -> SessionTokenService:
    return SessionTokenService(JWT_SECRET)


@pytest.fixture
def sns_client() -> MagicMock:
    """A MagicMock standing in for a boto3 SNS client."""
    return MagicMock()


@pytest.fixture
def app(store, token_service, sns_client):
    """Install process-wide clients the handlers resolve through services.runtime."""
    runtime.configure(
        token_service=token_service,
        store=store,
        notifier=SmsSandboxNotifier(sns_client=sns_client),
    )
    return store


class FakeLambdaContext:
    function_name = "price-tracker-test"
    aws_request_id = "req-0001"

    def get_remaining_time_in_millis(self) -> int:
        return 30_000


@pytest.fixture
def context() -> FakeLambdaContext:
    return FakeLambdaContext()


def make_event(
    body: Any = None,
    token: str | None = None,
    path_params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    event_headers = dict(headers or {})
    if token is not None:
        event_headers["Authorization"] = f"Bearer {token}"
    event: dict[str, Any] = {
        "headers": event_headers,
        "requestContext": {"http": {"method": "POST", "sourceIp": "127.0.0.1"}},
        "rawPath": "/",
        "pathParameters": path_params,
        "body": json.dumps(body) if body is not None and not isinstance(body, str) else body,
    }
    return event


def response_body(response: dict[str, Any]) -> dict[str, Any]:
    return json.loads(response["body"])


def put_legacy_product(
    store: Any, owner: str, product_id: str, price: Any, previous_price: Any = None
) -> None:
    """Write a product row directly, bypassing validation, as older clients could."""
    if store.backend == "dynamodb":
        item = {
            "PK": f"USER#{owner}",
            "SK": f"PRODUCT#{product_id}",
            "productId": product_id,
            "name": "Legacy",
            "url": "http://legacy",
            "vendor": "Old",
            "price": price,
        }
        if previous_price is not None:
            item["previousPrice"] = previous_price
        store.table.put_item(Item=item)
        return

    with Session(store.engine) as session, session.begin():
        session.add(
            ProductModel(
                owner_email=owner,
                product_id=product_id,
                name="Legacy",
                url="http://legacy",
                vendor="Old",
                price=price,
                previous_price=previous_price,
            )
        )
