"""End-to-end handler behaviour over both storage backends."""

import re
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from conftest import (OTHER_SECRET, make_event, put_legacy_product,
                      response_body)

from handlers import auth, products
from models.users import UserBase
from services import runtime
from services.tokens import SessionTokenService

REGISTRATION = {
    "email": "a@b.com",
    "password": "pw123",
    "phoneNumber": "+15551234567",
}
PRODUCT = {
    "name": "Widget",
    "url": "http://x",
    "vendor": "V",
    "price": "9.99",
    "previousPrice": "12.99",
}


def register(context, body=None):
    return auth.register(make_event(body or REGISTRATION), context)


def login_token(context, email="a@b.com", password="pw123"):
    response = auth.login(make_event({"email": email, "password": password}), context)
    assert response["statusCode"] == 200
    return response_body(response)["token"]


def add(context, token, body=None):
    return products.add_product(make_event(body or PRODUCT, token=token), context)


def listed(context, token):
    response = products.list_products(make_event(token=token), context)
    assert response["statusCode"] == 200
    return response_body(response)["products"]


def test_register_login_add_list_delete(app, context, sns_client, token_service):
    response = register(context)
    assert response["statusCode"] == 201
    body = response_body(response)
    assert body["message"] == "User registered successfully."
    assert token_service.verify(body["token"]) == "a@b.com"
    assert body["notificationRegistered"] is True
    sns_client.create_sms_sandbox_phone_number.assert_called_once_with(
        PhoneNumber="+15551234567"
    )

    token = login_token(context)

    response = add(context, token)
    assert response["statusCode"] == 201
    product_id = response_body(response)["productId"]
    assert re.fullmatch(r"[0-9a-f]{32}", product_id)

    assert listed(context, token) == [
        {
            "productId": product_id,
            "email": "a@b.com",
            "name": "Widget",
            "url": "http://x",
            "vendor": "V",
            "price": "9.99",
            "previousPrice": "12.99",
        }
    ]

    response = products.delete_product(
        make_event(token=token, path_params={"productId": product_id}), context
    )
    assert response["statusCode"] == 200
    assert response_body(response)["productId"] == product_id
    assert listed(context, token) == []


def test_register_stores_a_hash_not_the_password(app, context):
    register(context)

    stored = app.get_user("a@b.com")
    assert stored.hashed_password.startswith("pbkdf2:sha512:1000:")
    assert "pw123" not in stored.hashed_password


def test_register_without_phone_skips_notification(app, context, sns_client):
    response = register(context, {"email": "a@b.com", "password": "pw123"})

    assert response["statusCode"] == 201
    assert response_body(response)["notificationRegistered"] is None
    sns_client.create_sms_sandbox_phone_number.assert_not_called()


def test_notification_failure_keeps_user_registered(app, context, sns_client):
    sns_client.create_sms_sandbox_phone_number.side_effect = ClientError(
        {"Error": {"Code": "OptedOut", "Message": "no"}},
        "CreateSMSSandboxPhoneNumber",
    )

    response = register(context)

    assert response["statusCode"] == 201
    assert response_body(response)["notificationRegistered"] is False
    assert app.get_user("a@b.com") is not None
    login_token(context)


def test_duplicate_registration_conflicts(app, context):
    register(context)

    response = register(
        context, {"email": "A@B.com", "password": "other", "phoneNumber": None}
    )

    assert response["statusCode"] == 409
    assert response_body(response)["error"] == "User already exists."
    login_token(context, password="pw123")


@pytest.mark.parametrize(
    "body",
    [
        {"email": "not-an-email", "password": "pw123"},
        {"email": "a@b.com", "password": ""},
        {"email": "a@b.com", "password": "pw123", "phoneNumber": "5551234567"},
    ],
)
def test_register_rejects_invalid_input(app, context, body):
    response = register(context, body)

    assert response["statusCode"] == 400
    details = response_body(response)["details"]
    assert details["validation_errors"]
    assert "pw123" not in response["body"]
    assert app.get_user("a@b.com") is None


def test_register_missing_fields(app, context):
    response = auth.register(make_event({"email": "a@b.com"}), context)

    assert response["statusCode"] == 400
    assert response_body(response)["details"] == {"missing_fields": ["password"]}


def test_register_store_failure_is_generic(context, token_service):
    store = MagicMock()
    store.create_user.side_effect = RuntimeError("connection refused to db-host:5432")
    runtime.configure(token_service=token_service, store=store)

    response = register(context)

    assert response["statusCode"] == 500
    assert response_body(response) == {"error": "Failed to register user."}
    assert "db-host" not in response["body"]


def test_login_unknown_user(app, context):
    response = auth.login(
        make_event({"email": "nobody@b.com", "password": "pw123"}), context
    )

    assert response["statusCode"] == 404


def test_login_wrong_password(app, context):
    register(context)

    response = auth.login(make_event({"email": "a@b.com", "password": "nope"}), context)

    assert response["statusCode"] == 401
    assert response_body(response)["error"] == "Incorrect password."


def test_login_is_case_insensitive(app, context, token_service):
    register(context)

    token = login_token(context, email="  A@B.COM ")

    assert token_service.verify(token) == "a@b.com"


def test_login_with_corrupt_stored_hash(app, context):
    app.create_user(UserBase(email="a@b.com", hashed_password="not-a-hash"))

    response = auth.login(make_event({"email": "a@b.com", "password": "pw123"}), context)

    assert response["statusCode"] == 500
    assert response_body(response) == {"error": "Failed to login."}


def test_invalid_json_body(app, context):
    response = auth.login(make_event("{not json"), context)

    assert response["statusCode"] == 400
    assert response_body(response)["error"] == "Invalid JSON in request body"


@pytest.mark.parametrize(
    "call",
    [
        lambda ctx, ev: products.add_product(ev, ctx),
        lambda ctx, ev: products.list_products(ev, ctx),
        lambda ctx, ev: products.delete_product(ev, ctx),
        lambda ctx, ev: products.update_product_price(ev, ctx),
    ],
    ids=["add", "list", "delete", "update_price"],
)
def test_product_endpoints_require_token(app, context, call):
    event = make_event(PRODUCT, path_params={"productId": "0" * 32})

    response = call(context, event)

    assert response["statusCode"] == 401
    assert response_body(response)["error"] == "Authorization token is required"


def test_product_endpoints_reject_bad_token(app, context):
    foreign = SessionTokenService(OTHER_SECRET).issue("a@b.com")

    for token in ("garbage", foreign):
        response = products.list_products(make_event(token=token), context)
        assert response["statusCode"] == 403


def test_non_bearer_authorization_header(app, context, token_service):
    token = token_service.issue("a@b.com")
    event = make_event(headers={"Authorization": f"Basic {token}"})

    response = products.list_products(event, context)

    assert response["statusCode"] == 401


def test_owner_comes_from_token_not_body(app, context):
    register(context)
    register(context, {"email": "c@d.com", "password": "pw456"})
    token_a = login_token(context)
    token_c = login_token(context, "c@d.com", "pw456")

    add(context, token_a, {**PRODUCT, "email": "c@d.com", "owner": "c@d.com"})

    assert len(listed(context, token_a)) == 1
    assert listed(context, token_c) == []


def test_users_cannot_delete_each_others_products(app, context):
    register(context)
    register(context, {"email": "c@d.com", "password": "pw456"})
    token_a = login_token(context)
    token_c = login_token(context, "c@d.com", "pw456")
    product_id = response_body(add(context, token_a))["productId"]

    response = products.delete_product(
        make_event(token=token_c, path_params={"productId": product_id}), context
    )

    assert response["statusCode"] == 200
    assert [p["productId"] for p in listed(context, token_a)] == [product_id]


def test_add_product_validation(app, context):
    register(context)
    token = login_token(context)

    response = add(context, token, {**PRODUCT, "price": "-1"})
    assert response["statusCode"] == 400

    response = add(context, token, {"name": "Widget"})
    assert response["statusCode"] == 400
    assert set(response_body(response)["details"]["missing_fields"]) == {
        "url",
        "vendor",
        "price",
    }


def test_delete_with_malformed_id(app, context):
    register(context)
    token = login_token(context)

    response = products.delete_product(
        make_event(token=token, path_params={"productId": "PRODUCT#x"}), context
    )

    assert response["statusCode"] == 400


def test_update_price(app, context):
    register(context)
    token = login_token(context)
    product_id = response_body(add(context, token))["productId"]

    response = products.update_product_price(
        make_event(
            {"newPrice": "7.49"}, token=token, path_params={"productId": product_id}
        ),
        context,
    )

    assert response["statusCode"] == 200
    assert response_body(response) == {
        "message": "Product price updated successfully.",
        "productId": product_id,
        "price": "7.49",
        "previousPrice": "9.99",
    }
    (product,) = listed(context, token)
    assert product["price"] == "7.49"
    assert product["previousPrice"] == "9.99"


def test_update_price_of_another_users_product(app, context):
    register(context)
    register(context, {"email": "c@d.com", "password": "pw456"})
    token_a = login_token(context)
    token_c = login_token(context, "c@d.com", "pw456")
    product_id = response_body(add(context, token_a))["productId"]

    response = products.update_product_price(
        make_event(
            {"newPrice": "0.01"}, token=token_c, path_params={"productId": product_id}
        ),
        context,
    )

    assert response["statusCode"] == 404
    assert listed(context, token_a)[0]["price"] == "9.99"


def test_list_store_failure_is_generic(context, token_service):
    store = MagicMock()
    store.list_products.side_effect = RuntimeError("table UserProducts throttled")
    runtime.configure(token_service=token_service, store=store)

    response = products.list_products(
        make_event(token=token_service.issue("a@b.com")), context
    )

    assert response["statusCode"] == 500
    assert response_body(response) == {"error": "Failed to query products."}


def test_legacy_price_record_does_not_break_list_or_update(app, context):
    register(context)
    token = login_token(context)
    legacy_id = "b" * 32
    put_legacy_product(app, "a@b.com", legacy_id, "$12.99")
    add(context, token)

    prices = {p["productId"]: p["price"] for p in listed(context, token)}
    assert prices[legacy_id] == "$12.99"

    response = products.update_product_price(
        make_event({"newPrice": "5"}, token=token, path_params={"productId": legacy_id}),
        context,
    )

    assert response["statusCode"] == 200
    body = response_body(response)
    assert body["price"] == "5"
    assert body["previousPrice"] == "$12.99"
    prices = {p["productId"]: p["price"] for p in listed(context, token)}
    assert prices[legacy_id] == "5"
