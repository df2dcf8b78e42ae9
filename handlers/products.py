"""
Product handlers for the price tracker API.

Every handler takes the owner from the verified session token, never from
the request, so a user can only reach products under their own identity.
"""

import re

from pydantic import ValidationError

from models.products import (PRODUCT_ID_PATTERN, PriceUpdate, ProductBase,
                             ProductCreate)
from services.runtime import get_store
from utils.decorators import (extract_path_params, lambda_handler,
                              require_auth, validate_json_body)
from utils.exceptions import ProductNotFound
from utils.logging import log_error, setup_logger
from utils.responses import (HTTPStatus, error_response, not_found_response,
                             success_response, validation_error_response,
                             validation_errors)

logger = setup_logger(__name__)

_product_id_re = re.compile(PRODUCT_ID_PATTERN)


def _invalid_product_id(product_id: str):
    if _product_id_re.match(product_id):
        return None
    return validation_error_response(
        "Invalid product id", {"productId": "expected 32 lowercase hex characters"}
    )


@lambda_handler()
@require_auth
@validate_json_body(required_fields=["name", "url", "vendor", "price"])
def add_product(event, context):
    """
    Add a product for the authenticated user.

    POST /products

    Args:
        event: Lambda event with name, url, vendor, price and optional previousPrice
        context: Lambda context object

    Returns:
        201 with the generated productId
    """
    owner = event["auth"]["email"]

    try:
        product_create = ProductCreate(**event["json_body"])
    except ValidationError as e:
        return validation_error_response(
            "Product validation failed", validation_errors(e)
        )

    product = ProductBase(owner=owner, **product_create.model_dump())

    try:
        product_id = get_store().add_product(product)
    except Exception as e:
        log_error(logger, e, {"operation": "add_product", "email": owner})
        return error_response(
            "Failed to add product.", HTTPStatus.INTERNAL_SERVER_ERROR
        )

    return success_response(
        data={"productId": product_id},
        message="Product added successfully.",
        status_code=HTTPStatus.CREATED,
    )


@lambda_handler()
@require_auth
def list_products(event, context):
    """
    List all products for the authenticated user.

    GET /products

    Order is whatever the storage backend returns.
    """
    owner = event["auth"]["email"]

    try:
        products = get_store().list_products(owner)
    except Exception as e:
        log_error(logger, e, {"operation": "list_products", "email": owner})
        return error_response(
            "Failed to query products.", HTTPStatus.INTERNAL_SERVER_ERROR
        )

    return success_response(
        data={"products": [product.to_api_dict() for product in products]}
    )


@lambda_handler()
@require_auth
@extract_path_params("productId")
def delete_product(event, context):
    """
    Delete one of the authenticated user's products.

    DELETE /products/{productId}

    Deleting a product that does not exist still succeeds.
    """
    owner = event["auth"]["email"]
    product_id = event["path_params"]["productId"]

    invalid = _invalid_product_id(product_id)
    if invalid:
        return invalid

    try:
        get_store().delete_product(owner, product_id)
    except Exception as e:
        log_error(logger, e, {"operation": "delete_product", "email": owner})
        return error_response(
            "Failed to delete product.", HTTPStatus.INTERNAL_SERVER_ERROR
        )

    return success_response(
        data={"productId": product_id},
        message=f"Product {product_id} deleted successfully.",
    )


@lambda_handler()
@require_auth
@validate_json_body(required_fields=["newPrice"])
@extract_path_params("productId")
def update_product_price(event, context):
    """
    Update the price of one of the authenticated user's products.

    PUT /products/{productId}/price

    The old price becomes previousPrice in the same atomic write.
    """
    owner = event["auth"]["email"]
    product_id = event["path_params"]["productId"]

    invalid = _invalid_product_id(product_id)
    if invalid:
        return invalid

    try:
        price_update = PriceUpdate(**event["json_body"])
    except ValidationError as e:
        return validation_error_response(
            "Price validation failed", validation_errors(e)
        )

    try:
        product = get_store().update_price(owner, product_id, price_update.new_price)
    except ProductNotFound:
        return not_found_response("Product", product_id)
    except Exception as e:
        log_error(logger, e, {"operation": "update_product_price", "email": owner})
        return error_response(
            "Failed to update product price.", HTTPStatus.INTERNAL_SERVER_ERROR
        )

    return success_response(
        data={
            "productId": product.product_id,
            "price": str(product.price),
            "previousPrice": (
                str(product.previous_price)
                if product.previous_price is not None
                else None
            ),
        },
        message="Product price updated successfully.",
    )
