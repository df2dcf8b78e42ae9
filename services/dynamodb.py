"""
DynamoDB service for the price tracker.

Users and their products share one table. A user lives at
``USER#<email>`` / ``INFO`` and each product at ``USER#<email>`` /
``PRODUCT#<id>``, so the owner is always part of a product's key.
"""

import os
from decimal import Decimal
from typing import Any, Dict, List, Optional

import boto3
import botocore

from models.dynamodb import PRODUCT_PREFIX, USER_INFO_SK, product_sk, user_pk
from models.products import ProductBase
from models.users import UserBase, normalize_identity
from services.store import RecordStore
from utils.exceptions import ProductNotFound, UserAlreadyExists
from utils.logging import setup_logger

logger = setup_logger(__name__)

DEFAULT_TABLE_NAME = "UserProducts"

# A single DynamoDB resource reused across warm invocations.
_dynamodb_resource = None


def get_dynamodb_resource():
    """Get or create the shared DynamoDB resource."""
    global _dynamodb_resource
    if _dynamodb_resource is None:
        _dynamodb_resource = boto3.resource("dynamodb")
    return _dynamodb_resource


def reset_dynamodb_resource() -> None:
    """Drop the shared resource so the next call builds a new one."""
    global _dynamodb_resource
    _dynamodb_resource = None


def _is_conditional_failure(err: botocore.exceptions.ClientError) -> bool:
    return err.response["Error"]["Code"] == "ConditionalCheckFailedException"


class UserProductsTable(RecordStore):
    """
    Encapsulates operations on the Amazon DynamoDB user products table.
    """

    backend = "dynamodb"

    def __init__(self, table_name: str = None, dynamodb_resource=None):
        """
        Initialize the DynamoDB table connection using shared resources.

        :param table_name: Name of the DynamoDB table.
        :param dynamodb_resource: boto3 DynamoDB resource, defaults to the shared one.
        """
        if table_name is None:
            table_name = os.environ.get("TABLE_NAME", DEFAULT_TABLE_NAME)

        resource = dynamodb_resource or get_dynamodb_resource()
        self.table = resource.Table(table_name)

    def _log_client_error(
        self, action: str, err: botocore.exceptions.ClientError, *args: Any
    ) -> None:
        logger.error(
            "Couldn't %s in table %s. Error: %s: %s",
            action % args if args else action,
            self.table.name,
            err.response["Error"]["Code"],
            err.response["Error"]["Message"],
        )

    def create_user(self, user: UserBase) -> None:
        """
        Adds a user to the table unless one already exists for the email.

        The existence check and the write are one conditional put, so two
        concurrent registrations for the same email cannot both succeed.

        :param user: The user to add to the table.
        :raises UserAlreadyExists: If the email is already registered.
        """
        try:
            ddb_item = user.to_dynamodb_item().model_dump(exclude_none=True)
            self.table.put_item(
                Item=ddb_item,
                ConditionExpression="attribute_not_exists(PK)",
            )
        except botocore.exceptions.ClientError as err:
            if _is_conditional_failure(err):
                raise UserAlreadyExists(user.email) from err
            self._log_client_error("put user %s", err, user.email)
            raise

    def get_user(self, email: str) -> Optional[UserBase]:
        """
        Gets user data from the table.

        :param email: The identity of the user to retrieve.
        :return: The user if found, None otherwise.
        """
        email = normalize_identity(email)
        try:
            response = self.table.get_item(
                Key={"PK": user_pk(email), "SK": USER_INFO_SK}
            )
            item = response.get("Item")
            if not item:
                return None

            return UserBase.from_dynamodb_item(item)
        except botocore.exceptions.ClientError as err:
            self._log_client_error("get user %s", err, email)
            raise

    def add_product(self, product: ProductBase) -> str:
        """
        Adds a product item under its owner's partition.

        :param product: The product to add to the table.
        :return: The product id.
        """
        try:
            ddb_item = product.to_dynamodb_item().model_dump(exclude_none=True)
            self.table.put_item(Item=ddb_item)
            return product.product_id
        except botocore.exceptions.ClientError as err:
            self._log_client_error(
                "put product %s for user %s", err, product.product_id, product.owner
            )
            raise

    def list_products(self, owner: str) -> List[ProductBase]:
        """
        Lists all products for a specific user.

        :param owner: The identity of the product owner.
        :return: A list of products associated with the user.
        """
        owner = normalize_identity(owner)
        query_kwargs: Dict[str, Any] = {
            "KeyConditionExpression": "PK = :pk AND begins_with(SK, :sk_prefix)",
            "ExpressionAttributeValues": {
                ":pk": user_pk(owner),
                ":sk_prefix": PRODUCT_PREFIX,
            },
        }
        items: List[Dict[str, Any]] = []
        try:
            while True:
                response = self.table.query(**query_kwargs)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                query_kwargs["ExclusiveStartKey"] = last_key
        except botocore.exceptions.ClientError as err:
            self._log_client_error("list products for user %s", err, owner)
            raise

        return [ProductBase.from_dynamodb_item(item) for item in items]

    def delete_product(self, owner: str, product_id: str) -> None:
        """
        Deletes a specific product item from the table.

        Deleting a product that does not exist succeeds silently.

        :param owner: The identity of the product owner.
        :param product_id: The unique ID of the product to delete.
        """
        owner = normalize_identity(owner)
        try:
            self.table.delete_item(
                Key={"PK": user_pk(owner), "SK": product_sk(product_id)}
            )
        except botocore.exceptions.ClientError as err:
            self._log_client_error(
                "delete product %s for user %s", err, product_id, owner
            )
            raise

    def update_price(
        self, owner: str, product_id: str, new_price: Decimal
    ) -> ProductBase:
        """
        Sets a new price, moving the old one to previousPrice in the same write.

        :param owner: The identity of the product owner.
        :param product_id: The unique ID of the product to update.
        :param new_price: The new current price.
        :return: The updated product.
        :raises ProductNotFound: If the owner has no such product.
        """
        owner = normalize_identity(owner)
        try:
            response = self.table.update_item(
                Key={"PK": user_pk(owner), "SK": product_sk(product_id)},
                UpdateExpression="SET #previous = #price, #price = :new_price",
                ConditionExpression="attribute_exists(SK)",
                ExpressionAttributeNames={
                    "#price": "price",
                    "#previous": "previousPrice",
                },
                ExpressionAttributeValues={":new_price": str(new_price)},
                ReturnValues="ALL_NEW",
            )
        except botocore.exceptions.ClientError as err:
            if _is_conditional_failure(err):
                raise ProductNotFound(owner, product_id) from err
            self._log_client_error(
                "update price of product %s for user %s", err, product_id, owner
            )
            raise

        return ProductBase.from_dynamodb_item(response["Attributes"])
