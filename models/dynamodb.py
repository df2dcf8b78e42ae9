"""DynamoDB data models for the price tracker table."""

from pydantic import BaseModel

USER_PREFIX = "USER#"
PRODUCT_PREFIX = "PRODUCT#"
USER_INFO_SK = "INFO"


def user_pk(email: str) -> str:
    """Partition key shared by a user and every product they own."""
    return f"{USER_PREFIX}{email}"


def product_sk(product_id: str) -> str:
    return f"{PRODUCT_PREFIX}{product_id}"


class DynamoDBItem(BaseModel):
    """Base class for all DynamoDB items."""

    PK: str
    SK: str


class UserItem(DynamoDBItem):
    """Represents a user credential item in DynamoDB."""

    PK: str  # USER#{email}
    SK: str = USER_INFO_SK
    email: str
    hashedPassword: str
    phoneNumber: str | None = None


class ProductItem(DynamoDBItem):
    """Represents a product item in DynamoDB."""

    PK: str  # USER#{email}
    SK: str  # PRODUCT#{product_id}
    productId: str
    name: str
    url: str
    vendor: str
    price: str  # Stored as string to preserve precision
    previousPrice: str | None = None
