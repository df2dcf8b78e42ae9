"""Product model objects for the price tracker."""

import secrets
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from models.dynamodb import PRODUCT_PREFIX, ProductItem, product_sk, user_pk
from models.users import normalize_identity

PRODUCT_ID_PATTERN = r"^[0-9a-f]{32}$"


def new_product_id() -> str:
    """128 random bits, hex encoded. Never re-checked for collisions."""
    return secrets.token_hex(16)


# Items written by the earlier service may hold any client-supplied text.
StoredPrice = Union[Decimal, str]


def parse_stored_price(value: Any) -> Optional[StoredPrice]:
    """
    Read a price back from storage.

    Decimal text becomes a Decimal; anything else is returned as stored so
    one legacy record cannot break reads of its owner's other products.
    """
    if value is None:
        return None
    text = str(value)
    try:
        price = Decimal(text)
    except InvalidOperation:
        return text
    return price if price.is_finite() else text


def _decimal_text(value: Optional[StoredPrice]) -> Optional[str]:
    return str(value) if value is not None else None


class ProductBase(BaseModel):
    """A product owned by exactly one user."""

    product_id: str = Field(default_factory=new_product_id)
    owner: str
    name: str
    url: str
    vendor: str
    price: StoredPrice
    previous_price: Optional[StoredPrice] = None

    def to_dynamodb_item(self) -> ProductItem:
        """Convert to DynamoDB item format."""
        return ProductItem(
            PK=user_pk(normalize_identity(self.owner)),
            SK=product_sk(self.product_id),
            productId=self.product_id,
            name=self.name,
            url=self.url,
            vendor=self.vendor,
            price=str(self.price),
            previousPrice=_decimal_text(self.previous_price),
        )

    @classmethod
    def from_dynamodb_item(cls, item: Dict[str, Any]) -> Optional["ProductBase"]:
        """Create a ProductBase instance from a DynamoDB item."""
        if not item:
            return None

        # Extract the owner from PK format "USER#{email}"
        owner = item["PK"].replace("USER#", "", 1)
        product_id = item.get("productId") or item["SK"].replace(PRODUCT_PREFIX, "", 1)

        return cls(
            product_id=product_id,
            owner=owner,
            name=item.get("name", ""),
            url=item.get("url", ""),
            vendor=item.get("vendor", ""),
            price=parse_stored_price(item.get("price", "0")),
            previous_price=parse_stored_price(item.get("previousPrice")),
        )

    def to_api_dict(self) -> Dict[str, Any]:
        """Shape returned to API callers."""
        return {
            "productId": self.product_id,
            "email": self.owner,
            "name": self.name,
            "url": self.url,
            "vendor": self.vendor,
            "price": str(self.price),
            "previousPrice": _decimal_text(self.previous_price),
        }


class ProductCreate(BaseModel):
    """Body of POST /products - excludes generated and owner fields."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1, max_length=2048)
    vendor: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0)
    previous_price: Optional[Decimal] = Field(None, ge=0, alias="previousPrice")


class PriceUpdate(BaseModel):
    """Body of PUT /products/{productId}/price."""

    model_config = ConfigDict(populate_by_name=True)

    new_price: Decimal = Field(..., ge=0, alias="newPrice")
