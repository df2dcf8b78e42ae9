"""
Storage capability shared by the DynamoDB and SQL backends.

Handlers only ever see a RecordStore; which backend sits behind it is
decided once at startup by services.runtime.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional

from models.products import ProductBase
from models.users import UserBase


class RecordStore(ABC):
    """
    Ownership-scoped access to users and their products.

    Every product operation takes the owning identity and binds it into
    the key or predicate. There is no way to reach a product without it.
    """

    backend: str = "unknown"

    @abstractmethod
    def create_user(self, user: UserBase) -> None:
        """
        Persist a new credential record.

        :raises UserAlreadyExists: If the identity is already registered.
        """

    @abstractmethod
    def get_user(self, email: str) -> Optional[UserBase]:
        """Return the credential record, or None if absent."""

    @abstractmethod
    def add_product(self, product: ProductBase) -> str:
        """Persist a product under its owner and return its id."""

    @abstractmethod
    def list_products(self, owner: str) -> List[ProductBase]:
        """Return every product the owner has, in storage order."""

    @abstractmethod
    def delete_product(self, owner: str, product_id: str) -> None:
        """Remove a product. Deleting a missing product is not an error."""

    @abstractmethod
    def update_price(
        self, owner: str, product_id: str, new_price: Decimal
    ) -> ProductBase:
        """
        Atomically move the current price to previous price and set a new one.

        :raises ProductNotFound: If the owner has no such product.
        """

    def close(self) -> None:
        """Release pooled resources."""
