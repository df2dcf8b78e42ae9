"""
Models package for data structures and database entities.

This package contains Pydantic models for request validation and
DynamoDB item representations, plus the SQLAlchemy table mappings.
"""

from .dynamodb import DynamoDBItem, ProductItem, UserItem
from .products import PriceUpdate, ProductBase, ProductCreate
from .users import LoginRequest, RegisterRequest, UserBase, normalize_identity

__all__ = [
    "DynamoDBItem",
    "UserItem",
    "ProductItem",
    "UserBase",
    "RegisterRequest",
    "LoginRequest",
    "ProductBase",
    "ProductCreate",
    "PriceUpdate",
    "normalize_identity",
]
