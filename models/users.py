from typing import Any, Dict, Optional

import pydantic
from pydantic import BaseModel, EmailStr, Field

from models.dynamodb import UserItem, user_pk

PHONE_PATTERN = r"^\+[1-9]\d{1,14}$"  # E.164


def normalize_identity(email: str) -> str:
    """
    Canonical form of an identity.

    Every insert and lookup in both storage backends goes through this, so
    "A@B.com" and "a@b.com" address the same user.
    """
    return email.strip().lower()


class UserBase(BaseModel):
    """A stored credential record."""

    email: str
    hashed_password: str
    phone_number: Optional[str] = None

    @pydantic.field_validator("email")
    def email_is_normalized(cls, v):
        return normalize_identity(v)

    def to_dynamodb_item(self) -> UserItem:
        """Convert to DynamoDB item format."""
        return UserItem(
            PK=user_pk(self.email),
            email=self.email,
            hashedPassword=self.hashed_password,
            phoneNumber=self.phone_number,
        )

    @classmethod
    def from_dynamodb_item(cls, item: Dict[str, Any]) -> Optional["UserBase"]:
        """Create a UserBase instance from a DynamoDB item."""
        if not item:
            return None

        return cls(
            email=item.get("email") or item["PK"].replace("USER#", "", 1),
            hashed_password=item["hashedPassword"],
            phone_number=item.get("phoneNumber"),
        )


class RegisterRequest(BaseModel):
    """Body of POST /register."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=1024)
    phone_number: Optional[str] = Field(
        None, alias="phoneNumber", pattern=PHONE_PATTERN
    )

    @pydantic.field_validator("email", mode="after")
    def email_is_normalized(cls, v):
        return normalize_identity(v)


class LoginRequest(BaseModel):
    """Body of POST /login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=1024)

    @pydantic.field_validator("email", mode="after")
    def email_is_normalized(cls, v):
        return normalize_identity(v)
