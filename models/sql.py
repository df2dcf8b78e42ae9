"""SQLAlchemy table mappings for the relational storage backend."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from models.products import ProductBase, parse_stored_price
from models.users import UserBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class UserModel(Base):
    """One row per identity; the primary key guards against duplicate registration."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), primary_key=True)
    hashed_password: Mapped[str] = mapped_column(String(512), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(16), nullable=True)

    def __repr__(self) -> str:
        return f"UserModel(email={self.email!r})"

    def to_entity(self) -> UserBase:
        return UserBase(
            email=self.email,
            hashed_password=self.hashed_password,
            phone_number=self.phone_number,
        )

    @staticmethod
    def from_entity(user: UserBase) -> "UserModel":
        return UserModel(
            email=user.email,
            hashed_password=user.hashed_password,
            phone_number=user.phone_number,
        )


class ProductModel(Base):
    """
    Products keyed by (owner_email, product_id).

    The owner is part of the primary key, mirroring the USER#/PRODUCT# key of
    the DynamoDB table, and is a foreign key onto users.
    """

    __tablename__ = "products"

    owner_email: Mapped[str] = mapped_column(
        String(320),
        ForeignKey("users.email", ondelete="CASCADE"),
        primary_key=True,
    )
    product_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    vendor: Mapped[str] = mapped_column(String(200), nullable=False)
    # Stored as string to preserve precision
    price: Mapped[str] = mapped_column(String(32), nullable=False)
    previous_price: Mapped[str | None] = mapped_column(String(32), nullable=True)

    def __repr__(self) -> str:
        return (
            f"ProductModel(owner_email={self.owner_email!r}, "
            f"product_id={self.product_id!r})"
        )

    def to_entity(self) -> ProductBase:
        return ProductBase(
            product_id=self.product_id,
            owner=self.owner_email,
            name=self.name,
            url=self.url,
            vendor=self.vendor,
            price=parse_stored_price(self.price),
            previous_price=parse_stored_price(self.previous_price),
        )

    @staticmethod
    def from_entity(product: ProductBase) -> "ProductModel":
        return ProductModel(
            owner_email=product.owner,
            product_id=product.product_id,
            name=product.name,
            url=product.url,
            vendor=product.vendor,
            price=str(product.price),
            previous_price=(
                str(product.previous_price)
                if product.previous_price is not None
                else None
            ),
        )
