"""
Relational storage backend built on SQLAlchemy.

Each operation checks a connection out of the engine's pool for the
lifetime of one ``with`` block and returns it on every exit path.
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Engine, create_engine, delete, event, select, update
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from models.products import ProductBase
from models.sql import Base, ProductModel, UserModel
from models.users import UserBase, normalize_identity
from services.store import RecordStore
from utils.exceptions import ProductNotFound, UserAlreadyExists
from utils.logging import setup_logger

logger = setup_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_database_engine(
    database_url: str,
    pool_size: int = 5,
    max_overflow: int = 10,
    echo: bool = False,
) -> Engine:
    """Create a pooled SQLAlchemy engine.

    Args:
        database_url: SQLAlchemy database URL
        pool_size: Connections kept open in the pool
        max_overflow: Extra connections allowed beyond pool_size
        echo: Whether to log emitted SQL

    Returns:
        Configured Engine instance
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            # One shared in-memory database for every checkout.
            engine = create_engine(
                url,
                echo=echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine = create_engine(url, echo=echo)
    else:
        engine = create_engine(
            url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
        )

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


class SqlRecordStore(RecordStore):
    """
    SQLAlchemy implementation of RecordStore.

    Products are only ever selected, updated or deleted with a
    ``owner_email = :owner`` predicate.
    """

    backend = "sql"

    def __init__(self, engine: Engine):
        """
        Initialize the store with a pooled engine.

        Args:
            engine: SQLAlchemy engine (see create_database_engine)
        """
        self.engine = engine
        self._session_factory = sessionmaker(
            engine, class_=Session, expire_on_commit=False
        )

    def create_schema(self) -> None:
        """Create the users and products tables if they are missing."""
        Base.metadata.create_all(self.engine)

    def create_user(self, user: UserBase) -> None:
        try:
            with self._session_factory() as session, session.begin():
                session.add(UserModel.from_entity(user))
        except IntegrityError as err:
            # Primary key violation: someone registered this email first.
            raise UserAlreadyExists(user.email) from err
        except SQLAlchemyError:
            logger.error("Couldn't insert user %s", user.email, exc_info=True)
            raise

    def get_user(self, email: str) -> Optional[UserBase]:
        email = normalize_identity(email)
        try:
            with self._session_factory() as session:
                user_model = session.get(UserModel, email)
                if user_model is None:
                    return None
                return user_model.to_entity()
        except SQLAlchemyError:
            logger.error("Couldn't get user %s", email, exc_info=True)
            raise

    def add_product(self, product: ProductBase) -> str:
        product = product.model_copy(
            update={"owner": normalize_identity(product.owner)}
        )
        try:
            with self._session_factory() as session, session.begin():
                session.add(ProductModel.from_entity(product))
            return product.product_id
        except SQLAlchemyError:
            logger.error(
                "Couldn't insert product %s for user %s",
                product.product_id,
                product.owner,
                exc_info=True,
            )
            raise

    def list_products(self, owner: str) -> List[ProductBase]:
        owner = normalize_identity(owner)
        try:
            with self._session_factory() as session:
                result = session.execute(
                    select(ProductModel).where(ProductModel.owner_email == owner)
                )
                return [model.to_entity() for model in result.scalars().all()]
        except SQLAlchemyError:
            logger.error("Couldn't list products for user %s", owner, exc_info=True)
            raise

    def delete_product(self, owner: str, product_id: str) -> None:
        owner = normalize_identity(owner)
        try:
            with self._session_factory() as session, session.begin():
                session.execute(
                    delete(ProductModel).where(
                        ProductModel.owner_email == owner,
                        ProductModel.product_id == product_id,
                    )
                )
        except SQLAlchemyError:
            logger.error(
                "Couldn't delete product %s for user %s",
                product_id,
                owner,
                exc_info=True,
            )
            raise

    def update_price(
        self, owner: str, product_id: str, new_price: Decimal
    ) -> ProductBase:
        owner = normalize_identity(owner)
        products = ProductModel.__table__
        owned = (
            products.c.owner_email == owner,
            products.c.product_id == product_id,
        )
        try:
            with self._session_factory() as session, session.begin():
                # previous_price is assigned first so left-to-right dialects
                # still read the old price.
                result = session.execute(
                    update(products)
                    .where(*owned)
                    .ordered_values(
                        (products.c.previous_price, products.c.price),
                        (products.c.price, str(new_price)),
                    )
                )
                if result.rowcount == 0:
                    raise ProductNotFound(owner, product_id)

                updated = session.execute(select(ProductModel).where(*owned))
                return updated.scalar_one().to_entity()
        except SQLAlchemyError:
            logger.error(
                "Couldn't update price of product %s for user %s",
                product_id,
                owner,
                exc_info=True,
            )
            raise

    def close(self) -> None:
        """Dispose the engine, closing every pooled connection."""
        self.engine.dispose()
