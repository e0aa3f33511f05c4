"""
Customer model — a bank customer identified by national ID.

The national ID is the business key: UNIQUE at the database level and never
changed by any endpoint. The UNIQUE constraint is what arbitrates two
concurrent creates with the same ID; the service translates the resulting
IntegrityError into the same duplicate error an upfront check produces.

Products:
  `customer_products` is the single authoritative association table. The
  Customer sees it through a one-directional relationship ordered by product
  code, so serialized customers are stable across reads.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cliente_api.database import Base
from cliente_api.models.banking_product import BankingProduct


customer_products = Table(
    "customer_products",
    Base.metadata,
    Column(
        "customer_id",
        ForeignKey("customers.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "product_id",
        ForeignKey("banking_products.id"),
        primary_key=True,
        index=True,
    ),
)


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    national_id: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Optional postal address
    street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # phone is the only field mutable after creation
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    mobile: Mapped[str | None] = mapped_column(String(30), nullable=True)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    products: Mapped[list[BankingProduct]] = relationship(
        secondary=customer_products,
        order_by=BankingProduct.code,
        lazy="selectin",
    )
