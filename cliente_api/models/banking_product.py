"""
BankingProduct model — reference data for the product catalog.

Examples: PZOF (Plazo Fijo), CJAHRR (Caja de Ahorro), TJCREDITO (Tarjeta de
Crédito). Products are seeded at startup and only read afterwards. Deleting a
customer removes its association rows, never the product itself.

There is deliberately no `customers` collection here: the association lives
in the `customer_products` table and is queried from the Customer side.
"""

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from cliente_api.database import Base


class BankingProduct(Base):
    __tablename__ = "banking_products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    code: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
    )

    description: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
