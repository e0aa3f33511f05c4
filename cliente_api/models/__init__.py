"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all runs
  2. Other modules can import from cliente_api.models directly
"""

from cliente_api.models.user import User, Role, RoleName, user_roles  # noqa: F401
from cliente_api.models.banking_product import BankingProduct  # noqa: F401
from cliente_api.models.customer import Customer, customer_products  # noqa: F401
