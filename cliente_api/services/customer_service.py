"""
Customer service — business rules for the customer directory.

This module enforces:
  - A customer must reference at least one banking product
  - National IDs are unique (upfront check + UNIQUE constraint)
  - Every referenced product code must exist; one unknown code rejects the
    whole create and nothing is persisted
  - Only the phone field changes after creation

Not-found signalling:
  Lookups return `None` (and delete returns `False`) when no customer has
  the national ID. The router decides how absence becomes an HTTP error;
  this module never imports HTTP concepts.

Concurrency:
  Two concurrent creates with the same national ID both pass the upfront
  check; the database UNIQUE constraint rejects the second flush. That
  IntegrityError is translated into DuplicateNationalIdError so callers see
  one contract regardless of timing.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cliente_api.exceptions import (
    DuplicateNationalIdError,
    InvalidInputError,
    UnknownProductError,
)
from cliente_api.models.banking_product import BankingProduct
from cliente_api.models.customer import Customer
from cliente_api.services import product_catalog

logger = logging.getLogger(__name__)


async def _find_by_national_id(db: AsyncSession, national_id: str) -> Customer | None:
    result = await db.execute(
        select(Customer).where(Customer.national_id == national_id)
    )
    return result.scalar_one_or_none()


async def create_customer(
    db: AsyncSession,
    customer_data: dict,
    product_codes: list[str],
) -> Customer:
    """
    Create a customer linked to the given banking products.

    Args:
        db: Database session.
        customer_data: Column values (national_id, first_name, last_name, ...).
        product_codes: Codes of existing banking products, at least one.

    Returns:
        The persisted Customer, with its generated id and loaded products.

    Raises:
        InvalidInputError: If no product codes were given.
        DuplicateNationalIdError: If the national ID is already registered.
        UnknownProductError: If any product code does not exist.
    """
    national_id = customer_data["national_id"]

    if not product_codes:
        raise InvalidInputError("A customer must have at least one banking product.")

    if await _find_by_national_id(db, national_id) is not None:
        raise DuplicateNationalIdError(national_id)

    products, missing = await product_catalog.resolve_products(db, product_codes)
    if missing:
        raise UnknownProductError(missing)

    customer = Customer(**customer_data, products=products)
    db.add(customer)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise DuplicateNationalIdError(national_id) from exc

    logger.info(
        "Created customer %s with products %s",
        national_id,
        [product.code for product in products],
    )
    return customer


async def get_customers(db: AsyncSession) -> list[Customer]:
    """List every customer, oldest first."""
    result = await db.execute(
        select(Customer).order_by(Customer.created_at, Customer.national_id)
    )
    return list(result.scalars().all())


async def get_customer(db: AsyncSession, national_id: str) -> Customer | None:
    """Get a customer by national ID, or None if absent."""
    return await _find_by_national_id(db, national_id)


async def update_phone(
    db: AsyncSession,
    national_id: str,
    new_phone: str,
) -> Customer | None:
    """
    Replace the phone number of an existing customer.

    Returns:
        The updated Customer, or None if no customer has that national ID.
    """
    customer = await _find_by_national_id(db, national_id)
    if customer is None:
        return None

    customer.phone = new_phone
    await db.flush()

    logger.info("Updated phone of customer %s", national_id)
    return customer


async def get_customers_by_product(db: AsyncSession, code: str) -> list[Customer]:
    """
    List the customers associated with a banking product code.

    Returns an empty list when the code is unknown or has no customers.
    """
    result = await db.execute(
        select(Customer)
        .join(Customer.products)
        .where(BankingProduct.code == code)
        .order_by(Customer.created_at, Customer.national_id)
    )
    return list(result.scalars().unique().all())


async def delete_customer(db: AsyncSession, national_id: str) -> bool:
    """
    Delete a customer and its product associations.

    The BankingProduct rows themselves are reference data and stay.

    Returns:
        True if a customer was deleted, False if none had that national ID.
    """
    customer = await _find_by_national_id(db, national_id)
    if customer is None:
        return False

    await db.delete(customer)
    await db.flush()

    logger.info("Deleted customer %s", national_id)
    return True
