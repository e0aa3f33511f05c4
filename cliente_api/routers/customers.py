"""
Customers router — the customer directory endpoints.

Every route runs behind the auth gateway (router-level dependency) and
declares its required roles:

  ADMIN only:
    POST   /api/clientes                        — Create a customer
    POST   /api/clientes/batch                  — Create several customers
    DELETE /api/clientes/batch                  — Delete several customers
    DELETE /api/clientes/{national_id}          — Delete a customer

  ADMIN, MODERATOR or USER:
    GET    /api/clientes                        — List customers
    GET    /api/clientes/por-producto/{code}    — Customers holding a product
    GET    /api/clientes/{national_id}          — Get one customer
    PATCH  /api/clientes/telefono/batch         — Update several phones
    PATCH  /api/clientes/{national_id}/telefono — Update a phone

Batch policy (all three batch routes):
  An empty list is rejected with 400. Otherwise items are processed in
  order inside the request transaction; the first failing item aborts the
  request and get_db rolls back everything the batch had already done.

Write routes commit before returning. get_db's own commit may run after the
response is sent, so a 2xx never depends on it.

The static /batch and /telefono/batch paths are registered before the
/{national_id} routes so they are not captured as national IDs.
"""

import logging

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cliente_api.database import get_db
from cliente_api.dependencies import Principal, require_admin, require_staff
from cliente_api.exceptions import CustomerNotFoundError, InvalidInputError
from cliente_api.schemas.customer import (
    CustomerCreateRequest,
    CustomerDeletedResponse,
    CustomerResponse,
    PhoneBatchItem,
    PhoneUpdateRequest,
)
from cliente_api.services import customer_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_items(items: list) -> None:
    if not items:
        raise InvalidInputError("The batch must contain at least one item.")


# ---------------------------------------------------------------------------
# Batch endpoints (registered first, see module docstring)
# ---------------------------------------------------------------------------

@router.post(
    "/batch",
    response_model=list[CustomerResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create several customers",
)
async def create_customers_batch(
    requests: list[CustomerCreateRequest],
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create every customer in the list, or none of them."""
    _require_items(requests)
    logger.info("%s creating %d customers in batch", principal.username, len(requests))

    created = []
    for request in requests:
        created.append(
            await customer_service.create_customer(
                db, request.customer_fields(), request.product_codes
            )
        )
    await db.commit()
    return created


@router.patch(
    "/telefono/batch",
    response_model=list[CustomerResponse],
    summary="Update several phone numbers",
)
async def update_phones_batch(
    updates: list[PhoneBatchItem],
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Update every listed phone, or none if any national ID is unknown."""
    _require_items(updates)

    updated = []
    for update in updates:
        customer = await customer_service.update_phone(
            db, update.national_id, update.new_phone
        )
        if customer is None:
            raise CustomerNotFoundError(update.national_id)
        updated.append(customer)
    await db.commit()
    return updated


@router.delete(
    "/batch",
    response_model=list[CustomerDeletedResponse],
    summary="[Admin] Delete several customers",
)
async def delete_customers_batch(
    national_ids: list[str] = Body(...),
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete every listed customer, or none if any national ID is unknown."""
    _require_items(national_ids)
    logger.info(
        "%s deleting %d customers in batch", principal.username, len(national_ids)
    )

    deleted = []
    for national_id in national_ids:
        if not await customer_service.delete_customer(db, national_id):
            raise CustomerNotFoundError(national_id)
        deleted.append(CustomerDeletedResponse(national_id=national_id))
    await db.commit()
    return deleted


# ---------------------------------------------------------------------------
# Single-customer endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="[Admin] Create a customer",
)
async def create_customer(
    request: CustomerCreateRequest,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a customer with at least one existing banking product.

    Returns 400 if the national ID is already registered or any product
    code is unknown; nothing is persisted in either case.
    """
    customer = await customer_service.create_customer(
        db, request.customer_fields(), request.product_codes
    )
    await db.commit()
    return customer


@router.get(
    "",
    response_model=list[CustomerResponse],
    summary="List customers",
)
async def list_customers(
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await customer_service.get_customers(db)


@router.get(
    "/por-producto/{code}",
    response_model=list[CustomerResponse],
    summary="List customers holding a banking product",
)
async def list_customers_by_product(
    code: str,
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Returns an empty list when no customer holds the product."""
    customers = await customer_service.get_customers_by_product(db, code)
    logger.debug("Found %d customers for product %s", len(customers), code)
    return customers


@router.get(
    "/{national_id}",
    response_model=CustomerResponse,
    summary="Get a customer by national ID",
)
async def get_customer(
    national_id: str,
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    customer = await customer_service.get_customer(db, national_id)
    if customer is None:
        raise CustomerNotFoundError(national_id)
    return customer


@router.patch(
    "/{national_id}/telefono",
    response_model=CustomerResponse,
    summary="Update a customer's phone number",
)
async def update_phone(
    national_id: str,
    update: PhoneUpdateRequest,
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """
    Replace the phone number. If the body carries a nationalId it must
    match the one in the path (400 otherwise).
    """
    if update.national_id is not None and update.national_id != national_id:
        raise InvalidInputError(
            f"National ID in body ({update.national_id}) does not match "
            f"the path ({national_id})."
        )

    customer = await customer_service.update_phone(db, national_id, update.new_phone)
    if customer is None:
        raise CustomerNotFoundError(national_id)
    await db.commit()
    return customer


@router.delete(
    "/{national_id}",
    response_model=CustomerDeletedResponse,
    summary="[Admin] Delete a customer",
)
async def delete_customer(
    national_id: str,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if not await customer_service.delete_customer(db, national_id):
        raise CustomerNotFoundError(national_id)
    await db.commit()
    return CustomerDeletedResponse(national_id=national_id)
