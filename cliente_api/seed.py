"""
Reference data seeding — roles, banking products and optional demo users.

Runs on every startup from the application lifespan. Each step is a
get-or-create, so running it repeatedly never duplicates rows:

  - Roles: ROLE_USER, ROLE_MODERATOR, ROLE_ADMIN
  - Banking products: the catalog below
  - Demo users (only when SEED_DEFAULT_USERS=true):

    ┌──────────┬───────────┬────────────┐
    │ Username │ Password  │ Role       │
    ├──────────┼───────────┼────────────┤
    │ admin    │ adminpass │ ROLE_ADMIN │
    │ user     │ userpass  │ ROLE_USER  │
    └──────────┴───────────┴────────────┘

!! The demo users have well-known passwords. Never enable them in production.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cliente_api.models.banking_product import BankingProduct
from cliente_api.models.user import Role, RoleName, User
from cliente_api.security import hash_password

logger = logging.getLogger(__name__)


BANKING_PRODUCTS = [
    ("PZOF", "Plazo Fijo"),
    ("CHEQ", "Cheques"),
    ("TJCREDITO", "Tarjeta de Crédito"),
    ("CJAHRR", "Caja de Ahorro"),
    ("CTACORR", "Cuenta Corriente"),
    ("PRESTAMO", "Préstamo"),
    ("TJDEBITO", "Tarjeta de Débito"),
    ("CA", "Caja de Ahorro en Dólares"),
    ("TC", "Tarjeta de Crédito Corporativa"),
]

DEFAULT_USERS = [
    ("admin", "adminpass", RoleName.ADMIN),
    ("user", "userpass", RoleName.USER),
]


async def seed_roles(db: AsyncSession) -> dict[RoleName, Role]:
    result = await db.execute(select(Role))
    roles = {role.name: role for role in result.scalars().all()}

    for name in RoleName:
        if name not in roles:
            roles[name] = Role(name=name)
            db.add(roles[name])
            logger.info("Role %s created", name.value)

    await db.flush()
    return roles


async def seed_products(db: AsyncSession) -> None:
    result = await db.execute(select(BankingProduct.code))
    existing = set(result.scalars().all())

    for code, description in BANKING_PRODUCTS:
        if code in existing:
            continue
        db.add(BankingProduct(code=code, description=description))
        logger.info("Banking product %s (%s) created", description, code)

    await db.flush()


async def seed_default_users(db: AsyncSession, roles: dict[RoleName, Role]) -> None:
    for username, password, role_name in DEFAULT_USERS:
        result = await db.execute(select(User).where(User.username == username))
        if result.scalar_one_or_none() is not None:
            logger.info("User '%s' already exists", username)
            continue

        db.add(
            User(
                username=username,
                hashed_password=hash_password(password),
                roles=[roles[role_name]],
            )
        )
        logger.warning("Demo user '%s' created with a well-known password", username)

    await db.flush()


async def seed_reference_data(db: AsyncSession, include_users: bool = False) -> None:
    """
    Seed roles and banking products (and demo users if requested), then commit.

    Args:
        db: Database session. Committed on success.
        include_users: Also create the demo admin/user accounts.
    """
    logger.info("Seeding reference data: roles, banking products%s",
                ", demo users" if include_users else "")
    roles = await seed_roles(db)
    await seed_products(db)
    if include_users:
        await seed_default_users(db, roles)
    await db.commit()
