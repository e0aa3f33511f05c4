"""
Product catalog — read-only lookups of banking product reference data.

The customer service resolves requested product codes here before it
persists anything, so an unknown code never leaves a partial association.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cliente_api.models.banking_product import BankingProduct


async def list_products(db: AsyncSession) -> list[BankingProduct]:
    result = await db.execute(select(BankingProduct).order_by(BankingProduct.code))
    return list(result.scalars().all())


async def get_product_by_code(db: AsyncSession, code: str) -> BankingProduct | None:
    result = await db.execute(
        select(BankingProduct).where(BankingProduct.code == code)
    )
    return result.scalar_one_or_none()


async def resolve_products(
    db: AsyncSession,
    codes: list[str],
) -> tuple[list[BankingProduct], list[str]]:
    """
    Resolve product codes in one query.

    Duplicate codes collapse to a single product, in first-seen order.

    Returns:
        Tuple of (resolved products, codes that matched no product).
    """
    unique_codes = list(dict.fromkeys(codes))
    if not unique_codes:
        return [], []

    result = await db.execute(
        select(BankingProduct).where(BankingProduct.code.in_(unique_codes))
    )
    by_code = {product.code: product for product in result.scalars().all()}

    products = [by_code[code] for code in unique_codes if code in by_code]
    missing = [code for code in unique_codes if code not in by_code]
    return products, missing
