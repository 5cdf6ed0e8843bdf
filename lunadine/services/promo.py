"""
Promo Code Evaluator

Decides whether a promo code applies to a subtotal and how much it takes off.

Rules:
    - Only active codes match, and the match is exact (case-sensitive)
    - The pre-VAT subtotal must reach the code's minimum order amount
    - Percentage codes take value% of the subtotal, fixed codes take value
    - The discount never exceeds the subtotal

During order placement an unusable code simply yields no discount. The
standalone lookup used by ``POST /api/promocode`` reports it as not found.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lunadine.core.exceptions import NotFoundError
from lunadine.models import PromoCode, PromoType

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class PromoEvaluation:
    """
    Outcome of applying a promo code to a subtotal.

    Attributes:
        applies: Whether the code matched and met its minimum
        discount_amount: Amount to subtract from the order total
        promo_code_id: Row id of the applied code, recorded on the order
    """
    applies: bool
    discount_amount: Decimal = ZERO
    promo_code_id: Optional[int] = None

    @classmethod
    def not_applied(cls) -> "PromoEvaluation":
        return cls(applies=False)


async def find_active_promo(db: AsyncSession, code: str) -> Optional[PromoCode]:
    result = await db.execute(
        select(PromoCode).where(PromoCode.code == code, PromoCode.is_active.is_(True))
    )
    return result.scalar_one_or_none()


def compute_discount(promo: PromoCode, subtotal: Decimal) -> Decimal:
    """Discount for an already-eligible promo, clamped to the subtotal."""
    value = Decimal(promo.value)
    if promo.type == PromoType.PERCENTAGE:
        discount = subtotal * value / 100
    else:
        discount = value
    return min(discount, subtotal)


async def evaluate_promo(db: AsyncSession, code: str, subtotal: Decimal) -> PromoEvaluation:
    """
    Evaluate a promo code against a pre-VAT subtotal.

    Args:
        db: Request-scoped session
        code: Code as typed by the customer
        subtotal: Non-negative order subtotal

    Returns:
        PromoEvaluation: ``applies=False`` with zero discount when the code is
        unknown, inactive, or the subtotal is under the minimum
    """
    promo = await find_active_promo(db, code)
    if promo is None:
        logger.info(f"Promo code {code!r} not found or inactive")
        return PromoEvaluation.not_applied()

    if subtotal < Decimal(promo.min_order_amount):
        logger.info(
            f"Promo code {code!r} needs a subtotal of {promo.min_order_amount}, got {subtotal}"
        )
        return PromoEvaluation.not_applied()

    discount = compute_discount(promo, subtotal)
    logger.debug(f"Promo code {code!r} applied: -{discount}")
    return PromoEvaluation(applies=True, discount_amount=discount, promo_code_id=promo.id)


async def lookup_promo(db: AsyncSession, code: str) -> PromoCode:
    """
    Fetch an active promo for display.

    Raises:
        NotFoundError: Unknown or inactive code
    """
    promo = await find_active_promo(db, code)
    if promo is None:
        raise NotFoundError("Invalid or expired promo code")
    return promo
