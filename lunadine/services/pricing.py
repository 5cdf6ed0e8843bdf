"""
Order Pricing Engine

Turns a cart into subtotal, VAT, discount and total. The steps run in a
fixed order because the promo discount is taken from the pre-VAT subtotal:

    1. Resolve each line's unit price (once; the result is reused on insert)
    2. subtotal  = sum(unit_price * quantity)
    3. vat       = subtotal * branch vat_percentage / 100
    4. discount  = promo evaluated against subtotal, else 0
    5. total     = subtotal + vat - discount

All arithmetic is Decimal and unrounded; rounding is left to presentation
and to the NUMERIC columns.

Customization surcharges (``additional_price``) are not added to line
totals. Menus show them, orders do not charge them.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from lunadine.core.config import get_settings
from lunadine.core.exceptions import InvalidItemError
from lunadine.schemas import CartLine
from lunadine.services.catalog import get_branch_settings, get_item_price
from lunadine.services.promo import ZERO, PromoEvaluation, evaluate_promo

logger = logging.getLogger(__name__)

# Largest value the INTEGER quantity column holds on every supported backend
MAX_QUANTITY = 2**31 - 1


@dataclass(frozen=True)
class PricedLine:
    """A cart line with its unit price snapshot."""
    branch_menu_item_id: int
    quantity: int
    unit_price: Decimal
    customizations: list[dict] = field(default_factory=list)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class PricedOrder:
    """
    Fully priced cart, ready to persist.

    Invariants:
        total_amount == subtotal + vat_amount - discount_amount
        0 <= discount_amount <= subtotal
    """
    lines: tuple[PricedLine, ...]
    subtotal: Decimal
    vat_percentage: Decimal
    vat_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    promo_code_id: Optional[int] = None


def _validate_quantity(quantity) -> int:
    # bool is an int subclass; True must not count as one portion
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidItemError("Invalid item data: quantity must be a positive integer")
    if quantity > MAX_QUANTITY:
        raise InvalidItemError(f"Invalid item data: quantity must not exceed {MAX_QUANTITY}")
    return quantity


def resolve_vat_percentage(settings: dict) -> Decimal:
    """VAT percentage from branch settings, falling back to the configured default."""
    vat = settings.get("vat_percentage")
    if vat is None:
        vat = get_settings().default_vat_percentage
    return Decimal(str(vat))


async def price_lines(db: AsyncSession, lines: Sequence[CartLine]) -> tuple[PricedLine, ...]:
    """
    Resolve unit prices for every cart line.

    Raises:
        InvalidItemError: Unknown menu item or non-positive quantity
    """
    priced = []
    for line in lines:
        quantity = _validate_quantity(line.quantity)
        unit_price = await get_item_price(db, line.branch_menu_item_id)
        priced.append(
            PricedLine(
                branch_menu_item_id=line.branch_menu_item_id,
                quantity=quantity,
                unit_price=unit_price,
                customizations=[choice.model_dump() for choice in line.customizations],
            )
        )
    return tuple(priced)


async def price_order(
    db: AsyncSession,
    branch_id: int,
    lines: Sequence[CartLine],
    promo_code: Optional[str] = None,
) -> PricedOrder:
    """
    Price a cart for a branch.

    Args:
        db: Request-scoped session
        branch_id: Branch whose VAT configuration applies
        lines: Cart lines in submission order
        promo_code: Optional code, evaluated against the pre-VAT subtotal

    Returns:
        PricedOrder: Lines with price snapshots plus the four amounts

    Raises:
        InvalidItemError: A line is not orderable
        NotFoundError: The branch does not exist
    """
    priced_lines = await price_lines(db, lines)
    subtotal = sum((line.line_total for line in priced_lines), ZERO)

    vat_percentage = resolve_vat_percentage(await get_branch_settings(db, branch_id))
    vat_amount = subtotal * vat_percentage / 100

    promo = PromoEvaluation.not_applied()
    if promo_code is not None:
        promo = await evaluate_promo(db, promo_code, subtotal)

    total_amount = subtotal + vat_amount - promo.discount_amount

    logger.info(
        f"Priced cart for branch {branch_id}: subtotal={subtotal} "
        f"vat={vat_amount} ({vat_percentage}%) discount={promo.discount_amount} "
        f"total={total_amount}"
    )

    return PricedOrder(
        lines=priced_lines,
        subtotal=subtotal,
        vat_percentage=vat_percentage,
        vat_amount=vat_amount,
        discount_amount=promo.discount_amount,
        total_amount=total_amount,
        promo_code_id=promo.promo_code_id,
    )
