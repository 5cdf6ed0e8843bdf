"""
Catalog Store

Read-only lookups over branches, menus and tables. Every function takes the
caller's session; nothing is cached between requests.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lunadine.core.exceptions import InvalidItemError, NotFoundError
from lunadine.models import (
    Branch,
    BranchMenuItem,
    CustomizationGroup,
    MasterMenuItem,
    MenuCategory,
    RestaurantTable,
)

logger = logging.getLogger(__name__)


async def list_branches(db: AsyncSession) -> list[Branch]:
    result = await db.execute(select(Branch).order_by(Branch.id))
    return list(result.scalars().all())


async def get_branch_settings(db: AsyncSession, branch_id: int) -> dict:
    """Return a copy of the branch settings blob."""
    result = await db.execute(select(Branch.settings).where(Branch.id == branch_id))
    row = result.first()
    if row is None:
        raise NotFoundError("Branch not found")
    return dict(row.settings or {})


async def get_item_price(db: AsyncSession, branch_menu_item_id: int) -> Decimal:
    """
    Resolve the current price of a branch menu item.

    Availability is not consulted; sold-out items still price.

    Raises:
        InvalidItemError: No branch menu item with that id
    """
    result = await db.execute(
        select(BranchMenuItem.price).where(BranchMenuItem.id == branch_menu_item_id)
    )
    price = result.scalar_one_or_none()
    if price is None:
        raise InvalidItemError("Invalid menu item")
    return Decimal(price)


async def get_table(db: AsyncSession, table_id: int, branch_id: int) -> RestaurantTable:
    """Fetch a table, requiring it to belong to the given branch."""
    result = await db.execute(
        select(RestaurantTable).where(
            RestaurantTable.id == table_id,
            RestaurantTable.branch_id == branch_id,
        )
    )
    table = result.scalar_one_or_none()
    if table is None:
        raise NotFoundError("Invalid table for this branch")
    return table


async def list_tables(db: AsyncSession, branch_id: int) -> list[RestaurantTable]:
    result = await db.execute(
        select(RestaurantTable)
        .where(RestaurantTable.branch_id == branch_id)
        .order_by(RestaurantTable.table_identifier)
    )
    return list(result.scalars().all())


async def get_menu(db: AsyncSession, branch_id: int) -> dict:
    """
    Build the branch menu grouped by category.

    Categories come in display order; items inside a category are sorted by
    name. Each item carries its master item's tags and customization groups
    with their options.
    """
    categories = (
        await db.execute(
            select(MenuCategory)
            .where(MenuCategory.branch_id == branch_id)
            .order_by(MenuCategory.display_order, MenuCategory.id)
        )
    ).scalars().all()

    items = (
        await db.execute(
            select(BranchMenuItem)
            .join(BranchMenuItem.master_item)
            .join(BranchMenuItem.category)
            .where(BranchMenuItem.branch_id == branch_id)
            .order_by(MenuCategory.display_order, MasterMenuItem.name)
            .options(
                selectinload(BranchMenuItem.category),
                selectinload(BranchMenuItem.master_item)
                .selectinload(MasterMenuItem.customization_groups)
                .selectinload(CustomizationGroup.options),
            )
        )
    ).scalars().all()

    by_category: dict[int, list[dict]] = {}
    for item in items:
        by_category.setdefault(item.category_id, []).append(_menu_item_payload(item))

    logger.debug(f"Menu for branch {branch_id}: {len(categories)} categories, {len(items)} items")

    return {
        "categories": [
            {
                "id": category.id,
                "name": category.name,
                "items": by_category.get(category.id, []),
            }
            for category in categories
        ]
    }


def _menu_item_payload(item: BranchMenuItem) -> dict:
    master = item.master_item
    return {
        "branch_menu_item_id": item.id,
        "price": float(item.price),
        "is_available": bool(item.is_available),
        "master_item_id": master.id,
        "name": master.name,
        "description": master.description,
        "image_url": master.image_url,
        "tags": list(master.tags or []),
        "category_id": item.category.id,
        "category_name": item.category.name,
        "customizations": [
            {
                "id": group.id,
                "name": group.name,
                "type": group.selection_type.value,
                "options": [
                    {
                        "id": option.id,
                        "name": option.name,
                        "price": float(option.additional_price),
                    }
                    for option in group.options
                ],
            }
            for group in master.customization_groups
        ],
    }
