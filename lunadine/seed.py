"""
Sample Data

Three Dhaka branches with their menus, tables and promo codes, plus a pair
of historical orders. Used by ``scripts/manage.py seed`` and the test suite.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lunadine.models import (
    Branch,
    BranchMenuItem,
    BranchStatus,
    CustomizationGroup,
    CustomizationOption,
    Feedback,
    MasterMenuItem,
    MenuCategory,
    Order,
    OrderItem,
    OrderStatus,
    OrderType,
    PromoCode,
    PromoType,
    RestaurantTable,
    SelectionType,
    ServiceRequest,
    ServiceRequestStatus,
    ServiceRequestType,
)

logger = logging.getLogger(__name__)

BRANCHES = [
    ("Luna dine - Dhanmondi", "House 12, Road 8, Dhanmondi, Dhaka", BranchStatus.OPEN, "+8801234567890", 15),
    ("Luna dine - Gulshan", "Plot 45, Avenue 2, Gulshan, Dhaka", BranchStatus.OPEN, "+8801234567891", 12),
    ("Luna dine - Banani", "Road 11, Block C, Banani, Dhaka", BranchStatus.CLOSED, "+8801234567892", 15),
]

MASTER_ITEMS = [
    ("Spring Rolls", "Crispy vegetable spring rolls with sweet chili sauce", "spring-rolls", ["vegetarian", "popular", "appetizer"]),
    ("Chicken Biryani", "Aromatic basmati rice with tender chicken and exotic spices", "biryani", ["popular", "chef-special", "main-course"]),
    ("Beef Kacchi", "Traditional beef kacchi biryani with premium basmati rice", "kacchi", ["premium", "traditional", "main-course"]),
    ("Chocolate Cake", "Rich chocolate cake with chocolate ganache", "chocolate-cake", ["vegetarian", "sweet", "dessert"]),
    ("Fresh Lemonade", "Freshly squeezed lemon juice with mint", "lemonade", ["refreshing", "vegetarian", "beverage"]),
    ("Chicken Soup", "Hearty chicken soup with vegetables and herbs", "soup", ["soup", "comfort-food", "appetizer"]),
    ("Grilled Fish", "Fresh grilled fish with herbs and lemon", "fish", ["healthy", "grilled", "main-course"]),
    ("Mango Lassi", "Traditional mango yogurt drink", "lassi", ["traditional", "refreshing", "beverage"]),
    ("Vegetable Fried Rice", "Stir-fried rice with fresh vegetables", "fried-rice", ["vegetarian", "rice", "main-course"]),
    ("Ice Cream", "Vanilla ice cream with chocolate sauce", "ice-cream", ["dessert", "sweet", "cold"]),
]

# (branch no., name, display_order); "no." is a 1-based position in the lists above
CATEGORIES = [
    (1, "Appetizers", 1), (1, "Main Course", 2), (1, "Desserts", 3), (1, "Beverages", 4),
    (2, "Starters", 1), (2, "Main Dishes", 2), (2, "Sweets", 3), (2, "Drinks", 4),
    (3, "Appetizers", 1), (3, "Main Course", 2), (3, "Desserts", 3), (3, "Beverages", 4),
]

# (branch no., master item no., category no., price, is_available)
BRANCH_MENU_ITEMS = [
    (1, 1, 1, 150, True),
    (1, 2, 2, 350, True),
    (1, 3, 2, 450, True),
    (1, 4, 3, 200, True),
    (1, 5, 4, 80, False),  # sold out
    (1, 6, 1, 120, True),
    (1, 7, 2, 400, True),
    (1, 8, 4, 100, True),
    (2, 1, 5, 170, True),
    (2, 2, 6, 380, True),
    (2, 4, 7, 220, True),
    (2, 5, 8, 90, True),
    (2, 9, 6, 250, True),
    (2, 10, 7, 150, True),
    (3, 1, 9, 160, False),
    (3, 2, 10, 360, False),
    (3, 4, 11, 210, False),
]

# (master item no., name, selection_type, [(option, additional_price)])
CUSTOMIZATIONS = [
    (1, "Sauce", SelectionType.SINGLE, [("Sweet Chili", 0), ("Soy Garlic", 10), ("Spicy Mayo", 10)]),
    (2, "Spice Level", SelectionType.SINGLE, [("Mild", 0), ("Medium", 0), ("Hot", 0)]),
    (2, "Extra Toppings", SelectionType.MULTIPLE, [("Extra Chicken", 100), ("Boiled Egg", 30), ("Fried Onion", 20)]),
    (3, "Spice Level", SelectionType.SINGLE, [("Medium", 0), ("Hot", 0), ("Extra Hot", 0)]),
    (7, "Cooking Style", SelectionType.SINGLE, [("Grilled", 0), ("Pan-seared", 20), ("Herb-crusted", 40)]),
]

TABLES = {
    1: [("T1", 4), ("T2", 4), ("T3", 2), ("T4", 6), ("T5", 6), ("T6", 8), ("T7", 2), ("T8", 4)],
    2: [("G1", 4), ("G2", 4), ("G3", 6), ("G4", 8), ("G5", 2), ("G6", 4)],
    3: [("B1", 4), ("B2", 6), ("B3", 4)],
}

# (code, type, value, is_active, min_order_amount)
PROMO_CODES = [
    ("LUNA10", PromoType.PERCENTAGE, 10, True, 200),
    ("SAVE20", PromoType.FIXED, 20, True, 300),
    ("WELCOME15", PromoType.PERCENTAGE, 15, True, 150),
    ("EXPIRED", PromoType.PERCENTAGE, 5, False, 100),
]


async def seed_sample_data(db: AsyncSession) -> bool:
    """
    Insert the sample catalog and history.

    Rows reference each other through flushed objects rather than literal
    ids, so the data loads on any backend sequence state.

    Returns:
        bool: False when branches already exist and nothing was written
    """
    existing = (await db.execute(select(func.count(Branch.id)))).scalar() or 0
    if existing:
        logger.info(f"Sample data skipped: {existing} branches already present")
        return False

    branches = [
        Branch(
            name=name,
            address=address,
            status=status,
            phone=phone,
            settings={"currency": "৳", "vat_percentage": vat, "currency_symbol": "৳"},
        )
        for name, address, status, phone, vat in BRANCHES
    ]
    masters = [
        MasterMenuItem(
            name=name,
            description=description,
            image_url=f"https://picsum.photos/seed/{image_seed}/300/200.jpg",
            tags=tags,
        )
        for name, description, image_seed, tags in MASTER_ITEMS
    ]
    db.add_all(branches + masters)
    await db.flush()

    categories = [
        MenuCategory(branch_id=branches[branch_no - 1].id, name=name, display_order=display_order)
        for branch_no, name, display_order in CATEGORIES
    ]
    db.add_all(categories)
    await db.flush()

    menu_items = [
        BranchMenuItem(
            branch_id=branches[branch_no - 1].id,
            master_item_id=masters[master_no - 1].id,
            category_id=categories[category_no - 1].id,
            price=Decimal(price),
            is_available=available,
        )
        for branch_no, master_no, category_no, price, available in BRANCH_MENU_ITEMS
    ]
    db.add_all(menu_items)

    for master_no, name, selection_type, options in CUSTOMIZATIONS:
        db.add(CustomizationGroup(
            master_item_id=masters[master_no - 1].id,
            name=name,
            selection_type=selection_type,
            options=[
                CustomizationOption(name=option, additional_price=Decimal(extra))
                for option, extra in options
            ],
        ))

    tables = [
        RestaurantTable(
            branch_id=branches[branch_no - 1].id,
            table_identifier=identifier,
            capacity=capacity,
        )
        for branch_no, rows in TABLES.items()
        for identifier, capacity in rows
    ]
    db.add_all(tables)

    promos = [
        PromoCode(
            code=code,
            type=promo_type,
            value=Decimal(value),
            is_active=active,
            min_order_amount=Decimal(minimum),
        )
        for code, promo_type, value, active, minimum in PROMO_CODES
    ]
    db.add_all(promos)
    await db.flush()

    _add_history(db, branches, menu_items, tables, promos)
    await db.commit()

    logger.info(
        f"Sample data inserted: {len(BRANCHES)} branches, {len(BRANCH_MENU_ITEMS)} menu items, "
        f"{len(PROMO_CODES)} promo codes"
    )
    return True


def _add_history(db: AsyncSession, branches, menu_items, tables, promos) -> None:
    now = datetime.now().replace(microsecond=0)
    two_days_ago = now - timedelta(days=2)

    completed = Order(
        order_uid="ORD123456789",
        branch_id=branches[0].id,
        table_id=tables[0].id,
        order_type=OrderType.DINE_IN,
        status=OrderStatus.COMPLETED,
        customer_name="John Doe",
        customer_phone="+8801712345678",
        subtotal=Decimal(500),
        vat_amount=Decimal(75),
        discount_amount=Decimal(0),
        total_amount=Decimal(575),
        created_at=two_days_ago,
        completed_at=two_days_ago + timedelta(hours=1),
        items=[
            OrderItem(branch_menu_item_id=menu_items[0].id, quantity=2, unit_price=Decimal(150),
                      customizations=[{"group": "Sauce", "option": "Sweet Chili"}]),
            OrderItem(branch_menu_item_id=menu_items[1].id, quantity=1, unit_price=Decimal(350),
                      customizations=[{"group": "Spice Level", "option": "Medium"},
                                      {"group": "Extra Toppings", "option": "Boiled Egg"}]),
        ],
        feedback=[
            Feedback(
                overall_rating=5,
                food_rating=5,
                service_rating=4,
                item_feedback=[{"item_id": 1, "rating": "thumb_up"}, {"item_id": 2, "rating": "thumb_up"}],
                comment="Excellent food quality and service!",
            )
        ],
    )

    in_kitchen = Order(
        order_uid="ORD987654321",
        branch_id=branches[1].id,
        order_type=OrderType.TAKEAWAY,
        status=OrderStatus.IN_KITCHEN,
        customer_name="Jane Smith",
        customer_phone="+8801812345678",
        subtotal=Decimal(350),
        vat_amount=Decimal(42),
        discount_amount=Decimal(35),
        total_amount=Decimal(357),
        promo_code_id=promos[0].id,
        created_at=now - timedelta(minutes=30),
        estimated_completion_time=now,
        items=[
            OrderItem(branch_menu_item_id=menu_items[10].id, quantity=1, unit_price=Decimal(220), customizations=[]),
            OrderItem(branch_menu_item_id=menu_items[11].id, quantity=1, unit_price=Decimal(90), customizations=[]),
        ],
    )

    db.add_all([completed, in_kitchen])
    db.add_all([
        ServiceRequest(
            table_id=tables[0].id,
            request_type=ServiceRequestType.WATER,
            status=ServiceRequestStatus.FULFILLED,
            created_at=two_days_ago + timedelta(minutes=30),
            fulfilled_at=two_days_ago + timedelta(minutes=35),
        ),
        ServiceRequest(
            table_id=tables[1].id,
            request_type=ServiceRequestType.ASSISTANCE,
            status=ServiceRequestStatus.PENDING,
            created_at=now - timedelta(minutes=10),
        ),
    ])
