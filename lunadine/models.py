"""
SQLAlchemy Database Models

Catalog (branches, menus, tables, promo codes) is read by the ordering flow.
Orders, order items, feedback and service requests are written by it.

Money is stored as NUMERIC(10, 2) and handled as Decimal.
"""

import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from lunadine.database import Base


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def _enum_column(enum_cls):
    return Enum(enum_cls, values_callable=_enum_values, native_enum=False, length=20)


Money = Numeric(10, 2, asdecimal=True)


class BranchStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class SelectionType(str, enum.Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"


class PromoType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class OrderType(str, enum.Enum):
    DINE_IN = "dine-in"
    TAKEAWAY = "takeaway"
    DELIVERY = "delivery"


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PLACED = "placed"
    IN_KITCHEN = "in_kitchen"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Allowed next states; terminal states map to nothing
ORDER_STATUS_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PLACED: frozenset({OrderStatus.IN_KITCHEN, OrderStatus.CANCELLED}),
    OrderStatus.IN_KITCHEN: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


class ServiceRequestType(str, enum.Enum):
    ASSISTANCE = "assistance"
    WATER = "water"
    BILL = "bill"


class ServiceRequestStatus(str, enum.Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"


# =============================================================================
# CATALOG
# =============================================================================

class Branch(Base):
    """
    A physical restaurant location.

    ``settings`` holds branch-scoped configuration such as
    ``vat_percentage`` and ``currency_symbol``.
    """
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    address = Column(String(255), nullable=True)
    status = Column(_enum_column(BranchStatus), default=BranchStatus.OPEN, nullable=False)
    phone = Column(String(20), nullable=True)
    settings = Column(JSON, nullable=False, default=dict)

    categories = relationship(
        "MenuCategory",
        back_populates="branch",
        order_by="MenuCategory.display_order",
    )
    tables = relationship("RestaurantTable", back_populates="branch")

    def __repr__(self):
        return f"<Branch #{self.id} - {self.name} - {self.status.value}>"


class MasterMenuItem(Base):
    """A dish shared across branches; branch rows supply price and availability."""
    __tablename__ = "master_menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    customization_groups = relationship(
        "CustomizationGroup",
        back_populates="master_item",
        order_by="CustomizationGroup.id",
    )


class MenuCategory(Base):
    __tablename__ = "menu_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)

    branch = relationship("Branch", back_populates="categories")


class BranchMenuItem(Base):
    __tablename__ = "branch_menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    master_item_id = Column(Integer, ForeignKey("master_menu_items.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("menu_categories.id"), nullable=False)
    price = Column(Money, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    master_item = relationship("MasterMenuItem")
    category = relationship("MenuCategory")


class CustomizationGroup(Base):
    __tablename__ = "customization_groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    master_item_id = Column(Integer, ForeignKey("master_menu_items.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    selection_type = Column(_enum_column(SelectionType), nullable=False)

    master_item = relationship("MasterMenuItem", back_populates="customization_groups")
    options = relationship(
        "CustomizationOption",
        back_populates="group",
        order_by="CustomizationOption.id",
        cascade="all, delete-orphan",
    )


class CustomizationOption(Base):
    __tablename__ = "customization_options"

    id = Column(Integer, primary_key=True, autoincrement=True)
    group_id = Column(
        Integer,
        ForeignKey("customization_groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(100), nullable=False)
    additional_price = Column(Money, nullable=False, default=0)

    group = relationship("CustomizationGroup", back_populates="options")


class RestaurantTable(Base):
    __tablename__ = "restaurant_tables"

    id = Column(Integer, primary_key=True, autoincrement=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    table_identifier = Column(String(20), nullable=False)
    capacity = Column(Integer, nullable=False, default=4)

    branch = relationship("Branch", back_populates="tables")


class PromoCode(Base):
    """Discount rule keyed by a case-sensitive code. Never mutated by the order flow."""
    __tablename__ = "promo_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), nullable=False, unique=True, index=True)
    type = Column(_enum_column(PromoType), nullable=False)
    value = Column(Money, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    min_order_amount = Column(Money, nullable=False, default=0)

    def __repr__(self):
        return f"<PromoCode {self.code} - {self.type.value} {self.value}>"


# =============================================================================
# ORDERS
# =============================================================================

class Order(Base):
    """
    Order header. Created together with its items in one transaction.

    ``order_uid`` is the identifier handed to clients; ``id`` never leaves
    the database.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_uid = Column(String(40), nullable=False, unique=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    table_id = Column(Integer, ForeignKey("restaurant_tables.id"), nullable=True)
    order_type = Column(_enum_column(OrderType), nullable=False)
    status = Column(
        _enum_column(OrderStatus),
        default=OrderStatus.PLACED,
        nullable=False,
        index=True,
    )

    # =========================================================================
    # CUSTOMER INFORMATION
    # =========================================================================
    customer_name = Column(String(100), nullable=True)
    customer_phone = Column(String(20), nullable=True)
    customer_address = Column(Text, nullable=True)

    # =========================================================================
    # PRICING
    # =========================================================================
    subtotal = Column(Money, nullable=False)
    vat_amount = Column(Money, nullable=False)
    discount_amount = Column(Money, nullable=False, default=0)
    total_amount = Column(Money, nullable=False)
    promo_code_id = Column(Integer, ForeignKey("promo_codes.id"), nullable=True)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    estimated_completion_time = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    completed_at = Column(DateTime, nullable=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    feedback = relationship(
        "Feedback",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Order {self.order_uid} - {self.order_type.value} - {self.status.value}>"


class OrderItem(Base):
    """Line item with the unit price captured at placement time."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    branch_menu_item_id = Column(Integer, ForeignKey("branch_menu_items.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Money, nullable=False)
    customizations = Column(JSON, nullable=False, default=list)

    order = relationship("Order", back_populates="items")


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    overall_rating = Column(Integer, nullable=False)
    food_rating = Column(Integer, nullable=True)
    service_rating = Column(Integer, nullable=True)
    item_feedback = Column(JSON, nullable=False, default=list)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    order = relationship("Order", back_populates="feedback")


class ServiceRequest(Base):
    __tablename__ = "service_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_id = Column(Integer, ForeignKey("restaurant_tables.id"), nullable=False, index=True)
    request_type = Column(_enum_column(ServiceRequestType), nullable=False)
    status = Column(
        _enum_column(ServiceRequestStatus),
        default=ServiceRequestStatus.PENDING,
        nullable=False,
    )
    created_at = Column(DateTime, server_default=func.now())
    fulfilled_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<ServiceRequest #{self.id} - {self.request_type.value} - {self.status.value}>"
