"""
                        Services Module

Business logic behind the REST endpoints. Every function takes the
request's AsyncSession as its first argument.

Services:
    - catalog: branch, menu, table and price lookups
    - promo: promo code evaluation
    - pricing: subtotal / VAT / discount / total
    - orders: atomic order placement and status workflow
    - feedback: order ratings
    - service_requests: table service calls
"""

from lunadine.services.orders import place_order
from lunadine.services.pricing import PricedLine, PricedOrder, price_order
from lunadine.services.promo import PromoEvaluation, evaluate_promo

__all__ = [
    "place_order",
    "price_order",
    "PricedLine",
    "PricedOrder",
    "evaluate_promo",
    "PromoEvaluation",
]
