"""
                Luna Dine Ordering Backend

Digital-menu ordering API for a multi-branch restaurant: menus, tables,
priced orders with VAT and promo codes, feedback and table service requests.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
