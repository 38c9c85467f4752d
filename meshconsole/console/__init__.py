"""
Console Navigation

Static route table and navigation menu of the console, plus the API exposing them.
"""

from .routes import (
    DEFAULT_ROUTE,
    NAV_ITEMS,
    PATH_ROUTES,
    active_menu_item,
    is_menu_item_active,
    match_route,
)

__all__ = [
    "DEFAULT_ROUTE",
    "NAV_ITEMS",
    "PATH_ROUTES",
    "active_menu_item",
    "is_menu_item_active",
    "match_route",
]
