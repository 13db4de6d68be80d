"""
Per-platform order mappers.
"""

from .base import AliasBatch, MapperContext, MapperResult, Resolution, resolve_line_item
from .doordash_mapper import map_doordash_orders
from .square_mapper import map_square_orders
from .toast_mapper import map_toast_orders

__all__ = [
    "AliasBatch", "MapperContext", "MapperResult", "Resolution", "resolve_line_item",
    "map_doordash_orders", "map_square_orders", "map_toast_orders",
]
