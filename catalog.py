"""
Stock rules for catalog products.

A product tracks stock in exactly one of three ways, chosen by its category:

    categoryType   size type   stock kept in
    chaussures     numeric     sizes  [{size, stock}]
    vetements      letter      sizes  [{size, stock}]
    bijoux         none        colors [{color, colorCode, stock}]
    autre          none        stock  (flat integer)
"""
import logging
from typing import List, Optional

from database import CATEGORIES, PRODUCTS, get_document, update_document
from errors import NotFound
from schemas import Category, Product

logger = logging.getLogger(__name__)

SIZES = "sizes"
COLORS = "colors"
FLAT = "stock"

_STOCK_MODES = {
    "chaussures": SIZES,
    "vetements": SIZES,
    "bijoux": COLORS,
    "autre": FLAT,
}

_SIZE_TYPES = {
    "chaussures": "numeric",
    "vetements": "letter",
}

LETTER_SIZES = ["XS", "S", "M", "L", "XL", "XXL", "XXXL"]


def stock_mode_for(category_type: Optional[str]) -> str:
    return _STOCK_MODES.get(category_type or "autre", FLAT)


def size_type_for(category_type: Optional[str]) -> str:
    return _SIZE_TYPES.get(category_type or "", "none")


def default_sizes(size_type: str) -> List[str]:
    if size_type == "numeric":
        return [str(n) for n in range(36, 56)]
    if size_type == "letter":
        return list(LETTER_SIZES)
    return []


def _category_of(product: Product) -> Optional[Category]:
    if not product.category:
        return None
    try:
        doc = get_document(CATEGORIES, product.category)
    except NotFound:
        return None
    return Category.from_doc(doc) if doc else None


def product_stock_mode(product: Product) -> str:
    category = _category_of(product)
    if category and category.category_type:
        return stock_mode_for(category.category_type)
    # No usable category: go by the shape the product was saved with
    if product.sizes:
        return SIZES
    if product.colors:
        return COLORS
    return FLAT


def decrement_stock(product_id: str, quantity: int, size: Optional[str] = None,
                    color: Optional[str] = None) -> bool:
    """Remove `quantity` units from a product, never below zero.

    Returns False when the product or the requested size/color does not exist.
    """
    try:
        doc = get_document(PRODUCTS, product_id)
    except NotFound:
        doc = None
    if not doc:
        logger.warning(f"Stock decrement skipped, unknown product {product_id}")
        return False
    product = Product.from_doc(doc)
    mode = product_stock_mode(product)

    if mode == SIZES:
        entries = product.sizes or []
        match = next((e for e in entries if e.size == size), None)
        if match is None:
            logger.warning(f"Stock decrement skipped, product {product_id} has no size {size!r}")
            return False
        match.stock = max(0, match.stock - quantity)
        fields = {"sizes": [e.to_document() for e in entries]}
    elif mode == COLORS:
        entries = product.colors or []
        match = next((e for e in entries if e.color == color), None)
        if match is None or match.stock is None:
            logger.warning(f"Stock decrement skipped, product {product_id} has no stock for color {color!r}")
            return False
        match.stock = max(0, match.stock - quantity)
        fields = {"colors": [e.to_document() for e in entries]}
    else:
        if product.stock is None:
            return False
        fields = {"stock": max(0, product.stock - quantity)}

    return update_document(PRODUCTS, product_id, fields)
