import io
import csv
from typing import List

from ..models.models import Product

ALL_CATEGORIES = 'All'


def categories(products: List[Product]) -> List[str]:
    """'All' followed by each category in the order it first appears."""
    seen = dict.fromkeys(product.category for product in products)
    return [ALL_CATEGORIES, *seen]


def filter_products(products: List[Product], search: str = '', category: str = ALL_CATEGORIES) -> List[Product]:
    search = search.lower()
    return [
        product for product in products
        if search in product.name.lower()
        and (category == ALL_CATEGORIES or product.category == category)
    ]


def in_stock(products: List[Product]) -> List[Product]:
    return [product for product in products if product.in_stock]


def export_products_csv(products: List[Product], currency: str) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(['Name', 'Category', 'Price', 'Stock'])
    for product in products:
        writer.writerow([
            product.name,
            product.category,
            f'{currency}{product.unit_price}',
            'In Stock' if product.in_stock else 'Out of Stock',
        ])
    return output.getvalue().encode()
