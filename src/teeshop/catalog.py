"""Product catalog filtering, sorting and pagination."""

from dataclasses import dataclass, field
from typing import Any, Iterable

from .errors import InvalidInputError
from .models import Product

SORT_PRICE_ASC = "price_asc"
SORT_PRICE_DESC = "price_desc"
SORT_NEWEST = "newest"

SORT_OPTIONS = (SORT_PRICE_ASC, SORT_PRICE_DESC, SORT_NEWEST)


@dataclass
class ProductFilter:
    """
    Optional predicates, ordering and page window for a catalog query.

    Every predicate that is set must hold for a product to be included.
    Color and size are exact, case-sensitive membership tests against the
    product's available lists. Pagination applies only when both page
    (1-based) and page_size are set.
    """

    category: str | None = None
    in_stock: bool | None = None
    color: str | None = None
    size: str | None = None
    gender: str | None = None
    sort: str | None = None
    page: int | None = None
    page_size: int | None = None

    def __post_init__(self) -> None:
        if self.page is not None and self.page < 1:
            raise InvalidInputError("page", "must be at least 1")
        if self.page_size is not None and self.page_size < 1:
            raise InvalidInputError("page_size", "must be at least 1")

    def matches(self, product: Product) -> bool:
        """Return True if the product satisfies every supplied predicate."""
        if self.category and product.category != self.category:
            return False
        if self.in_stock is not None and product.in_stock != self.in_stock:
            return False
        if self.color and self.color not in (product.available_colors or []):
            return False
        if self.size and self.size not in (product.available_sizes or []):
            return False
        if self.gender and product.gender != self.gender:
            return False
        return True

    @property
    def is_paginated(self) -> bool:
        return self.page is not None and self.page_size is not None


@dataclass
class ProductPage:
    """One window of a catalog query plus the unpaginated match count."""

    products: list[Product] = field(default_factory=list)
    total: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "products": [p.to_dict() for p in self.products],
            "total": self.total,
        }


def sort_products(products: list[Product], sort: str | None) -> list[Product]:
    """
    Order products for display.

    Prices are Decimals, so comparisons are numeric. Unknown or missing sort
    keys keep the incoming order. All sorts are stable.
    """
    if sort == SORT_PRICE_ASC:
        return sorted(products, key=lambda p: p.price)
    if sort == SORT_PRICE_DESC:
        return sorted(products, key=lambda p: p.price, reverse=True)
    if sort == SORT_NEWEST:
        return sorted(products, key=lambda p: p.created_at, reverse=True)
    return list(products)


def query_products(
    products: Iterable[Product], product_filter: ProductFilter | None = None
) -> ProductPage:
    """Filter, then sort, then count, then paginate. Pure read."""
    product_filter = product_filter or ProductFilter()

    matched = [p for p in products if product_filter.matches(p)]
    matched = sort_products(matched, product_filter.sort)
    total = len(matched)

    if product_filter.is_paginated:
        start = (product_filter.page - 1) * product_filter.page_size
        matched = matched[start:start + product_filter.page_size]

    return ProductPage(products=matched, total=total)


def catalog_facets(products: Iterable[Product]) -> dict[str, list[str]]:
    """
    Collect the distinct filter values present in the catalog.

    Values keep first-seen order so sizes come out in display order.
    """
    facets: dict[str, dict[str, None]] = {
        "categories": {},
        "colors": {},
        "sizes": {},
        "genders": {},
    }
    for product in products:
        facets["categories"][product.category] = None
        facets["genders"][product.gender] = None
        for color in product.available_colors or []:
            facets["colors"][color] = None
        for size in product.available_sizes or []:
            facets["sizes"][size] = None
    return {name: list(values) for name, values in facets.items()}
