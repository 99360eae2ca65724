"""Product listing: filters, sorting and pagination over the active catalog."""
import math
from dataclasses import dataclass, asdict
from typing import Optional

from sqlalchemy import func, or_, select

from shopsmart.core.config import settings
from shopsmart.db.gateway import Database
from shopsmart.models.category import Category
from shopsmart.models.product import Product, ProductImage, display_price_expr

DEFAULT_SORT = "featured"

SORT_OPTIONS = [
    {"value": "featured", "label": "Featured"},
    {"value": "price_low_high", "label": "Price: Low to High"},
    {"value": "price_high_low", "label": "Price: High to Low"},
    {"value": "rating", "label": "Highest Rated"},
    {"value": "newest", "label": "Newest First"},
    {"value": "name", "label": "Name A-Z"},
]
SORT_KEYS = {option["value"] for option in SORT_OPTIONS}

LIKE_ESCAPE = "/"


def _substring_pattern(term: str) -> str:
    for char in (LIKE_ESCAPE, "%", "_"):
        term = term.replace(char, LIKE_ESCAPE + char)
    return f"%{term}%"


@dataclass
class ProductFilters:
    search: str = ""
    category: str = ""
    sort: str = DEFAULT_SORT
    page: int = 1
    limit: int = settings.PRODUCTS_DEFAULT_LIMIT
    featured: Optional[bool] = None
    bestseller: Optional[bool] = None
    new_arrival: Optional[bool] = None

    def __post_init__(self):
        self.search = (self.search or "").strip()
        self.category = (self.category or "").strip()
        if self.sort not in SORT_KEYS:
            self.sort = DEFAULT_SORT
        self.page = max(1, int(self.page or 1))
        if self.limit is None:
            self.limit = settings.PRODUCTS_DEFAULT_LIMIT
        self.limit = min(settings.PRODUCTS_MAX_LIMIT, max(1, int(self.limit)))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _primary_image():
    return (
        select(ProductImage.image_url)
        .where(ProductImage.product_id == Product.product_id, ProductImage.is_primary.is_(True))
        .order_by(ProductImage.sort_order, ProductImage.image_id)
        .limit(1)
        .correlate(Product)
        .scalar_subquery()
    )


def _order_by(sort: str, display_price):
    if sort == "price_low_high":
        return [display_price.asc()]
    if sort == "price_high_low":
        return [display_price.desc()]
    if sort == "rating":
        return [Product.rating.desc(), Product.review_count.desc()]
    if sort == "newest":
        return [Product.created_at.desc()]
    if sort == "name":
        return [Product.name.asc()]
    return [Product.is_featured.desc(), Product.is_bestseller.desc(), Product.rating.desc()]


def build_product_query(filters: ProductFilters):
    display_price = display_price_expr()
    stmt = (
        select(
            Product.product_id,
            Product.name,
            Product.description,
            Product.short_description,
            Product.price,
            Product.sale_price,
            Product.stock_quantity,
            Product.rating,
            Product.review_count,
            Product.is_featured,
            Product.is_bestseller,
            Product.is_new_arrival,
            Product.brand,
            Product.sku,
            Category.name.label("category_name"),
            Product.category_id,
            _primary_image().label("primary_image"),
            display_price.label("display_price"),
        )
        .select_from(Product)
        .outerjoin(Category, Product.category_id == Category.category_id)
        .where(Product.is_active.is_(True))
    )

    if filters.search:
        pattern = _substring_pattern(filters.search)
        stmt = stmt.where(
            or_(
                Product.name.ilike(pattern, escape=LIKE_ESCAPE),
                Product.description.ilike(pattern, escape=LIKE_ESCAPE),
                Product.brand.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )

    if filters.category:
        stmt = stmt.where(Category.name == filters.category)

    for column, flag in (
        (Product.is_featured, filters.featured),
        (Product.is_bestseller, filters.bestseller),
        (Product.is_new_arrival, filters.new_arrival),
    ):
        if flag is not None:
            stmt = stmt.where(column.is_(flag))

    # Product id breaks ties so page boundaries are stable.
    return stmt.order_by(*_order_by(filters.sort, display_price), Product.product_id.asc())


def count_products(db: Database, stmt) -> int:
    return db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0


def active_categories(db: Database) -> list:
    return db.fetch_all(
        select(Category.category_id, Category.name, Category.description)
        .where(Category.is_active.is_(True))
        .order_by(Category.sort_order, Category.name)
    )


def list_products(db: Database, filters: ProductFilters) -> dict:
    stmt = build_product_query(filters)

    total_products = count_products(db, stmt)
    products = db.fetch_all(stmt.limit(filters.limit).offset(filters.offset))

    total_pages = math.ceil(total_products / filters.limit)

    applied = asdict(filters)
    for key in ("page", "limit"):
        applied.pop(key)

    return {
        "products": products,
        "pagination": {
            "current_page": filters.page,
            "total_pages": total_pages,
            "total_products": total_products,
            "products_per_page": filters.limit,
            "has_next": filters.page < total_pages,
            "has_prev": filters.page > 1,
        },
        "filters": {
            "categories": active_categories(db),
            "sort_options": SORT_OPTIONS,
        },
        "applied_filters": applied,
    }
