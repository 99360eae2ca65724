"""Create the schema and load a small sample catalog.

Run with ``python -m shopsmart.db.init_db``.
"""
from sqlalchemy import func, inspect, select
from sqlalchemy.orm import Session
import structlog

from shopsmart.db.base import Base
from shopsmart.models.category import Category
from shopsmart.models.product import Product, ProductImage

logger = structlog.get_logger()

EXPECTED_TABLES = (
    "users",
    "user_sessions",
    "categories",
    "products",
    "product_images",
    "shopping_cart",
)

SAMPLE_CATEGORIES = [
    {"name": "Electronics", "description": "Phones, laptops and accessories", "sort_order": 1},
    {"name": "Clothing", "description": "Apparel for every season", "sort_order": 2},
    {"name": "Home & Kitchen", "description": "Everything for the home", "sort_order": 3},
    {"name": "Books", "description": "Fiction, non-fiction and textbooks", "sort_order": 4},
]

SAMPLE_PRODUCTS = [
    {
        "category": "Electronics",
        "name": "Wireless Noise-Cancelling Headphones",
        "sku": "ELEC-HP-001",
        "brand": "SoundMax",
        "short_description": "Over-ear, 30h battery",
        "price": 199.99,
        "sale_price": 149.99,
        "stock_quantity": 50,
        "rating": 4.6,
        "review_count": 312,
        "is_featured": True,
        "is_bestseller": True,
        "image": "/images/products/headphones.jpg",
    },
    {
        "category": "Electronics",
        "name": "Smartphone Fast Charger",
        "sku": "ELEC-CH-002",
        "brand": "VoltUp",
        "short_description": "65W USB-C",
        "price": 39.99,
        "stock_quantity": 200,
        "rating": 4.3,
        "review_count": 88,
        "is_new_arrival": True,
        "image": "/images/products/charger.jpg",
    },
    {
        "category": "Clothing",
        "name": "Organic Cotton T-Shirt",
        "sku": "CLTH-TS-001",
        "brand": "GreenThread",
        "short_description": "Classic fit, unisex",
        "price": 24.99,
        "stock_quantity": 120,
        "rating": 4.1,
        "review_count": 45,
        "is_bestseller": True,
        "image": "/images/products/tshirt.jpg",
    },
    {
        "category": "Home & Kitchen",
        "name": "Stainless Steel Cookware Set",
        "sku": "HOME-CW-001",
        "brand": "ChefLine",
        "short_description": "10 pieces, induction ready",
        "price": 259.0,
        "sale_price": 219.0,
        "stock_quantity": 15,
        "rating": 4.8,
        "review_count": 150,
        "is_featured": True,
        "image": "/images/products/cookware.jpg",
    },
    {
        "category": "Books",
        "name": "The Pragmatic Programmer",
        "sku": "BOOK-PP-001",
        "brand": "Addison-Wesley",
        "short_description": "20th anniversary edition",
        "price": 44.95,
        "stock_quantity": 30,
        "rating": 4.9,
        "review_count": 520,
        "is_new_arrival": True,
        "image": "/images/products/pragmatic.jpg",
    },
]


def init_db(engine) -> list:
    """Create all tables and return the names of any expected table still missing."""
    Base.metadata.create_all(bind=engine)

    existing = set(inspect(engine).get_table_names())
    missing = [table for table in EXPECTED_TABLES if table not in existing]
    if missing:
        logger.error("tables_missing", tables=missing)
    else:
        logger.info("tables_verified", count=len(EXPECTED_TABLES))
    return missing


def seed_catalog(db: Session) -> bool:
    """Insert the sample catalog into an empty database. Returns True when data was added."""
    if db.scalar(select(func.count()).select_from(Product)):
        logger.info("catalog_seed_skipped", reason="products already present")
        return False

    categories = {}
    for cat_data in SAMPLE_CATEGORIES:
        category = db.scalar(select(Category).where(Category.name == cat_data["name"]))
        if not category:
            category = Category(**cat_data, is_active=True)
            db.add(category)
            logger.info("category_created", name=cat_data["name"])
        categories[cat_data["name"]] = category
    db.flush()

    for data in SAMPLE_PRODUCTS:
        data = dict(data)
        category = categories[data.pop("category")]
        image_url = data.pop("image")
        product = Product(category_id=category.category_id, is_active=True, **data)
        product.images.append(ProductImage(image_url=image_url, alt_text=product.name, is_primary=True))
        db.add(product)
        logger.info("product_created", sku=product.sku)

    db.commit()
    return True


def catalog_counts(db: Session) -> dict:
    return {
        "categories": db.scalar(select(func.count()).select_from(Category)),
        "products": db.scalar(select(func.count()).select_from(Product)),
        "product_images": db.scalar(select(func.count()).select_from(ProductImage)),
    }


if __name__ == "__main__":
    from shopsmart.core.logging_config import configure_logging
    from shopsmart.db.session import SessionLocal, engine

    configure_logging()
    missing_tables = init_db(engine)
    db = SessionLocal()
    try:
        seed_catalog(db)
        logger.info("database_initialized", missing_tables=missing_tables, **catalog_counts(db))
    finally:
        db.close()
    if missing_tables:
        raise SystemExit(1)
