from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey, DateTime, Text, Index, and_, case
from sqlalchemy.orm import relationship
from datetime import datetime
from shopsmart.db.base_class import Base


class Product(Base):
    __tablename__ = "products"

    product_id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.category_id"), nullable=True)

    name = Column(String(200), nullable=False, index=True)
    sku = Column(String(100), unique=True, nullable=True, index=True)
    brand = Column(String(100), nullable=True)
    short_description = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)

    # Pricing
    price = Column(Float, nullable=False)
    sale_price = Column(Float, nullable=True)

    # Stock & Status
    stock_quantity = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    is_bestseller = Column(Boolean, default=False, nullable=False)
    is_new_arrival = Column(Boolean, default=False, nullable=False)

    # Ratings
    rating = Column(Float, default=0.0, nullable=False)
    review_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    category = relationship("Category", back_populates="products")
    images = relationship("ProductImage", back_populates="product", cascade="all, delete-orphan")


# Composite indexes for performance
Index("idx_product_category_active", Product.category_id, Product.is_active)
Index("idx_product_price_range", Product.sale_price, Product.price)


def display_price_expr():
    """Sale price when present and positive, list price otherwise."""
    return case(
        (and_(Product.sale_price.is_not(None), Product.sale_price > 0), Product.sale_price),
        else_=Product.price,
    )


class ProductImage(Base):
    __tablename__ = "product_images"

    image_id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.product_id"), nullable=False, index=True)
    image_url = Column(String(500), nullable=False)
    alt_text = Column(String(200))
    sort_order = Column(Integer, default=0)
    is_primary = Column(Boolean, default=False)

    # Relationships
    product = relationship("Product", back_populates="images")
