from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship
from shopsmart.db.base_class import Base


class Category(Base):
    __tablename__ = "categories"

    category_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(String(500))
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)

    # Relationships
    products = relationship("Product", back_populates="category")
