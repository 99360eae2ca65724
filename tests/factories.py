from sqlalchemy.orm import Session

from shopsmart.core.security import hash_password
from shopsmart.models.category import Category
from shopsmart.models.product import Product, ProductImage
from shopsmart.models.user import User


def create_category(db: Session, name: str = "Electronics", **kwargs) -> Category:
    category = Category(name=name, is_active=kwargs.pop("is_active", True), **kwargs)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def create_product(
    db: Session,
    name: str,
    price: float,
    *,
    sale_price: float = None,
    stock_quantity: int = 10,
    category: Category = None,
    image_url: str = None,
    **kwargs,
) -> Product:
    product = Product(
        name=name,
        price=price,
        sale_price=sale_price,
        stock_quantity=stock_quantity,
        category_id=category.category_id if category else None,
        is_active=kwargs.pop("is_active", True),
        **kwargs,
    )
    if image_url:
        product.images.append(ProductImage(image_url=image_url, is_primary=True))
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def create_user(
    db: Session,
    email: str = "user@example.com",
    password: str = "StrongPass1",
    **kwargs,
) -> User:
    user = User(
        full_name=kwargs.pop("full_name", "Test User"),
        email=email,
        password_hash=hash_password(password),
        **kwargs,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
