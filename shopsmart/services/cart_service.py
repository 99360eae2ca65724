from datetime import datetime

import structlog
from sqlalchemy import delete, insert, select, update

from shopsmart.core.exceptions import InsufficientStock, NotFound
from shopsmart.db.gateway import Database
from shopsmart.models.cart import CartItem
from shopsmart.models.product import Product, ProductImage, display_price_expr
from shopsmart.services.identity import Principal

logger = structlog.get_logger()


def _owned_by(principal: Principal):
    if principal.is_authenticated:
        return CartItem.user_id == principal.user_id
    return CartItem.session_id == principal.session_id


def format_price(amount: float) -> str:
    return f"${amount:,.2f}"


class CartService:
    """Cart lines keyed by principal. At most one line per (principal, product)."""

    def __init__(self, db: Database):
        self.db = db

    def _locked_product(self, product_id: int, active_only: bool = True):
        stmt = select(Product.product_id, Product.name, Product.stock_quantity).where(
            Product.product_id == product_id
        )
        if active_only:
            stmt = stmt.where(Product.is_active.is_(True))
        return self.db.fetch_one(stmt.with_for_update())

    def _owned_line(self, principal: Principal, cart_id: int):
        return self.db.fetch_one(
            select(CartItem.cart_id, CartItem.product_id, CartItem.quantity).where(
                CartItem.cart_id == cart_id, _owned_by(principal)
            )
        )

    def add_item(self, principal: Principal, product_id: int, quantity: int) -> dict:
        """Add ``quantity`` of a product, merging into an existing line for the same product."""
        with self.db.transaction():
            product = self._locked_product(product_id)
            if not product:
                raise NotFound("Product not found or unavailable")

            if product["stock_quantity"] < quantity:
                raise InsufficientStock()

            existing = self.db.fetch_one(
                select(CartItem.cart_id, CartItem.quantity).where(
                    _owned_by(principal), CartItem.product_id == product_id
                )
            )

            if existing:
                new_quantity = existing["quantity"] + quantity
                if product["stock_quantity"] < new_quantity:
                    raise InsufficientStock("Insufficient stock available for requested quantity")

                self.db.update(
                    update(CartItem)
                    .where(CartItem.cart_id == existing["cart_id"])
                    .values(quantity=new_quantity, updated_at=datetime.utcnow())
                )
                cart_id, created = existing["cart_id"], False
            else:
                cart_id = self.db.insert(
                    insert(CartItem).values(
                        product_id=product_id,
                        quantity=quantity,
                        added_at=datetime.utcnow(),
                        **principal.owner_values(),
                    )
                )
                created = True

        logger.info(
            "cart_item_added",
            cart_id=cart_id,
            product_id=product_id,
            quantity=quantity,
            merged=not created,
            authenticated=principal.is_authenticated,
        )
        return {"cart_id": cart_id, "product_id": product_id, "quantity": quantity, "created": created}

    def set_quantity(self, principal: Principal, cart_id: int, quantity: int) -> dict:
        """Overwrite a line's quantity; zero removes the line."""
        with self.db.transaction():
            line = self._owned_line(principal, cart_id)
            if not line:
                raise NotFound("Cart item not found")

            if quantity == 0:
                self.db.delete(delete(CartItem).where(CartItem.cart_id == cart_id))
                removed = True
            else:
                product = self._locked_product(line["product_id"], active_only=False)
                if not product or product["stock_quantity"] < quantity:
                    raise InsufficientStock()

                self.db.update(
                    update(CartItem)
                    .where(CartItem.cart_id == cart_id)
                    .values(quantity=quantity, updated_at=datetime.utcnow())
                )
                removed = False

        logger.info("cart_item_updated", cart_id=cart_id, quantity=quantity, removed=removed)
        return {"cart_id": cart_id, "quantity": quantity, "removed": removed}

    def remove_item(self, principal: Principal, cart_id: int) -> dict:
        with self.db.transaction():
            if not self._owned_line(principal, cart_id):
                raise NotFound("Cart item not found")
            self.db.delete(delete(CartItem).where(CartItem.cart_id == cart_id))

        logger.info("cart_item_removed", cart_id=cart_id)
        return {"cart_id": cart_id}

    def get_cart(self, principal: Principal) -> dict:
        """Lines of active products, newest first, with live prices and totals."""
        primary_image = (
            select(ProductImage.image_url)
            .where(ProductImage.product_id == Product.product_id, ProductImage.is_primary.is_(True))
            .order_by(ProductImage.sort_order, ProductImage.image_id)
            .limit(1)
            .scalar_subquery()
        )
        # Lines whose product went inactive stay in the table but are not listed.
        cart_items = self.db.fetch_all(
            select(
                CartItem.cart_id,
                CartItem.quantity,
                CartItem.added_at,
                Product.product_id,
                Product.name,
                Product.price,
                Product.sale_price,
                Product.stock_quantity,
                Product.sku,
                primary_image.label("product_image"),
                display_price_expr().label("display_price"),
            )
            .join(Product, CartItem.product_id == Product.product_id)
            .where(_owned_by(principal), Product.is_active.is_(True))
            .order_by(CartItem.added_at.desc(), CartItem.cart_id.desc())
        )

        subtotal = 0.0
        item_count = 0
        for item in cart_items:
            item["line_total"] = round(item["display_price"] * item["quantity"], 2)
            subtotal += item["line_total"]
            item_count += item["quantity"]
        subtotal = round(subtotal, 2)

        return {
            "cart_items": cart_items,
            "summary": {
                "item_count": item_count,
                "subtotal": subtotal,
                "formatted_subtotal": format_price(subtotal),
            },
        }
