from fastapi import APIRouter, Depends, Query, status

from shopsmart.api.deps import get_cart_service, get_principal
from shopsmart.core.exceptions import ValidationError, failure_message
from shopsmart.schemas.cart import CartItemCreate, CartItemUpdate
from shopsmart.services.cart_service import CartService
from shopsmart.services.identity import Principal
from shopsmart.utils.response import success

router = APIRouter()


@router.get("", response_model=dict)
def get_cart(
    principal: Principal = Depends(get_principal),
    cart: CartService = Depends(get_cart_service),
):
    """Get the current user's or guest session's cart"""
    with failure_message("Failed to retrieve cart"):
        data = cart.get_cart(principal)
    return success(data=data, message="Cart retrieved successfully")


@router.post("", response_model=dict)
def add_to_cart(
    cart_item: CartItemCreate,
    principal: Principal = Depends(get_principal),
    cart: CartService = Depends(get_cart_service),
):
    """Add item to cart"""
    with failure_message("Failed to add item to cart"):
        result = cart.add_item(principal, cart_item.product_id, cart_item.quantity)
    message = "Item added to cart successfully" if result["created"] else "Cart item updated successfully"
    return success(
        data={"product_id": result["product_id"], "quantity": result["quantity"]},
        message=message,
    )


@router.put("", response_model=dict)
def update_cart_item(
    update_data: CartItemUpdate,
    principal: Principal = Depends(get_principal),
    cart: CartService = Depends(get_cart_service),
):
    """Update cart item quantity. Zero removes the item."""
    with failure_message("Failed to update cart item"):
        result = cart.set_quantity(principal, update_data.cart_id, update_data.quantity)
    if result["removed"]:
        return success(data={"cart_id": result["cart_id"]}, message="Item removed from cart")
    return success(
        data={"cart_id": result["cart_id"], "quantity": result["quantity"]},
        message="Cart item updated successfully",
    )


@router.delete("", response_model=dict, status_code=status.HTTP_200_OK)
def remove_from_cart(
    cart_id: int = Query(0),
    principal: Principal = Depends(get_principal),
    cart: CartService = Depends(get_cart_service),
):
    """Remove item from cart"""
    if cart_id <= 0:
        raise ValidationError("Cart ID is required")

    with failure_message("Failed to remove item from cart"):
        result = cart.remove_item(principal, cart_id)
    return success(data=result, message="Item removed from cart successfully")
