from pydantic import BaseModel, Field


class CartItemCreate(BaseModel):
    product_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1)


class CartItemUpdate(BaseModel):
    cart_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=0)
