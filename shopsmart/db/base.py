from shopsmart.db.base_class import Base


# IMPORT ALL MODELS HERE (THIS REGISTERS THEM WITH Base.metadata)
from shopsmart.models.user import User, UserSession
from shopsmart.models.category import Category
from shopsmart.models.product import Product, ProductImage
from shopsmart.models.cart import CartItem
