from shopsmart.models.user import User, UserSession
from shopsmart.models.category import Category
from shopsmart.models.product import Product, ProductImage
from shopsmart.models.cart import CartItem
