from storefront.models.user import User
from storefront.models.category import Category, ProductCategoryLink
from storefront.models.product import Product, ProductAttribute, ProductImage, ProductVariant
from storefront.models.review import Review
from storefront.models.cart import Cart, CartItem
from storefront.models.address import Address
from storefront.models.promo_code import PromoCode, DiscountType
from storefront.models.order_item import OrderItem
from storefront.models.order import Order, OrderNumberSequence

# add ALL models here
