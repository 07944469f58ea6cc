from .cart_views import add_cart_item, checkout, get_cart

__all__ = [
    'get_cart',
    'add_cart_item',
    'checkout',
]
