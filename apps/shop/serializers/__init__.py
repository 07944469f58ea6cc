from .cart_serializers import AddCartItemSerializer, CartItemSerializer

__all__ = [
    'AddCartItemSerializer',
    'CartItemSerializer',
]
