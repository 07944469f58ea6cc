"""
Shop services module.
"""
from .reservation import ReservationCalculator
from .cart_service import CartService
from .checkout import CheckoutResult, CheckoutService

__all__ = [
    'ReservationCalculator',
    'CartService',
    'CheckoutResult',
    'CheckoutService',
]
