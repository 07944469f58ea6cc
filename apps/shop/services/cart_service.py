"""
Cart operations. Adding an item checks affordability in cart context.
"""
import logging
from typing import Dict, Optional, Tuple

from django.db import IntegrityError, transaction

from apps.points.services import AffordabilityContext, BalanceCalculator

from ..models import Cart, CartItem
from .reservation import ReservationCalculator

logger = logging.getLogger(__name__)


class CartService:
    """Service class for the points cart"""

    def __init__(self, balance_calculator=None, reservation_calculator=None):
        self.reservations = reservation_calculator or ReservationCalculator()
        self.balance = balance_calculator or BalanceCalculator(reservation_calculator=self.reservations)

    def get_active_cart(self, user, create=False) -> Optional[Cart]:
        cart = Cart.objects.filter(user=user, status=Cart.STATUS_ACTIVE).first()
        if cart is None and create:
            try:
                with transaction.atomic():
                    cart = Cart.objects.create(user=user)
            except IntegrityError:
                # Created concurrently
                cart = Cart.objects.get(user=user, status=Cart.STATUS_ACTIVE)
        return cart

    @transaction.atomic
    def add_item(self, user, product_id, unit_cost_points, quantity=1, product_name='') -> Tuple[Optional[CartItem], str]:
        """
        Add ``quantity`` units of a product to the active cart.
        Returns (CartItem, error_message)
        """
        if quantity <= 0:
            return None, "Quantity must be greater than 0"
        if unit_cost_points < 0:
            return None, "Point price must not be negative"

        additional_cost = quantity * unit_cost_points
        # Added units are not reserved yet, even for a product already in the cart
        if not self.balance.can_afford(user.pk, additional_cost, AffordabilityContext.CART):
            logger.info(
                "User %s cannot afford %s x %s (%s points)",
                user.pk, quantity, product_id, additional_cost
            )
            return None, "Insufficient points balance"

        cart = self.get_active_cart(user, create=True)
        item = cart.items.select_for_update().filter(product_id=str(product_id)).first()
        if item is None:
            item = CartItem.objects.create(
                cart=cart,
                product_id=str(product_id),
                product_name=product_name,
                quantity=quantity,
                unit_cost_points=unit_cost_points,
            )
        else:
            item.quantity += quantity
            item.unit_cost_points = unit_cost_points
            item.save(update_fields=['quantity', 'unit_cost_points'])
        return item, ""

    def remove_item(self, user, product_id) -> bool:
        cart = self.get_active_cart(user)
        if cart is None:
            return False
        deleted, _ = cart.items.filter(product_id=str(product_id)).delete()
        return deleted > 0

    def abandon(self, user) -> bool:
        return Cart.objects.filter(user=user, status=Cart.STATUS_ACTIVE).update(
            status=Cart.STATUS_ABANDONED
        ) > 0

    def get_cart_summary(self, user) -> Dict:
        summary = self.balance.get_balance_summary(user.pk)
        return {
            'items': self.reservations.cart_items_with_points(user.pk),
            'reserved': summary.reserved,
            'total': summary.total,
            'available': summary.available,
        }
