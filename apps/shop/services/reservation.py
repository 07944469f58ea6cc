"""
Points reserved by a user's active cart.

The reservation is what the user has put in the cart but not yet paid for;
it is never written to the ledger until checkout.
"""
from typing import Dict, List

from django.db.models import F, Sum
from django.db.models.functions import Coalesce

from ..models import Cart, CartItem


class ReservationCalculator:
    """Reads reservation amounts from active carts"""

    def _active_items(self, user_id):
        return CartItem.objects.filter(cart__user_id=user_id, cart__status=Cart.STATUS_ACTIVE)

    def _sum(self, queryset) -> int:
        return queryset.aggregate(
            total=Coalesce(Sum(F('quantity') * F('unit_cost_points')), 0)
        )['total']

    def reserved_amount(self, user_id) -> int:
        """Sum of quantity x unit cost over the active cart"""
        return self._sum(self._active_items(user_id))

    def reserved_amount_excluding(self, user_id, product_id) -> int:
        """Reservation without the lines of one product"""
        return self._sum(self._active_items(user_id).exclude(product_id=str(product_id)))

    def is_product_reserved(self, user_id, product_id) -> bool:
        return self._active_items(user_id).filter(product_id=str(product_id)).exists()

    def cart_items_with_points(self, user_id) -> List[Dict]:
        items = []
        for item in self._active_items(user_id).order_by('created_at', 'id'):
            items.append({
                'product_id': item.product_id,
                'product_name': item.product_name,
                'quantity': item.quantity,
                'unit_cost_points': item.unit_cost_points,
                'line_total': item.line_total,
            })
        return items
