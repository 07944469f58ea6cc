"""
Checkout: turns the active cart's reservation into a purchase debit.
"""
import logging
from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from apps.points.models import LedgerEntry
from apps.points.services import BalanceCalculator, LedgerStore

from ..models import Cart
from .reservation import ReservationCalculator

logger = logging.getLogger(__name__)

SHOP_DOMAIN = 'shop'


@dataclass(frozen=True)
class CheckoutResult:
    success: bool
    cart_id: int = None
    amount: int = 0
    entry_id: int = None
    message: str = ''


class CheckoutService:
    """Completes active carts"""

    def __init__(self, ledger_store=None, balance_calculator=None, reservation_calculator=None):
        self.ledger = ledger_store or LedgerStore()
        self.reservations = reservation_calculator or ReservationCalculator()
        self.balance = balance_calculator or BalanceCalculator(
            ledger_store=self.ledger,
            reservation_calculator=self.reservations,
        )

    def complete(self, user_id) -> CheckoutResult:
        with transaction.atomic():
            cart = Cart.objects.select_for_update().filter(
                user_id=user_id, status=Cart.STATUS_ACTIVE
            ).first()
            if cart is None:
                return CheckoutResult(False, message="No active cart")

            reserved = self.reservations.reserved_amount(user_id)
            if reserved <= 0 and not cart.items.exists():
                return CheckoutResult(False, cart.pk, message="Cart is empty")

            self.ledger.invalidate_user_total(user_id)
            if not self.balance.covers_reservation(user_id):
                logger.info("Checkout of cart %s refused: %s points not covered", cart.pk, reserved)
                return CheckoutResult(False, cart.pk, reserved, message="Insufficient points balance")

            entry_id = None
            if reserved > 0:
                entry_id = self.ledger.append(LedgerEntry(
                    user_id=user_id,
                    domain=SHOP_DOMAIN,
                    amount=-reserved,
                    reference_kind=LedgerEntry.KIND_PURCHASE,
                    description=f"Purchase, cart {cart.pk}",
                ))

            cart.status = Cart.STATUS_COMPLETED
            cart.completed_at = timezone.now()
            cart.save(update_fields=['status', 'completed_at'])

        logger.info("Cart %s completed for user %s: -%s points", cart.pk, user_id, reserved)
        return CheckoutResult(True, cart.pk, reserved, entry_id, "Checkout completed")
