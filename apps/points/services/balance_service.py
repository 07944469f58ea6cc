"""
Balance summary and affordability.

    total     = sum of the user's ledger entries (purchases included)
    pending   = computed points of submissions still awaiting review
    reserved  = points held by the active cart
    available = total - reserved
"""
import logging
from dataclasses import asdict, dataclass
from enum import Enum

from django.apps import apps
from django.contrib.auth import get_user_model
from django.db.models import Sum
from django.db.models.functions import Coalesce

from .ledger_store import LedgerStore

logger = logging.getLogger(__name__)


class AffordabilityContext(str, Enum):
    CATALOG = 'catalog'
    CART = 'cart'


@dataclass(frozen=True)
class BalanceSummary:
    total: int
    pending: int
    reserved: int
    available: int
    lifetime_earned: int = 0

    def as_dict(self):
        return asdict(self)


class BalanceCalculator:
    """Derives balances from the ledger, live submissions and the cart"""

    def __init__(self, ledger_store=None, reservation_calculator=None):
        self.ledger = ledger_store or LedgerStore()
        if reservation_calculator is None:
            from apps.shop.services.reservation import ReservationCalculator
            reservation_calculator = ReservationCalculator()
        self.reservations = reservation_calculator

    def get_balance_summary(self, user_id) -> BalanceSummary:
        total = self.ledger.sum_for_user(user_id)
        reserved = self.reservations.reserved_amount(user_id)
        return BalanceSummary(
            total=total,
            pending=self.pending_points(user_id),
            reserved=reserved,
            available=total - reserved,
            lifetime_earned=self.ledger.lifetime_earned(user_id),
        )

    def pending_points(self, user_id) -> int:
        Submission = apps.get_model('submissions', 'Submission')
        return Submission.objects.filter(
            owner_id=user_id,
            status=Submission.STATUS_PENDING_REVIEW
        ).aggregate(total=Coalesce(Sum('computed_points'), 0))['total']

    def can_afford(self, user_id, cost, context=AffordabilityContext.CATALOG, product_id=None) -> bool:
        """
        Whether the user can pay ``cost`` points.

        In the catalog the cost is compared with the available balance. In the
        cart the reservation already holds the cart's items, so a product that
        is in the cart is not subtracted a second time. Without a product, or
        for a product not yet in the cart, the cost comes on top of the
        reservation.
        """
        context = AffordabilityContext(context)
        if cost <= 0:
            return True
        if not self._may_spend(user_id):
            return False

        if context == AffordabilityContext.CATALOG:
            return cost <= self.get_balance_summary(user_id).available

        total = self.ledger.sum_for_user(user_id)
        reserved = self.reservations.reserved_amount(user_id)
        if product_id is not None and self.reservations.is_product_reserved(user_id, product_id):
            return reserved <= total
        return reserved + cost <= total

    def covers_reservation(self, user_id) -> bool:
        """Whether the ledger total pays for everything in the active cart"""
        reserved = self.reservations.reserved_amount(user_id)
        if reserved <= 0:
            return True
        if not self._may_spend(user_id):
            return False
        return reserved <= self.ledger.sum_for_user(user_id)

    def _may_spend(self, user_id):
        user = get_user_model().objects.filter(pk=user_id).first()
        if user is None:
            return False
        if user.is_pending_approval:
            logger.debug("User %s is awaiting registration approval; purchase blocked", user_id)
            return False
        return True
