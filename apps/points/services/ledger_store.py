"""
Append-only ledger store.

Idempotency for submission-bound entries is not decided here: the awarding
engine reads the outstanding contribution and the latest logical version
under a row lock, and this store turns a lost insert race on
``(submission, logical_version)`` into ``LedgerWriteConflict``.
"""
import logging

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Max, Sum
from django.db.models.functions import Coalesce

from ..exceptions import LedgerWriteConflict, StorageFault
from ..models import LedgerEntry

logger = logging.getLogger(__name__)


class LedgerStore:
    """Reads and appends ledger entries"""

    CACHE_KEY_TEMPLATE = 'points:ledger_total:{user_id}'

    def __init__(self, cache_backend=None, cache_timeout=None):
        self.cache = cache_backend or cache
        self.cache_timeout = (
            cache_timeout if cache_timeout is not None
            else getattr(settings, 'POINTS_BALANCE_CACHE_TIMEOUT', 300)
        )

    def append(self, entry):
        """Insert an unsaved LedgerEntry and return its id"""
        if entry.pk is not None:
            raise ValueError("Only new ledger entries can be appended")

        try:
            with transaction.atomic():
                entry.save()
        except IntegrityError as exc:
            if entry.submission_id is not None:
                raise LedgerWriteConflict(entry.submission_id, entry.logical_version) from exc
            raise StorageFault(f"Ledger write failed for user {entry.user_id}") from exc
        except DatabaseError as exc:
            raise StorageFault(f"Ledger write failed for user {entry.user_id}") from exc

        logger.info(
            "Ledger entry %s appended: user=%s submission=%s kind=%s amount=%+d version=%s",
            entry.pk, entry.user_id, entry.submission_id, entry.reference_kind,
            entry.amount, entry.logical_version
        )

        user_id = entry.user_id
        self.invalidate_user_total(user_id)
        # A concurrent reader may re-cache the pre-commit total before we commit
        transaction.on_commit(lambda: self.invalidate_user_total(user_id))
        return entry.pk

    def sum_for_user(self, user_id):
        """Total of all ledger amounts for a user (cached)"""
        key = self._cache_key(user_id)
        total = self.cache.get(key)
        if total is None:
            total = LedgerEntry.objects.filter(user_id=user_id).aggregate(
                total=Coalesce(Sum('amount'), 0)
            )['total']
            self.cache.set(key, total, self.cache_timeout)
        return total

    def sum_for_submission(self, submission_id):
        """Outstanding (net) contribution of one submission"""
        return LedgerEntry.objects.filter(submission_id=submission_id).aggregate(
            total=Coalesce(Sum('amount'), 0)
        )['total']

    def latest_version(self, submission_id):
        """Highest logical version written for a submission, 0 if none"""
        return LedgerEntry.objects.filter(submission_id=submission_id).aggregate(
            version=Coalesce(Max('logical_version'), 0)
        )['version']

    def lifetime_earned(self, user_id):
        """Net points earned from submissions, unaffected by spending"""
        return LedgerEntry.objects.filter(
            user_id=user_id,
            reference_kind__in=LedgerEntry.SUBMISSION_KINDS
        ).aggregate(total=Coalesce(Sum('amount'), 0))['total']

    def entries_for_submission(self, submission_id):
        return LedgerEntry.objects.filter(submission_id=submission_id).order_by('logical_version', 'id')

    def entries_for_user(self, user_id, reference_kind=None):
        queryset = LedgerEntry.objects.filter(user_id=user_id).select_related('submission')
        if reference_kind:
            queryset = queryset.filter(reference_kind=reference_kind)
        return queryset

    def invalidate_user_total(self, user_id):
        self.cache.delete(self._cache_key(user_id))

    def _cache_key(self, user_id):
        return self.CACHE_KEY_TEMPLATE.format(user_id=user_id)
