from django.conf import settings
from django.db import models


class LedgerEntry(models.Model):
    """Immutable, signed points transaction"""
    KIND_AWARD = 'award'
    KIND_REVOKE = 'revoke'
    KIND_ADJUST = 'adjust'
    KIND_PURCHASE = 'purchase'

    REFERENCE_KINDS = [
        (KIND_AWARD, 'Points Awarded'),
        (KIND_REVOKE, 'Points Revoked'),
        (KIND_ADJUST, 'Valuation Adjustment'),
        (KIND_PURCHASE, 'Purchase'),
    ]

    # Kinds that move a submission's contribution; purchases do not
    SUBMISSION_KINDS = (KIND_AWARD, KIND_REVOKE, KIND_ADJUST)

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='ledger_entries')
    submission = models.ForeignKey(
        'submissions.Submission', on_delete=models.SET_NULL,
        null=True, blank=True, related_name='ledger_entries'
    )
    domain = models.CharField(max_length=30, blank=True)
    amount = models.IntegerField()  # Positive for credits, negative for debits
    reference_kind = models.CharField(max_length=20, choices=REFERENCE_KINDS)
    logical_version = models.PositiveIntegerField(null=True, blank=True)  # Per-submission write sequence
    description = models.CharField(max_length=200, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'points_ledger_entries'
        ordering = ['-created_at', '-id']
        verbose_name = 'Ledger Entry'
        verbose_name_plural = 'Ledger Entries'
        constraints = [
            models.UniqueConstraint(
                fields=['submission', 'logical_version'],
                name='unique_submission_ledger_version',
            ),
        ]
        indexes = [
            models.Index(fields=['user', 'created_at'], name='points_ledg_user_id_3b9c1e_idx'),
            models.Index(fields=['submission', 'reference_kind'], name='points_ledg_submiss_7a2d4f_idx'),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.amount:+d} points ({self.get_reference_kind_display()})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Ledger entries are append-only and cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Ledger entries are append-only and cannot be deleted")

    @property
    def is_credit(self):
        return self.amount > 0

    @property
    def is_debit(self):
        return self.amount < 0
