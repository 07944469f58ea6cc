import copy

from django.conf import settings
from django.db import models


class Submission(models.Model):
    """User-authored work item (realization, invoice) subject to approval"""
    STATUS_PENDING_REVIEW = 'pending_review'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'

    STATUSES = [
        (STATUS_PENDING_REVIEW, 'Pending Review'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    # Fields whose persisted changes are reported to the points engine
    TRACKED_FIELDS = ('status', 'raw_valuation', 'metadata')

    domain = models.CharField(max_length=30, db_index=True)
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='submissions')
    title = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_PENDING_REVIEW)
    raw_valuation = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    computed_points = models.IntegerField(default=0)
    rejection_reason = models.TextField(blank=True, default='')
    metadata = models.JSONField(default=dict, blank=True)  # Generic field storage
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'submissions'
        ordering = ['-created_at']
        verbose_name = 'Submission'
        verbose_name_plural = 'Submissions'
        indexes = [
            models.Index(fields=['owner', 'status'], name='submissions_owner_i_5d1f2a_idx'),
            models.Index(fields=['domain', 'status'], name='submissions_domain_8c3e7b_idx'),
        ]

    def __str__(self):
        return f"{self.domain} #{self.pk} ({self.get_status_display()})"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance.remember_persisted_state()
        return instance

    def refresh_from_db(self, using=None, fields=None, **kwargs):
        super().refresh_from_db(using=using, fields=fields, **kwargs)
        self.remember_persisted_state(fields)

    def remember_persisted_state(self, fields=None):
        """
        Snapshot tracked fields so the next save can report what changed.

        Only loaded values are read; deferred fields stay deferred and are
        snapshotted when they are fetched.
        """
        state = getattr(self, '_persisted_state', None) or {}
        for name in self.TRACKED_FIELDS:
            if fields is not None and name not in fields:
                continue
            if name in self.__dict__:
                state[name] = copy.deepcopy(self.__dict__[name])
        self._persisted_state = state

    def changed_fields(self):
        """Tracked fields that differ from the last persisted snapshot"""
        persisted = getattr(self, '_persisted_state', None)
        if persisted is None:
            return set(self.TRACKED_FIELDS)
        changed = set()
        for name in self.TRACKED_FIELDS:
            if name not in self.__dict__:
                continue
            if name not in persisted or persisted[name] != self.__dict__[name]:
                changed.add(name)
        return changed

    @property
    def is_approved(self):
        return self.status == self.STATUS_APPROVED

    @property
    def is_pending(self):
        return self.status == self.STATUS_PENDING_REVIEW
