"""
Event sources for submissions.

Model saves are translated into the two trigger events the points engine
subscribes to, plus a deletion event:

- ``submission_finalized``: status was persisted (entered or left approval)
- ``valuation_settled``: the valuation field was persisted, possibly after
  the finalization event
- ``submission_deleted``: the submission is about to be removed

Receivers get ``submission_id`` and ``domain`` keyword arguments.
"""
import logging

from django.db.models.signals import post_save, pre_delete
from django.dispatch import Signal, receiver

from .models import Submission

logger = logging.getLogger(__name__)

submission_finalized = Signal()
valuation_settled = Signal()
submission_deleted = Signal()

# Written by the points engine behind the instance's back
ENGINE_MANAGED_FIELDS = ['status', 'computed_points', 'rejection_reason', 'metadata']


@receiver(post_save, sender=Submission)
def report_submission_changes(sender, instance, created, raw=False, **kwargs):
    """Emit trigger events for persisted status and valuation changes"""
    if raw:
        return

    if created:
        changed = {
            name for name in ('raw_valuation', 'metadata')
            if getattr(instance, name) not in (None, {}, '')
        }
        # A brand-new submission only matters for approval once it carries a decision
        if instance.status != Submission.STATUS_PENDING_REVIEW:
            changed.add('status')
    else:
        changed = instance.changed_fields()
    instance.remember_persisted_state()

    if changed & {'raw_valuation', 'metadata'}:
        logger.debug("Valuation settled for %s #%s", instance.domain, instance.pk)
        valuation_settled.send(sender=sender, submission_id=instance.pk, domain=instance.domain)

    if 'status' in changed:
        logger.debug("Submission %s #%s finalized as %s", instance.domain, instance.pk, instance.status)
        submission_finalized.send(sender=sender, submission_id=instance.pk, domain=instance.domain)

    if changed:
        instance.refresh_from_db(fields=ENGINE_MANAGED_FIELDS)


@receiver(pre_delete, sender=Submission)
def report_submission_deletion(sender, instance, **kwargs):
    """Give the engine a chance to revoke points before the row disappears"""
    submission_deleted.send(sender=sender, submission_id=instance.pk, domain=instance.domain)
