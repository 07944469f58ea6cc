"""
Admin approval operations.

Approve, reject and revalue a submission. Approval and rejection call the
domain's points handler directly; a valuation change is written through the
domain's field accessor and announced as ``valuation_settled``.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from apps.points.events import EventKind, get_event_subscriptions
from apps.points.services import AwardResult, Outcome

from ..models import Submission
from ..signals import valuation_settled

logger = logging.getLogger(__name__)


class ApprovalWorkflow:
    """Service class for submission review decisions"""

    def __init__(self, subscriptions=None):
        self.subscriptions = subscriptions or get_event_subscriptions()

    def _load(self, submission_id):
        submission = Submission.objects.filter(pk=submission_id).first()
        if submission is None:
            return None, None, AwardResult(Outcome.INVALID, submission_id, message="Submission not found")
        handler = self.subscriptions.handler_for(submission.domain)
        if handler is None:
            return submission, None, AwardResult(
                Outcome.INVALID, submission.pk,
                message=f"No points handler for domain '{submission.domain}'"
            )
        return submission, handler, None

    def approve(self, submission_id, points: Optional[int] = None) -> AwardResult:
        """
        Approve a submission, crediting ``points`` or the domain's value.

        Approving an already approved submission with explicit points moves
        its contribution to the new amount.
        """
        submission, handler, error = self._load(submission_id)
        if error:
            return error

        if points is None:
            result = handler.award(
                submission.pk, submission.owner_id,
                handler.points_for_trigger(submission, EventKind.FINALIZED)
            )
        else:
            result = handler.approve_with_points(submission.pk, submission.owner_id, points)
        submission.refresh_from_db()
        logger.info("Submission %s approved: %s", submission.pk, result.outcome.value)
        return result

    def reject(self, submission_id, reason='') -> AwardResult:
        submission, handler, error = self._load(submission_id)
        if error:
            return error

        result = handler.revoke(submission.pk, submission.owner_id, reason)
        submission.refresh_from_db()
        logger.info("Submission %s rejected: %s", submission.pk, result.outcome.value)
        return result

    def change_valuation(self, submission_id, value) -> AwardResult:
        """Store a new valuation and let the points handler reconcile it"""
        submission, handler, error = self._load(submission_id)
        if error:
            return error

        field_name = handler.domain.valuation_field
        if not field_name:
            return AwardResult(
                Outcome.INVALID, submission.pk,
                message=f"Domain '{submission.domain}' has no valuation field"
            )
        try:
            value = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return AwardResult(Outcome.INVALID, submission.pk, message=f"Invalid valuation {value!r}")
        if value < 0:
            return AwardResult(Outcome.INVALID, submission.pk, message="Valuation must not be negative")

        handler.field_accessor.set_value(submission, field_name, value, silent=True)
        submission.remember_persisted_state()

        responses = valuation_settled.send(
            sender=Submission, submission_id=submission.pk, domain=submission.domain
        )
        for _receiver, response in responses:
            if isinstance(response, AwardResult):
                return response
        return AwardResult(
            Outcome.NO_OP, submission.pk,
            message=f"Domain '{submission.domain}' does not react to valuation changes"
        )
