"""
Awarding engine.

Template-method core shared by every submission domain. The fixed algorithm
lives here: lock the submission row, read its outstanding contribution and
latest ledger version, decide, append at most one ledger entry. Domain
handlers override the hooks (`describe`, `points_for_trigger`,
`after_write`) and nothing else.

Invariant kept by every operation: the net ledger contribution of a
submission equals its approved point value, 0 when it is not approved.
"""
import logging

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.submissions.models import Submission

from ..events import EventKind
from ..exceptions import LedgerWriteConflict, StorageFault
from ..models import LedgerEntry
from .calculators import ZeroPointsCalculator
from .ledger_store import LedgerStore
from .results import AwardResult, Outcome

logger = logging.getLogger(__name__)


class AwardingEngine:
    """Awards, revokes and reconciles submission points for one domain"""

    # One retry after a lost insert race, then the winner's write stands
    MAX_ATTEMPTS = 2

    def __init__(self, domain_config, ledger_store=None, max_points=None):
        self.domain = domain_config
        self.domain_key = domain_config.key
        self.ledger = ledger_store or LedgerStore()
        self.calculator = domain_config.calculator or ZeroPointsCalculator(domain_config.key)
        self.field_accessor = domain_config.field_accessor
        self.max_points = (
            max_points if max_points is not None
            else getattr(settings, 'POINTS_MAX_PER_SUBMISSION', 100000)
        )

    # Public operations

    def award(self, submission_id, user_id, points):
        """Credit an approved submission once; repeated calls are no-ops"""
        invalid = self._validate_points(submission_id, points)
        if invalid:
            return invalid

        def write(submission, outstanding, version):
            return self._award_locked(submission, user_id, points, outstanding, version)

        return self._execute('award', submission_id, user_id, write)

    def revoke(self, submission_id, user_id, reason=''):
        """Reject a submission and reverse whatever it still contributes"""

        def write(submission, outstanding, version):
            return self._revoke_locked(submission, user_id, outstanding, version, reason=reason)

        return self._execute('revoke', submission_id, user_id, write)

    def reconcile_valuation_change(self, submission_id, user_id, new_points):
        """
        Bring an approved submission's contribution to ``new_points``.

        Pending and rejected submissions only get ``computed_points`` updated.
        """
        invalid = self._validate_points(submission_id, new_points)
        if invalid:
            return invalid

        def write(submission, outstanding, version):
            return self._reconcile_locked(submission, user_id, new_points, outstanding, version)

        return self._execute('reconcile', submission_id, user_id, write)

    def approve_with_points(self, submission_id, user_id, points):
        """Approve with an explicit amount, moving an existing contribution to it"""
        invalid = self._validate_points(submission_id, points)
        if invalid:
            return invalid

        def write(submission, outstanding, version):
            if submission.is_approved and outstanding > 0:
                return self._reconcile_locked(submission, user_id, points, outstanding, version)
            return self._award_locked(submission, user_id, points, outstanding, version)

        return self._execute('approve', submission_id, user_id, write)

    def handle_trigger(self, event_kind, submission_id):
        """
        Converge a submission's ledger contribution with its current state.

        Status, valuation and outstanding contribution are all read under the
        submission's row lock, so concurrent triggers of any kind serialize
        and the last one writes against what the earlier ones committed.
        Safe to call any number of times for the same change.
        """
        event_kind = EventKind(event_kind)

        def write(submission, outstanding, version):
            user_id = submission.owner_id

            if event_kind == EventKind.DELETED:
                if outstanding <= 0:
                    return AwardResult(Outcome.NO_OP, submission.pk, message="Nothing outstanding to revoke")
                return self._revoke_locked(submission, user_id, outstanding, version, reason='deleted')

            if submission.is_approved:
                points = self.points_for_trigger(submission, event_kind)
                invalid = self._validate_points(submission.pk, points)
                if invalid:
                    return invalid
                if outstanding == 0:
                    return self._award_locked(submission, user_id, points, outstanding, version)
                return self._reconcile_locked(submission, user_id, points, outstanding, version)

            if outstanding > 0:
                if submission.is_pending:
                    # Sent back to review: the contribution goes, the status stays
                    return self._revoke_locked(submission, user_id, outstanding, version)
                return self._revoke_locked(
                    submission, user_id, outstanding, version,
                    reason=self.field_accessor.get_rejection_reason(submission)
                )

            if event_kind == EventKind.VALUATION_SETTLED:
                points = self.calculator.compute(submission)
                invalid = self._validate_points(submission.pk, points)
                if invalid:
                    return invalid
                return self._reconcile_locked(submission, user_id, points, outstanding, version)

            return AwardResult(
                Outcome.NO_OP, submission.pk, message=f"Nothing to do for {submission.status} submission"
            )

        return self._execute(f'trigger:{event_kind.value}', submission_id, None, write)

    # Hooks

    def points_for_trigger(self, submission, event_kind):
        """Points an approved submission should currently contribute"""
        if event_kind == EventKind.VALUATION_SETTLED:
            return self.calculator.compute(submission)
        if submission.computed_points > 0:
            return submission.computed_points
        return self.calculator.compute(submission)

    def before_award(self, submission, points):
        """Called under the row lock before a submission is approved"""

    def describe(self, submission, reference_kind, amount):
        label = submission.title or f"{self.domain.display_name} #{submission.pk}"
        if reference_kind == LedgerEntry.KIND_AWARD:
            return f"Points for approved {self.domain.display_name.lower()}: {label}"
        if reference_kind == LedgerEntry.KIND_REVOKE:
            return f"Points revoked: {label}"
        return f"Points adjusted ({amount:+d}): {label}"

    def after_write(self, submission, entry):
        """Called inside the transaction after an entry was appended"""

    # Template internals

    def _award_locked(self, submission, user_id, points, outstanding, version):
        if outstanding > 0:
            return AwardResult(
                Outcome.ALREADY_APPLIED, submission.pk, 0,
                message=f"{outstanding} points already outstanding"
            )
        self.before_award(submission, points)
        self._update_submission(submission, status=Submission.STATUS_APPROVED, computed_points=points)
        if points == 0:
            return AwardResult(Outcome.NO_OP, submission.pk, 0, message="Approved without points")
        return self._append(submission, user_id, LedgerEntry.KIND_AWARD, points, version, Outcome.APPLIED)

    def _revoke_locked(self, submission, user_id, outstanding, version, reason=None):
        # reason=None leaves status and rejection reason as they are
        if reason is not None:
            self._update_submission(submission, status=Submission.STATUS_REJECTED)
            self.field_accessor.set_rejection_reason(submission, reason, silent=True)
        if outstanding <= 0:
            return AwardResult(Outcome.NO_OP, submission.pk, 0, message="Nothing outstanding to revoke")
        return self._append(submission, user_id, LedgerEntry.KIND_REVOKE, -outstanding, version, Outcome.APPLIED)

    def _reconcile_locked(self, submission, user_id, new_points, outstanding, version):
        self._update_submission(submission, computed_points=new_points)
        if not submission.is_approved:
            return AwardResult(
                Outcome.NO_OP, submission.pk, 0,
                message=f"Submission is {submission.status}; computed points set to {new_points}"
            )
        delta = new_points - outstanding
        if delta == 0:
            return AwardResult(Outcome.NO_OP, submission.pk, 0, message="Contribution already up to date")
        return self._append(submission, user_id, LedgerEntry.KIND_ADJUST, delta, version, Outcome.ADJUSTED)

    def _execute(self, operation, submission_id, user_id, write):
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            try:
                with transaction.atomic():
                    submission = self._lock_submission(submission_id)
                    rejected = self._check_target(submission, submission_id, user_id)
                    if rejected:
                        result = rejected
                    else:
                        outstanding = self.ledger.sum_for_submission(submission.pk)
                        version = self.ledger.latest_version(submission.pk) + 1
                        result = write(submission, outstanding, version)
            except LedgerWriteConflict as exc:
                logger.info(
                    "[%s] %s conflict on attempt %d: %s",
                    self.domain_key, operation, attempt, exc
                )
                continue
            except StorageFault:
                logger.exception(
                    "[%s] %s failed for submission %s (user %s)",
                    self.domain_key, operation, submission_id, user_id
                )
                raise
            except DatabaseError as exc:
                logger.exception(
                    "[%s] %s failed for submission %s (user %s)",
                    self.domain_key, operation, submission_id, user_id
                )
                raise StorageFault(f"{operation} failed for submission {submission_id}") from exc

            self._log_result(operation, result)
            return result

        result = AwardResult(
            Outcome.ALREADY_APPLIED, submission_id,
            message="A concurrent write for this submission won"
        )
        self._log_result(operation, result)
        return result

    def _lock_submission(self, submission_id):
        return Submission.objects.select_for_update().filter(pk=submission_id).first()

    def _check_target(self, submission, submission_id, user_id):
        if submission is None:
            return AwardResult(Outcome.NO_OP, submission_id, message="Submission not found")
        if submission.domain != self.domain_key:
            return AwardResult(
                Outcome.INVALID, submission.pk,
                message=f"Submission belongs to domain '{submission.domain}', not '{self.domain_key}'"
            )
        if user_id is not None and submission.owner_id != user_id:
            return AwardResult(
                Outcome.INVALID, submission.pk,
                message=f"Submission is owned by user {submission.owner_id}, not {user_id}"
            )
        return None

    def _validate_points(self, submission_id, points):
        if isinstance(points, bool) or not isinstance(points, int) or points < 0 or points > self.max_points:
            return AwardResult(
                Outcome.INVALID, submission_id,
                message=f"Invalid points value {points!r} (allowed 0..{self.max_points})"
            )
        return None

    def _update_submission(self, submission, **fields):
        fields['updated_at'] = timezone.now()
        Submission.objects.filter(pk=submission.pk).update(**fields)
        for name, value in fields.items():
            setattr(submission, name, value)
        submission.remember_persisted_state()

    def _append(self, submission, user_id, reference_kind, amount, version, outcome):
        entry = LedgerEntry(
            user_id=user_id,
            submission=submission,
            domain=self.domain_key,
            amount=amount,
            reference_kind=reference_kind,
            logical_version=version,
            description=self.describe(submission, reference_kind, amount)[:200],
        )
        entry_id = self.ledger.append(entry)
        self.after_write(submission, entry)
        return AwardResult(outcome, submission.pk, amount, entry_id)

    def _log_result(self, operation, result):
        if result.outcome == Outcome.INVALID:
            logger.warning(
                "[%s] %s rejected for submission %s: %s",
                self.domain_key, operation, result.submission_id, result.message
            )
        else:
            logger.info(
                "[%s] %s submission %s: %s %+d %s",
                self.domain_key, operation, result.submission_id,
                result.outcome.value, result.amount, result.message
            )
