"""
Tests for the awarding engine: award, revoke, reconcile and trigger handling.
"""
from decimal import Decimal
from unittest import mock

import pytest
from django.db import DatabaseError

from apps.points.events import EventKind
from apps.points.exceptions import StorageFault
from apps.points.models import LedgerEntry
from apps.points.services import Outcome, build_awarding_engine
from apps.submissions.models import Submission
from tests.factories import InvoiceSubmissionFactory, SubmissionFactory, UserFactory, create_award_entry

pytestmark = pytest.mark.django_db


def net_contribution(submission):
    return sum(LedgerEntry.objects.filter(submission=submission).values_list('amount', flat=True))


class TestAward:

    def test_award_credits_once_and_approves(self, realization_engine):
        submission = SubmissionFactory()

        result = realization_engine.award(submission.pk, submission.owner_id, 2500)

        assert result.outcome == Outcome.APPLIED
        assert result.amount == 2500
        assert result.entry_id is not None
        submission.refresh_from_db()
        assert submission.status == Submission.STATUS_APPROVED
        assert submission.computed_points == 2500
        entry = LedgerEntry.objects.get(pk=result.entry_id)
        assert entry.reference_kind == LedgerEntry.KIND_AWARD
        assert entry.logical_version == 1
        assert entry.domain == 'realization'

    def test_second_award_is_already_applied(self, realization_engine):
        submission = SubmissionFactory()
        realization_engine.award(submission.pk, submission.owner_id, 2500)

        result = realization_engine.award(submission.pk, submission.owner_id, 3000)

        assert result.outcome == Outcome.ALREADY_APPLIED
        assert LedgerEntry.objects.filter(submission=submission).count() == 1
        submission.refresh_from_db()
        assert submission.computed_points == 2500

    def test_zero_points_approves_without_entry(self, realization_engine):
        submission = SubmissionFactory()

        result = realization_engine.award(submission.pk, submission.owner_id, 0)

        assert result.outcome == Outcome.NO_OP
        assert not LedgerEntry.objects.filter(submission=submission).exists()
        submission.refresh_from_db()
        assert submission.is_approved

    @pytest.mark.parametrize('points', [-1, 100001, 'abc', 12.5, True])
    def test_invalid_points_change_nothing(self, realization_engine, points):
        submission = SubmissionFactory()

        result = realization_engine.award(submission.pk, submission.owner_id, points)

        assert result.outcome == Outcome.INVALID
        assert not LedgerEntry.objects.filter(submission=submission).exists()
        submission.refresh_from_db()
        assert submission.is_pending

    def test_owner_mismatch_is_invalid(self, realization_engine):
        submission = SubmissionFactory()
        stranger = UserFactory()

        result = realization_engine.award(submission.pk, stranger.pk, 2500)

        assert result.outcome == Outcome.INVALID
        assert not LedgerEntry.objects.exists()

    def test_wrong_domain_is_invalid(self, realization_engine):
        submission = InvoiceSubmissionFactory()

        result = realization_engine.award(submission.pk, submission.owner_id, 2500)

        assert result.outcome == Outcome.INVALID
        assert net_contribution(submission) == 0

    def test_approve_with_points_moves_existing_contribution(self, realization_engine):
        submission = SubmissionFactory()
        first = realization_engine.approve_with_points(submission.pk, submission.owner_id, 2500)

        second = realization_engine.approve_with_points(submission.pk, submission.owner_id, 4000)

        assert first.outcome == Outcome.APPLIED
        assert second.outcome == Outcome.ADJUSTED
        assert second.amount == 1500
        assert net_contribution(submission) == 4000

    def test_unknown_submission_is_no_op(self, realization_engine, user):
        result = realization_engine.award(999999, user.pk, 2500)

        assert result.outcome == Outcome.NO_OP
        assert not LedgerEntry.objects.exists()


class TestRevoke:

    def test_approve_then_reject_returns_to_zero(self, realization_engine):
        submission = SubmissionFactory()
        realization_engine.award(submission.pk, submission.owner_id, 2500)

        result = realization_engine.revoke(submission.pk, submission.owner_id, 'Missing photos')

        assert result.outcome == Outcome.APPLIED
        assert result.amount == -2500
        assert net_contribution(submission) == 0
        submission.refresh_from_db()
        assert submission.status == Submission.STATUS_REJECTED
        assert submission.rejection_reason == 'Missing photos'

    def test_revoke_without_outstanding_records_rejection(self, realization_engine):
        submission = SubmissionFactory()

        result = realization_engine.revoke(submission.pk, submission.owner_id, 'Duplicate')

        assert result.outcome == Outcome.NO_OP
        assert not LedgerEntry.objects.exists()
        submission.refresh_from_db()
        assert submission.status == Submission.STATUS_REJECTED
        assert submission.rejection_reason == 'Duplicate'

    def test_reject_then_reapprove_credits_exactly_once(self, realization_engine):
        submission = SubmissionFactory()
        realization_engine.award(submission.pk, submission.owner_id, 2500)
        realization_engine.revoke(submission.pk, submission.owner_id, 'Wrong address')

        result = realization_engine.award(submission.pk, submission.owner_id, 2500)
        repeat = realization_engine.award(submission.pk, submission.owner_id, 2500)

        assert result.outcome == Outcome.APPLIED
        assert repeat.outcome == Outcome.ALREADY_APPLIED
        assert net_contribution(submission) == 2500
        versions = list(
            LedgerEntry.objects.filter(submission=submission)
            .order_by('logical_version').values_list('logical_version', flat=True)
        )
        assert versions == [1, 2, 3]


class TestReconcile:

    def test_valuation_change_while_approved_writes_one_adjustment(self, invoice_engine):
        submission = InvoiceSubmissionFactory(raw_valuation=Decimal('1000'))
        invoice_engine.award(submission.pk, submission.owner_id, 100)

        result = invoice_engine.reconcile_valuation_change(submission.pk, submission.owner_id, 200)

        assert result.outcome == Outcome.ADJUSTED
        assert result.amount == 100
        adjustments = LedgerEntry.objects.filter(submission=submission, reference_kind=LedgerEntry.KIND_ADJUST)
        assert adjustments.count() == 1
        assert net_contribution(submission) == 200
        submission.refresh_from_db()
        assert submission.computed_points == 200

    def test_downward_adjustment(self, invoice_engine):
        submission = InvoiceSubmissionFactory(raw_valuation=Decimal('1000'))
        invoice_engine.award(submission.pk, submission.owner_id, 100)

        result = invoice_engine.reconcile_valuation_change(submission.pk, submission.owner_id, 40)

        assert result.amount == -60
        assert net_contribution(submission) == 40

    def test_unchanged_points_is_no_op(self, invoice_engine):
        submission = InvoiceSubmissionFactory(raw_valuation=Decimal('1000'))
        invoice_engine.award(submission.pk, submission.owner_id, 100)

        result = invoice_engine.reconcile_valuation_change(submission.pk, submission.owner_id, 100)

        assert result.outcome == Outcome.NO_OP
        assert LedgerEntry.objects.filter(submission=submission).count() == 1

    def test_pending_submission_only_updates_computed_points(self, invoice_engine):
        submission = InvoiceSubmissionFactory(raw_valuation=Decimal('1000'))

        result = invoice_engine.reconcile_valuation_change(submission.pk, submission.owner_id, 321)

        assert result.outcome == Outcome.NO_OP
        assert not LedgerEntry.objects.filter(submission=submission).exists()
        submission.refresh_from_db()
        assert submission.is_pending
        assert submission.computed_points == 321

    def test_rejected_submission_only_updates_computed_points(self, invoice_engine):
        submission = InvoiceSubmissionFactory(raw_valuation=Decimal('1000'))
        invoice_engine.award(submission.pk, submission.owner_id, 100)
        invoice_engine.revoke(submission.pk, submission.owner_id, 'Unpaid')

        result = invoice_engine.reconcile_valuation_change(submission.pk, submission.owner_id, 500)

        assert result.outcome == Outcome.NO_OP
        assert net_contribution(submission) == 0


class TestHandleTrigger:

    def test_repeated_triggers_converge(self, realization_engine):
        submission = SubmissionFactory()
        realization_engine.award(submission.pk, submission.owner_id, 2500)

        for _ in range(5):
            realization_engine.handle_trigger(EventKind.FINALIZED, submission.pk)

        assert net_contribution(submission) == 2500
        assert LedgerEntry.objects.filter(submission=submission).count() == 1

    def test_approved_without_entry_is_awarded_from_calculator(self, realization_engine):
        submission = SubmissionFactory()
        Submission.objects.filter(pk=submission.pk).update(status=Submission.STATUS_APPROVED)

        result = realization_engine.handle_trigger('finalized', submission.pk)

        assert result.outcome == Outcome.APPLIED
        assert result.amount == 2500

    def test_stored_computed_points_win_for_finalized(self, realization_engine):
        submission = SubmissionFactory()
        Submission.objects.filter(pk=submission.pk).update(
            status=Submission.STATUS_APPROVED, computed_points=3000
        )

        result = realization_engine.handle_trigger(EventKind.FINALIZED, submission.pk)

        assert result.amount == 3000

    def test_rejected_with_outstanding_is_revoked_with_stored_reason(self, realization_engine):
        submission = SubmissionFactory()
        realization_engine.award(submission.pk, submission.owner_id, 2500)
        Submission.objects.filter(pk=submission.pk).update(
            status=Submission.STATUS_REJECTED, rejection_reason='Fraud'
        )

        result = realization_engine.handle_trigger(EventKind.FINALIZED, submission.pk)

        assert result.outcome == Outcome.APPLIED
        assert net_contribution(submission) == 0
        submission.refresh_from_db()
        assert submission.rejection_reason == 'Fraud'

    def test_valuation_settled_recomputes_for_approved_invoice(self, invoice_engine):
        submission = InvoiceSubmissionFactory(raw_valuation=Decimal('1000'))
        invoice_engine.award(submission.pk, submission.owner_id, 100)
        Submission.objects.filter(pk=submission.pk).update(raw_valuation=Decimal('2000'))

        first = invoice_engine.handle_trigger(EventKind.VALUATION_SETTLED, submission.pk)
        second = invoice_engine.handle_trigger(EventKind.VALUATION_SETTLED, submission.pk)

        assert first.outcome == Outcome.ADJUSTED
        assert first.amount == 100
        assert second.outcome == Outcome.NO_OP
        assert net_contribution(submission) == 200

    def test_valuation_settled_on_pending_invoice_refreshes_points(self, invoice_engine):
        submission = InvoiceSubmissionFactory(raw_valuation=Decimal('999.99'))

        invoice_engine.handle_trigger(EventKind.VALUATION_SETTLED, submission.pk)

        submission.refresh_from_db()
        assert submission.computed_points == 99
        assert net_contribution(submission) == 0

    def test_deleted_revokes_outstanding(self, realization_engine):
        submission = SubmissionFactory()
        realization_engine.award(submission.pk, submission.owner_id, 2500)

        result = realization_engine.handle_trigger(EventKind.DELETED, submission.pk)

        assert result.outcome == Outcome.APPLIED
        assert net_contribution(submission) == 0

    def test_back_to_review_revokes_but_keeps_status(self, realization_engine):
        submission = SubmissionFactory()
        realization_engine.award(submission.pk, submission.owner_id, 2500)
        Submission.objects.filter(pk=submission.pk).update(status=Submission.STATUS_PENDING_REVIEW)

        result = realization_engine.handle_trigger(EventKind.FINALIZED, submission.pk)

        assert result.outcome == Outcome.APPLIED
        assert result.amount == -2500
        assert net_contribution(submission) == 0
        submission.refresh_from_db()
        assert submission.status == Submission.STATUS_PENDING_REVIEW
        assert submission.rejection_reason == ''

    def test_pending_finalized_is_no_op(self, realization_engine):
        submission = SubmissionFactory()

        result = realization_engine.handle_trigger(EventKind.FINALIZED, submission.pk)

        assert result.outcome == Outcome.NO_OP
        assert not LedgerEntry.objects.exists()


class TestConcurrency:

    def test_lost_insert_race_is_retried_and_reported(self, realization_engine, ledger_store):
        submission = SubmissionFactory()
        # The concurrent winner has already written version 1
        create_award_entry(submission.owner, 2500, submission, version=1)

        with mock.patch.object(ledger_store, 'sum_for_submission', side_effect=[0, 2500]), \
                mock.patch.object(ledger_store, 'latest_version', side_effect=[0, 1]):
            result = realization_engine.award(submission.pk, submission.owner_id, 2500)

        assert result.outcome == Outcome.ALREADY_APPLIED
        assert LedgerEntry.objects.filter(submission=submission).count() == 1

    def test_repeated_conflict_reports_already_applied(self, realization_engine, ledger_store):
        submission = SubmissionFactory()
        create_award_entry(submission.owner, 2500, submission, version=1)

        with mock.patch.object(ledger_store, 'sum_for_submission', return_value=0), \
                mock.patch.object(ledger_store, 'latest_version', return_value=0):
            result = realization_engine.award(submission.pk, submission.owner_id, 2500)

        assert result.outcome == Outcome.ALREADY_APPLIED
        assert LedgerEntry.objects.filter(submission=submission).count() == 1

    def test_storage_fault_propagates_and_rolls_back(self, realization_engine, ledger_store):
        submission = SubmissionFactory()

        with mock.patch.object(ledger_store, 'append', side_effect=DatabaseError('disk full')):
            with pytest.raises(StorageFault):
                realization_engine.award(submission.pk, submission.owner_id, 2500)

        submission.refresh_from_db()
        assert submission.is_pending
        assert not LedgerEntry.objects.exists()

    def test_storage_fault_while_reading_trigger_state(self, realization_engine, ledger_store):
        submission = SubmissionFactory()

        with mock.patch.object(ledger_store, 'sum_for_submission', side_effect=DatabaseError('gone away')):
            with pytest.raises(StorageFault):
                realization_engine.handle_trigger(EventKind.FINALIZED, submission.pk)

    def test_settled_trigger_sees_finalized_write_committed_before_its_lock(
            self, registry, ledger_store, invoice_engine):
        submission = InvoiceSubmissionFactory(raw_valuation=Decimal('2000'))
        Submission.objects.filter(pk=submission.pk).update(status=Submission.STATUS_APPROVED)
        finalized_engine = build_awarding_engine(registry.get('invoice'), ledger_store=ledger_store)
        lock_submission = invoice_engine._lock_submission

        def lock_after_finalized_write(submission_id):
            # Decided from the old valuation of 1000 and committed first
            finalized_engine.award(submission_id, submission.owner_id, 100)
            return lock_submission(submission_id)

        with mock.patch.object(invoice_engine, '_lock_submission', side_effect=lock_after_finalized_write):
            result = invoice_engine.handle_trigger(EventKind.VALUATION_SETTLED, submission.pk)

        assert result.outcome == Outcome.ADJUSTED
        assert result.amount == 100
        assert net_contribution(submission) == 200
        submission.refresh_from_db()
        assert submission.computed_points == 200

    def test_finalized_trigger_losing_insert_race_to_settled_converges(self, invoice_engine, ledger_store):
        submission = InvoiceSubmissionFactory(raw_valuation=Decimal('2000'))
        # The valuation-settled trigger won the race and credited 200 as version 1
        Submission.objects.filter(pk=submission.pk).update(
            status=Submission.STATUS_APPROVED, computed_points=200
        )
        create_award_entry(submission.owner, 200, submission, version=1)

        with mock.patch.object(ledger_store, 'sum_for_submission', side_effect=[0, 200]), \
                mock.patch.object(ledger_store, 'latest_version', side_effect=[0, 1]):
            result = invoice_engine.handle_trigger(EventKind.FINALIZED, submission.pk)

        assert result.outcome == Outcome.NO_OP
        assert net_contribution(submission) == 200
        assert LedgerEntry.objects.filter(submission=submission).count() == 1

    @pytest.mark.parametrize('first, second', [
        (EventKind.FINALIZED, EventKind.VALUATION_SETTLED),
        (EventKind.VALUATION_SETTLED, EventKind.FINALIZED),
    ])
    def test_interleaved_trigger_kinds_converge(self, invoice_engine, first, second):
        submission = InvoiceSubmissionFactory(raw_valuation=Decimal('1500'))
        Submission.objects.filter(pk=submission.pk).update(
            status=Submission.STATUS_APPROVED, computed_points=0
        )

        for event_kind in (first, second, first, second):
            invoice_engine.handle_trigger(event_kind, submission.pk)

        assert net_contribution(submission) == 150
        submission.refresh_from_db()
        assert submission.computed_points == 150


def test_outcomes_are_logged(realization_engine, caplog):
    submission = SubmissionFactory()

    with caplog.at_level('INFO', logger='apps.points'):
        realization_engine.award(submission.pk, submission.owner_id, 2500)
        realization_engine.award(submission.pk, submission.owner_id, 2500)

    messages = [record.getMessage() for record in caplog.records]
    assert any('applied +2500' in message for message in messages)
    assert any('already_applied' in message for message in messages)


def test_invoice_descriptions_mention_valuation(invoice_engine):
    submission = InvoiceSubmissionFactory(title='FV-1', raw_valuation=Decimal('1500'))

    result = invoice_engine.award(submission.pk, submission.owner_id, 150)

    entry = LedgerEntry.objects.get(pk=result.entry_id)
    assert entry.description == 'Points for invoice FV-1 (1500.00 CZK)'
