"""
Tests for the submission event sources and the typed subscription list.

These go through model saves, so the subscriptions built by the points app
at startup handle the events.
"""
from decimal import Decimal
from unittest import mock

import pytest

from apps.points.events import EventKind, EventSubscriptions, get_event_subscriptions
from apps.points.models import LedgerEntry
from apps.points.services import LedgerStore, Outcome
from apps.submissions.models import Submission
from tests.factories import InvoiceSubmissionFactory, SubmissionFactory, UserFactory

pytestmark = pytest.mark.django_db


def net_contribution(submission_id):
    return LedgerStore().sum_for_submission(submission_id)


class TestStartupSubscriptions:

    def test_domains_subscribe_to_declared_events(self):
        subscriptions = get_event_subscriptions().subscriptions()

        assert ('realization', 'finalized') in subscriptions
        assert ('invoice', 'finalized') in subscriptions
        assert ('invoice', 'valuation_settled') in subscriptions
        assert ('realization', 'valuation_settled') not in subscriptions

    def test_deletion_reaches_every_domain_with_a_handler(self):
        subscriptions = get_event_subscriptions()
        assert subscriptions.is_subscribed('realization', EventKind.DELETED)
        assert not subscriptions.is_subscribed('unknown', EventKind.DELETED)

    def test_unsubscribed_event_is_ignored(self):
        handler = mock.Mock()
        subscriptions = EventSubscriptions()
        subscriptions.register('realization', handler, [EventKind.FINALIZED])

        assert subscriptions.handle_trigger(EventKind.VALUATION_SETTLED, 1, domain='realization') is None
        handler.handle_trigger.assert_not_called()

        subscriptions.handle_trigger('finalized', 1, domain='realization')
        handler.handle_trigger.assert_called_once_with(EventKind.FINALIZED, 1)

    def test_domain_is_looked_up_when_not_given(self):
        submission = SubmissionFactory()
        handler = mock.Mock()
        subscriptions = EventSubscriptions()
        subscriptions.register('realization', handler, ['finalized'])

        subscriptions.handle_trigger(EventKind.FINALIZED, submission.pk)
        assert subscriptions.handle_trigger(EventKind.FINALIZED, 999999) is None

        handler.handle_trigger.assert_called_once_with(EventKind.FINALIZED, submission.pk)


class TestChangeTracking:

    def test_deferred_load_does_not_touch_tracked_fields(self):
        submission = SubmissionFactory(raw_valuation=Decimal('12.50'))

        loaded = Submission.objects.only('id').get(pk=submission.pk)

        assert loaded.get_deferred_fields() >= {'status', 'raw_valuation', 'metadata'}
        assert loaded.changed_fields() == set()
        assert loaded.status == Submission.STATUS_PENDING_REVIEW
        assert loaded.changed_fields() == set()

    def test_deferred_instance_reports_assigned_field(self):
        submission = SubmissionFactory()
        loaded = Submission.objects.defer('status', 'metadata').get(pk=submission.pk)

        loaded.status = Submission.STATUS_APPROVED
        loaded.save()

        assert net_contribution(submission.pk) == 2500
        assert loaded.computed_points == 2500

    def test_tracked_save_refreshes_engine_fields(self):
        submission = SubmissionFactory()

        submission.status = Submission.STATUS_APPROVED
        submission.save()

        assert submission.changed_fields() == set()
        assert submission.is_approved
        assert submission.computed_points == 2500


class TestRealizationLifecycle:

    def test_pending_submission_earns_nothing(self):
        submission = SubmissionFactory()
        assert net_contribution(submission.pk) == 0

    def test_approval_by_save_awards_fixed_points(self):
        submission = SubmissionFactory()

        submission.status = Submission.STATUS_APPROVED
        submission.save()

        assert net_contribution(submission.pk) == 2500
        assert submission.computed_points == 2500

    def test_created_approved_is_awarded(self):
        submission = SubmissionFactory(status=Submission.STATUS_APPROVED)
        assert net_contribution(submission.pk) == 2500

    def test_rejection_by_save_revokes(self):
        submission = SubmissionFactory(status=Submission.STATUS_APPROVED)

        submission.status = Submission.STATUS_REJECTED
        submission.rejection_reason = 'Not installed'
        submission.save()

        assert net_contribution(submission.pk) == 0
        submission.refresh_from_db()
        assert submission.rejection_reason == 'Not installed'

    def test_unrelated_save_does_not_write(self):
        submission = SubmissionFactory(status=Submission.STATUS_APPROVED)

        submission.title = 'Renamed'
        submission.save()
        submission.save()

        assert LedgerEntry.objects.filter(submission=submission).count() == 1

    def test_stale_instance_does_not_undo_engine_writes(self):
        submission = SubmissionFactory()
        submission.status = Submission.STATUS_APPROVED
        submission.save()

        submission.title = 'Edited later'
        submission.save()

        stored = Submission.objects.get(pk=submission.pk)
        assert stored.computed_points == 2500
        assert stored.is_approved

    def test_deletion_revokes_outstanding_points(self):
        submission = SubmissionFactory(status=Submission.STATUS_APPROVED)
        owner = submission.owner

        submission.delete()

        assert LedgerStore().sum_for_user(owner.pk) == 0
        kinds = sorted(LedgerEntry.objects.filter(user=owner).values_list('reference_kind', flat=True))
        assert kinds == [LedgerEntry.KIND_AWARD, LedgerEntry.KIND_REVOKE]


class TestInvoiceLifecycle:

    def test_valuation_before_approval(self):
        submission = InvoiceSubmissionFactory(raw_valuation=Decimal('1000'))
        assert submission.computed_points == 100
        assert net_contribution(submission.pk) == 0

        submission.status = Submission.STATUS_APPROVED
        submission.save()

        assert net_contribution(submission.pk) == 100

    def test_valuation_after_approval(self):
        submission = InvoiceSubmissionFactory(raw_valuation=None)
        submission.status = Submission.STATUS_APPROVED
        submission.save()
        assert net_contribution(submission.pk) == 0

        submission.raw_valuation = Decimal('1500')
        submission.save()

        assert net_contribution(submission.pk) == 150

    def test_revaluation_while_approved_adds_one_adjustment(self):
        submission = InvoiceSubmissionFactory(raw_valuation=Decimal('1000'), status=Submission.STATUS_APPROVED)
        assert net_contribution(submission.pk) == 100

        submission.raw_valuation = Decimal('2000')
        submission.save()

        adjustments = LedgerEntry.objects.filter(submission=submission, reference_kind=LedgerEntry.KIND_ADJUST)
        assert [entry.amount for entry in adjustments] == [100]
        assert net_contribution(submission.pk) == 200

    def test_both_events_in_one_save_converge(self):
        owner = UserFactory()
        submission = InvoiceSubmissionFactory(owner=owner, raw_valuation=None)

        submission.raw_valuation = Decimal('3000')
        submission.status = Submission.STATUS_APPROVED
        submission.save()

        assert net_contribution(submission.pk) == 300
        assert LedgerEntry.objects.filter(submission=submission).count() == 1

    def test_repeated_trigger_after_settlement_is_no_op(self):
        submission = InvoiceSubmissionFactory(raw_valuation=Decimal('1000'), status=Submission.STATUS_APPROVED)

        results = [
            get_event_subscriptions().handle_trigger(kind, submission.pk)
            for kind in (EventKind.FINALIZED, EventKind.VALUATION_SETTLED, EventKind.FINALIZED)
        ]

        assert all(result.outcome in (Outcome.NO_OP, Outcome.ALREADY_APPLIED) for result in results)
        assert net_contribution(submission.pk) == 100
