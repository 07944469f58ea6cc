from django.core.management.base import BaseCommand
from django.db.models import Sum
from django.db.models.functions import Coalesce

from apps.points.events import EventKind, get_event_subscriptions
from apps.submissions.models import Submission


class Command(BaseCommand):
    help = 'Report submissions whose ledger contribution differs from their approved points'

    def add_arguments(self, parser):
        parser.add_argument(
            '--user-id',
            type=int,
            help='Audit submissions of a specific user ID only',
        )
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Re-run the points handler for every divergent submission',
        )

    def handle(self, *args, **options):
        user_id = options.get('user_id')
        fix = options.get('fix')

        submissions = Submission.objects.annotate(
            outstanding=Coalesce(Sum('ledger_entries__amount'), 0)
        ).order_by('id')
        if user_id:
            submissions = submissions.filter(owner_id=user_id)

        self.stdout.write(f'Auditing {submissions.count()} submissions...')

        subscriptions = get_event_subscriptions() if fix else None
        divergent = 0
        fixed = 0
        for submission in submissions:
            expected = submission.computed_points if submission.is_approved else 0
            if submission.outstanding == expected:
                continue

            divergent += 1
            self.stdout.write(
                self.style.WARNING(
                    f'Submission {submission.pk} ({submission.domain}, {submission.status}): '
                    f'ledger {submission.outstanding}, expected {expected}'
                )
            )

            if fix:
                handler = subscriptions.handler_for(submission.domain)
                if handler is None:
                    self.stdout.write(self.style.ERROR(f'  No points handler for domain {submission.domain}'))
                    continue
                result = handler.handle_trigger(EventKind.FINALIZED, submission.pk)
                self.stdout.write(f'  {result.outcome.value}: {result.amount:+d} {result.message}'.rstrip())
                if result.wrote_entry:
                    fixed += 1

        if divergent:
            summary = f'Audit complete. {divergent} divergent submissions'
            if fix:
                summary += f', {fixed} fixed'
            self.stdout.write(self.style.WARNING(summary))
        else:
            self.stdout.write(self.style.SUCCESS('Audit complete. Ledger is consistent'))
