"""
Typed event subscriptions.

Both event sources (finalization and valuation-settled) funnel into
``EventSubscriptions.handle_trigger``. The subscription list is built once
at startup from the domain registry; a domain only receives the event kinds
it declares. Deletion is delivered to every domain.
"""
import logging
from enum import Enum

from django.apps import apps

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    FINALIZED = 'finalized'
    VALUATION_SETTLED = 'valuation_settled'
    DELETED = 'deleted'


class EventSubscriptions:
    """Routes trigger events to the points handler of a submission's domain"""

    def __init__(self):
        self._handlers = {}
        self._subscriptions = set()

    def register(self, domain, handler, event_kinds=()):
        """Register a domain's handler and the trigger events it reacts to"""
        self._handlers[domain] = handler
        for event_kind in event_kinds:
            self._subscriptions.add((domain, EventKind(event_kind)))

    def is_subscribed(self, domain, event_kind):
        event_kind = EventKind(event_kind)
        if event_kind == EventKind.DELETED:
            return domain in self._handlers
        return (domain, event_kind) in self._subscriptions

    def subscriptions(self):
        return sorted((domain, kind.value) for domain, kind in self._subscriptions)

    def handler_for(self, domain):
        return self._handlers.get(domain)

    def handle_trigger(self, event_kind, submission_id, domain=None):
        """Entry point for event sources; returns the AwardResult or None"""
        event_kind = EventKind(event_kind)
        if domain is None:
            Submission = apps.get_model('submissions', 'Submission')
            domain = Submission.objects.filter(pk=submission_id).values_list('domain', flat=True).first()
            if domain is None:
                logger.info("Trigger %s for unknown submission %s ignored", event_kind.value, submission_id)
                return None

        if not self.is_subscribed(domain, event_kind):
            logger.debug("Domain '%s' is not subscribed to %s", domain, event_kind.value)
            return None

        return self._handlers[domain].handle_trigger(event_kind, submission_id)

    # Signal receivers

    def on_submission_finalized(self, sender, submission_id, domain=None, **kwargs):
        return self.handle_trigger(EventKind.FINALIZED, submission_id, domain)

    def on_valuation_settled(self, sender, submission_id, domain=None, **kwargs):
        return self.handle_trigger(EventKind.VALUATION_SETTLED, submission_id, domain)

    def on_submission_deleted(self, sender, submission_id, domain=None, **kwargs):
        return self.handle_trigger(EventKind.DELETED, submission_id, domain)


def get_event_subscriptions():
    """Subscriptions built by the points app at startup"""
    return apps.get_app_config('points').subscriptions
