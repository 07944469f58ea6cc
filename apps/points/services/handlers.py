"""
Per-domain points handlers.

Each handler is the awarding engine with the domain's hooks filled in.
"""
import logging

from ..events import EventKind, EventSubscriptions
from ..models import LedgerEntry
from .awarding_engine import AwardingEngine

logger = logging.getLogger(__name__)


class RealizationPointsHandler(AwardingEngine):
    """Completed installations, fixed points per approval"""

    def points_for_trigger(self, submission, event_kind):
        # Fixed-value domains ignore valuation; an override stored on approval wins
        if submission.computed_points > 0:
            return submission.computed_points
        return self.calculator.compute(submission)

    def after_write(self, submission, entry):
        logger.info(
            "Realization %s: %s %+d points for user %s",
            submission.pk, entry.reference_kind, entry.amount, entry.user_id
        )


class InvoicePointsHandler(AwardingEngine):
    """Invoices, points derived from the invoice value"""

    def before_award(self, submission, points):
        if points == 0:
            logger.warning(
                "Invoice %s approved with 0 points (valuation %s)",
                submission.pk, self.field_accessor.get_valuation(submission, self.domain.valuation_field)
            )

    def describe(self, submission, reference_kind, amount):
        valuation = self.field_accessor.get_valuation(submission, self.domain.valuation_field)
        label = submission.title or f"Invoice #{submission.pk}"
        if reference_kind == LedgerEntry.KIND_AWARD:
            return f"Points for invoice {label} ({valuation} CZK)"
        if reference_kind == LedgerEntry.KIND_ADJUST:
            return f"Invoice {label} revalued to {valuation} CZK ({amount:+d})"
        return super().describe(submission, reference_kind, amount)


HANDLER_CLASSES = {
    'realization': RealizationPointsHandler,
    'invoice': InvoicePointsHandler,
}


def build_awarding_engine(domain_config, ledger_store=None):
    """Handler for a domain, defaulting to the plain engine"""
    handler_class = HANDLER_CLASSES.get(domain_config.key, AwardingEngine)
    return handler_class(domain_config, ledger_store=ledger_store)


def build_event_subscriptions(registry=None, ledger_store=None):
    """Create one handler per registered domain and subscribe it to its events"""
    if registry is None:
        from ..domains import DomainRegistry
        registry = DomainRegistry.from_settings()

    subscriptions = EventSubscriptions()
    for domain_config in registry:
        handler = build_awarding_engine(domain_config, ledger_store=ledger_store)
        subscriptions.register(domain_config.key, handler, domain_config.trigger_events)
        logger.debug(
            "Points handler %s registered for domain '%s' on %s",
            type(handler).__name__, domain_config.key,
            sorted(kind.value for kind in domain_config.trigger_events) or [EventKind.DELETED.value]
        )
    return subscriptions
