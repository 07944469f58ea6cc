import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class PointsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.points'
    verbose_name = 'Points'

    registry = None
    subscriptions = None

    def ready(self):
        from apps.submissions import signals as submission_signals

        from .domains import DomainRegistry
        from .services.handlers import build_event_subscriptions

        self.registry = DomainRegistry.from_settings()
        self.registry.validate()
        self.subscriptions = build_event_subscriptions(self.registry)

        submission_signals.submission_finalized.connect(
            self.subscriptions.on_submission_finalized,
            dispatch_uid='points_on_submission_finalized',
        )
        submission_signals.valuation_settled.connect(
            self.subscriptions.on_valuation_settled,
            dispatch_uid='points_on_valuation_settled',
        )
        submission_signals.submission_deleted.connect(
            self.subscriptions.on_submission_deleted,
            dispatch_uid='points_on_submission_deleted',
        )
        logger.debug("Points subscriptions: %s", self.subscriptions.subscriptions())
