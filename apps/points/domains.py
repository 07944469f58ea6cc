"""
Domain registry.

Built once at startup from ``settings.POINTS_DOMAINS``. Each entry declares
the domain's calculator, the field storage backend for its valuation and the
trigger events it subscribes to.
"""
import logging
from dataclasses import dataclass, field

from django.conf import settings

from apps.submissions.fields import get_field_accessor

from .events import EventKind
from .exceptions import MissingCalculatorConfiguration
from .services.calculators import ZeroPointsCalculator, build_calculator

logger = logging.getLogger(__name__)


@dataclass
class DomainConfig:
    key: str
    display_name: str
    field_accessor: object
    calculator: object = None
    valuation_field: str = None
    trigger_events: frozenset = field(default_factory=frozenset)
    configuration_error: str = ''

    @property
    def has_calculator(self):
        return self.calculator is not None


class DomainRegistry:
    """Lookup of configured submission domains"""

    def __init__(self, domains=None):
        self._domains = {}
        for config in domains or []:
            self._domains[config.key] = config

    @classmethod
    def from_settings(cls, domains_setting=None):
        if domains_setting is None:
            domains_setting = getattr(settings, 'POINTS_DOMAINS', {})

        configs = []
        for key, options in domains_setting.items():
            accessor = get_field_accessor(options.get('field_backend', 'column'))
            trigger_events = frozenset(
                EventKind(kind) for kind in options.get('trigger_events', [EventKind.FINALIZED.value])
            )
            config = DomainConfig(
                key=key,
                display_name=options.get('display_name', key.title()),
                field_accessor=accessor,
                valuation_field=options.get('valuation_field'),
                trigger_events=trigger_events,
            )
            try:
                config.calculator = build_calculator(key, options, accessor)
            except MissingCalculatorConfiguration as exc:
                config.configuration_error = str(exc)
            configs.append(config)
        return cls(configs)

    def __contains__(self, key):
        return key in self._domains

    def __iter__(self):
        return iter(self._domains.values())

    def get(self, key):
        return self._domains.get(key)

    def calculator_for(self, key):
        """
        Calculator of a domain.

        Domains without a usable calculator get zero points and a warning on
        every use.
        """
        config = self._domains.get(key)
        if config is None or config.calculator is None:
            detail = config.configuration_error if config else f"domain '{key}' is not registered"
            logger.warning("Missing calculator configuration: %s", detail)
            return ZeroPointsCalculator(key)
        return config.calculator

    def validate(self):
        """Log a warning for every domain that cannot calculate points"""
        problems = []
        for config in self._domains.values():
            if not config.has_calculator:
                logger.warning(
                    "Points domain '%s' is misconfigured and will award 0 points: %s",
                    config.key, config.configuration_error
                )
                problems.append(config.key)
        return problems
