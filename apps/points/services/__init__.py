"""
Points services module.

Engine, ledger and balance services are exported from this module.
"""
from .awarding_engine import AwardingEngine
from .balance_service import AffordabilityContext, BalanceCalculator, BalanceSummary
from .calculators import (
    FixedPointsCalculator,
    FormulaPointsCalculator,
    PointsCalculator,
    ZeroPointsCalculator,
    build_calculator,
)
from .handlers import (
    InvoicePointsHandler,
    RealizationPointsHandler,
    build_awarding_engine,
    build_event_subscriptions,
)
from .ledger_store import LedgerStore
from .results import AwardResult, Outcome

__all__ = [
    'AwardingEngine',
    'AffordabilityContext',
    'BalanceCalculator',
    'BalanceSummary',
    'FixedPointsCalculator',
    'FormulaPointsCalculator',
    'PointsCalculator',
    'ZeroPointsCalculator',
    'build_calculator',
    'InvoicePointsHandler',
    'RealizationPointsHandler',
    'build_awarding_engine',
    'build_event_subscriptions',
    'LedgerStore',
    'AwardResult',
    'Outcome',
]
