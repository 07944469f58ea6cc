"""
Points serializers module.
"""
from .balance_serializers import BalanceSummarySerializer, CanAffordRequestSerializer
from .ledger_serializers import LedgerEntryListSerializer

__all__ = [
    'BalanceSummarySerializer',
    'CanAffordRequestSerializer',
    'LedgerEntryListSerializer',
]
