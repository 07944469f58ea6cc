"""
Points views module.
"""
from .balance_views import can_afford, get_balance
from .ledger_views import get_ledger

__all__ = [
    'get_balance',
    'can_afford',
    'get_ledger',
]
