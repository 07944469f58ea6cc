"""
Points models module.

All models are exported from this module to maintain backward compatibility.
"""
from .ledger_entry import LedgerEntry

__all__ = [
    'LedgerEntry',
]
