"""
Submission models module.

All models are exported from this module to maintain backward compatibility.
"""
from .submission import Submission

__all__ = [
    'Submission',
]
