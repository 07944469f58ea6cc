"""
User models module.

All models are exported from this module to maintain backward compatibility.
"""
from .user import User

__all__ = [
    'User',
]
