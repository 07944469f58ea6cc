"""
Submissions services module.
"""
from .approval_workflow import ApprovalWorkflow

__all__ = [
    'ApprovalWorkflow',
]
