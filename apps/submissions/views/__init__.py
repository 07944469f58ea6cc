from .review_views import approve_submission, change_submission_valuation, reject_submission

__all__ = [
    'approve_submission',
    'reject_submission',
    'change_submission_valuation',
]
