from .review_serializers import (
    ApproveSubmissionSerializer,
    RejectSubmissionSerializer,
    SubmissionSerializer,
    ValuationChangeSerializer,
)

__all__ = [
    'ApproveSubmissionSerializer',
    'RejectSubmissionSerializer',
    'SubmissionSerializer',
    'ValuationChangeSerializer',
]
