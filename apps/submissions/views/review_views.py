"""
Staff review views. Every response carries the engine's AwardResult.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from apps.points.services import Outcome

from ..models import Submission
from ..serializers import (
    ApproveSubmissionSerializer,
    RejectSubmissionSerializer,
    SubmissionSerializer,
    ValuationChangeSerializer,
)
from ..services import ApprovalWorkflow


def _invalid_request(serializer):
    return Response({
        'success': False,
        'message': 'Invalid request',
        'errors': serializer.errors
    }, status=status.HTTP_400_BAD_REQUEST)


def _result_response(submission_id, result):
    submission = Submission.objects.filter(pk=submission_id).first()
    if submission is None:
        return Response({
            'success': False,
            'message': 'Submission not found'
        }, status=status.HTTP_404_NOT_FOUND)

    if result.outcome == Outcome.INVALID:
        return Response({
            'success': False,
            'message': result.message,
            'data': {'result': result.as_dict()}
        }, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'success': True,
        'data': {
            'result': result.as_dict(),
            'submission': SubmissionSerializer(submission).data
        }
    })


@api_view(['POST'])
@permission_classes([IsAdminUser])
def approve_submission(request, submission_id):
    """Approve a submission, optionally overriding its points"""
    serializer = ApproveSubmissionSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid_request(serializer)

    result = ApprovalWorkflow().approve(submission_id, serializer.validated_data.get('points'))
    return _result_response(submission_id, result)


@api_view(['POST'])
@permission_classes([IsAdminUser])
def reject_submission(request, submission_id):
    """Reject a submission and revoke its points"""
    serializer = RejectSubmissionSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid_request(serializer)

    result = ApprovalWorkflow().reject(submission_id, serializer.validated_data['reason'])
    return _result_response(submission_id, result)


@api_view(['POST'])
@permission_classes([IsAdminUser])
def change_submission_valuation(request, submission_id):
    """Set a new valuation and reconcile points"""
    serializer = ValuationChangeSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid_request(serializer)

    result = ApprovalWorkflow().change_valuation(submission_id, serializer.validated_data['value'])
    return _result_response(submission_id, result)
