"""
Balance query views.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..serializers import BalanceSummarySerializer, CanAffordRequestSerializer
from ..services import BalanceCalculator


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_balance(request):
    """Get the caller's balance summary"""
    summary = BalanceCalculator().get_balance_summary(request.user.pk)
    serializer = BalanceSummarySerializer(summary.as_dict())

    return Response({
        'success': True,
        'data': serializer.data
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def can_afford(request):
    """Check whether the caller can pay a point price"""
    serializer = CanAffordRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            'success': False,
            'message': 'Invalid request',
            'errors': serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    calculator = BalanceCalculator()
    affordable = calculator.can_afford(
        request.user.pk, data['cost'], data['context'], product_id=data.get('product_id')
    )

    return Response({
        'success': True,
        'data': {
            'cost': data['cost'],
            'context': data['context'],
            'can_afford': affordable,
        }
    })
