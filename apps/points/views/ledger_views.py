"""
Ledger history views.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..serializers import LedgerEntryListSerializer
from ..services import LedgerStore


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_ledger(request):
    """Get the caller's ledger entries, newest first"""
    try:
        page = max(int(request.GET.get('page', 1)), 1)
        page_size = min(max(int(request.GET.get('page_size', 20)), 1), 100)
    except ValueError:
        return Response({
            'success': False,
            'message': 'page and page_size must be integers'
        }, status=status.HTTP_400_BAD_REQUEST)

    entries = LedgerStore().entries_for_user(request.user.pk, request.GET.get('type'))
    total = entries.count()

    start = (page - 1) * page_size
    end = start + page_size
    serializer = LedgerEntryListSerializer(entries[start:end], many=True)

    return Response({
        'success': True,
        'data': {
            'entries': serializer.data,
            'pagination': {
                'page': page,
                'page_size': page_size,
                'total': total,
                'has_next': end < total
            }
        }
    })
