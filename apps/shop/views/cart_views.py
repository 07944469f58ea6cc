"""
Cart and checkout views.
"""
from dataclasses import asdict

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..serializers import AddCartItemSerializer, CartItemSerializer
from ..services import CartService, CheckoutService


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_cart(request):
    """Get the active cart with its point reservation"""
    return Response({
        'success': True,
        'data': CartService().get_cart_summary(request.user)
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def add_cart_item(request):
    """Add a product to the active cart if the balance covers it"""
    serializer = AddCartItemSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            'success': False,
            'message': 'Invalid request',
            'errors': serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    item, error_msg = CartService().add_item(
        request.user,
        data['product_id'],
        data['unit_cost_points'],
        quantity=data['quantity'],
        product_name=data['product_name'],
    )
    if item is None:
        return Response({
            'success': False,
            'message': error_msg
        }, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'success': True,
        'data': CartItemSerializer(item).data
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def checkout(request):
    """Pay the active cart with points"""
    result = CheckoutService().complete(request.user.pk)
    if not result.success:
        return Response({
            'success': False,
            'message': result.message,
            'data': asdict(result)
        }, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'success': True,
        'data': asdict(result)
    })
