"""
Cart serializers.
"""
from rest_framework import serializers

from ..models import CartItem


class CartItemSerializer(serializers.ModelSerializer):
    line_total = serializers.IntegerField(read_only=True)

    class Meta:
        model = CartItem
        fields = ['id', 'product_id', 'product_name', 'quantity', 'unit_cost_points', 'line_total']
        read_only_fields = fields


class AddCartItemSerializer(serializers.Serializer):
    """Used for: POST /api/shop/cart/items/"""
    product_id = serializers.CharField(max_length=50)
    product_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    quantity = serializers.IntegerField(min_value=1, default=1)
    unit_cost_points = serializers.IntegerField(min_value=0)
