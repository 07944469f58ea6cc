"""
Balance and affordability serializers.
"""
from rest_framework import serializers

from ..services import AffordabilityContext


class BalanceSummarySerializer(serializers.Serializer):
    """
    Serializer for the derived balance summary.
    Used for: GET /api/points/balance/
    """
    total = serializers.IntegerField()
    pending = serializers.IntegerField()
    reserved = serializers.IntegerField()
    available = serializers.IntegerField()
    lifetime_earned = serializers.IntegerField()


class CanAffordRequestSerializer(serializers.Serializer):
    """Used for: POST /api/points/can-afford/"""
    cost = serializers.IntegerField()
    context = serializers.ChoiceField(
        choices=[context.value for context in AffordabilityContext],
        default=AffordabilityContext.CATALOG.value
    )
    product_id = serializers.CharField(required=False, allow_null=True, default=None)
