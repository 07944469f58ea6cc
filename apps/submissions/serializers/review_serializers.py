"""
Submission review serializers.
"""
from decimal import Decimal

from rest_framework import serializers

from ..models import Submission


class SubmissionSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Submission
        fields = [
            'id', 'domain', 'owner', 'title', 'status', 'status_display',
            'raw_valuation', 'computed_points', 'rejection_reason', 'updated_at'
        ]
        read_only_fields = fields


class ApproveSubmissionSerializer(serializers.Serializer):
    points = serializers.IntegerField(required=False, allow_null=True, min_value=0)


class RejectSubmissionSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class ValuationChangeSerializer(serializers.Serializer):
    value = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
