"""
Ledger entry serializers.
"""
from rest_framework import serializers

from ..models import LedgerEntry


class LedgerEntryListSerializer(serializers.ModelSerializer):
    """
    Serializer for the ledger list view.
    Used for: GET /api/points/ledger/
    """
    reference_kind_display = serializers.CharField(source='get_reference_kind_display', read_only=True)

    class Meta:
        model = LedgerEntry
        fields = [
            'id', 'domain', 'reference_kind', 'reference_kind_display', 'amount',
            'submission', 'description', 'created_at'
        ]
        read_only_fields = fields
