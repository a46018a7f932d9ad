"""Serializers for the inventory API.

Write serializers only parse and type-check input; business rules (positive
quantities, required notes, known reasons) are enforced by the services so
their messages reach the client unchanged.
"""

from common.choices import DeductionReason, ReferenceType, TransactionType
from django.conf import settings
from rest_framework import serializers

from .models import LedgerEntry, StockLevel
from .quantities import QUANTITY_DECIMAL_PLACES, QUANTITY_MAX_DIGITS
from .selectors import DEFAULT_PAGE_SIZE, TimelineFilters


def _quantity_field(**kwargs):
    return serializers.DecimalField(
        max_digits=QUANTITY_MAX_DIGITS, decimal_places=QUANTITY_DECIMAL_PLACES, coerce_to_string=True, **kwargs
    )


class AddStockSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    branch_id = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.DecimalField(max_digits=30, decimal_places=10)
    notes = serializers.CharField(required=False, allow_blank=True, default="", trim_whitespace=False)


class DeductStockSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    branch_id = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.DecimalField(max_digits=30, decimal_places=10)
    # Validated against DeductionReason by the service
    reason = serializers.CharField(allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")


class LedgerEntrySerializer(serializers.ModelSerializer):
    """Read-only representation of one ledger entry."""

    quantity = _quantity_field(read_only=True)
    quantity_before = _quantity_field(read_only=True)
    quantity_after = _quantity_field(read_only=True)
    signed_quantity = _quantity_field(read_only=True)

    class Meta:
        model = LedgerEntry
        fields = [
            "id",
            "business_id",
            "branch_id",
            "item_id",
            "transaction_type",
            "quantity",
            "signed_quantity",
            "unit",
            "deduction_reason",
            "reference_type",
            "reference_id",
            "notes",
            "performed_by_id",
            "created_at",
            "quantity_before",
            "quantity_after",
            "cost_per_unit_at_time",
        ]
        read_only_fields = fields


class MovementResultSerializer(serializers.Serializer):
    transaction = LedgerEntrySerializer()
    new_quantity = _quantity_field()


class ItemSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    name_ar = serializers.CharField(allow_null=True)
    sku = serializers.CharField(allow_null=True)
    unit = serializers.CharField()
    storage_unit = serializers.CharField()


class BranchSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    name_ar = serializers.CharField(allow_null=True)


class UserSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField()
    first_name = serializers.CharField(allow_null=True)
    last_name = serializers.CharField(allow_null=True)


class TimelineEntrySerializer(serializers.Serializer):
    """A ledger entry flattened with its (possibly missing) join targets."""

    def to_representation(self, instance):
        data = LedgerEntrySerializer(instance.transaction).data
        data["item"] = ItemSummarySerializer(instance.item).data if instance.item else None
        data["branch"] = BranchSummarySerializer(instance.branch).data if instance.branch else None
        data["user"] = UserSummarySerializer(instance.user).data if instance.user else None
        return data


class TimelinePageSerializer(serializers.Serializer):
    transactions = TimelineEntrySerializer(many=True)
    total = serializers.IntegerField()
    page = serializers.IntegerField()
    limit = serializers.IntegerField()
    has_more = serializers.BooleanField()


class TimelineQuerySerializer(serializers.Serializer):
    """Query-string filters for the timeline endpoints."""

    branch_id = serializers.IntegerField(required=False)
    item_id = serializers.IntegerField(required=False)
    transaction_type = serializers.ChoiceField(choices=TransactionType.choices, required=False)
    reference_type = serializers.ChoiceField(choices=ReferenceType.choices, required=False)
    deduction_reason = serializers.ChoiceField(choices=DeductionReason.choices, required=False)
    date_from = serializers.DateTimeField(required=False)
    date_to = serializers.DateTimeField(required=False)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, default=DEFAULT_PAGE_SIZE)

    def validate_limit(self, value):
        cap = getattr(settings, "INVENTORY_TIMELINE_MAX_LIMIT", 200)
        if value > cap:
            raise serializers.ValidationError(f"Ensure this value is less than or equal to {cap}.")
        return value

    def to_filters(self) -> TimelineFilters:
        return TimelineFilters(**self.validated_data)


class TimelineStatsQuerySerializer(serializers.Serializer):
    branch_id = serializers.IntegerField(required=False)


class DeductionReasonCountSerializer(serializers.Serializer):
    reason = serializers.CharField()
    count = serializers.IntegerField()


class TimelineStatsSerializer(serializers.Serializer):
    today_transactions = serializers.IntegerField()
    today_additions = serializers.IntegerField()
    today_deductions = serializers.IntegerField()
    week_transactions = serializers.IntegerField()
    top_deduction_reasons = DeductionReasonCountSerializer(many=True)


class StockQuerySerializer(serializers.Serializer):
    branch_id = serializers.IntegerField(required=False)


class StockSnapshotSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    branch_id = serializers.IntegerField(allow_null=True)
    quantity = _quantity_field()
    cost_per_unit = serializers.DecimalField(max_digits=15, decimal_places=8)
    storage_unit = serializers.CharField()


class StockLevelSerializer(serializers.ModelSerializer):
    """Read-only stock projection row with the item's display fields."""

    item_name = serializers.CharField(source="item.name", read_only=True)
    storage_unit = serializers.CharField(source="item.storage_unit", read_only=True)
    quantity = _quantity_field(read_only=True)
    reserved_quantity = _quantity_field(read_only=True)
    held_quantity = _quantity_field(read_only=True)
    min_quantity = _quantity_field(read_only=True)
    available = _quantity_field(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = StockLevel
        fields = [
            "id",
            "item_id",
            "item_name",
            "branch_id",
            "storage_unit",
            "quantity",
            "reserved_quantity",
            "held_quantity",
            "min_quantity",
            "available",
            "is_low_stock",
            "updated_at",
        ]
        read_only_fields = fields


# EOF
