from django.db.models import F
from django_filters import rest_framework as filters

from .models import StockLevel


class StockLevelFilterSet(filters.FilterSet):
    branch_id = filters.NumberFilter(field_name="branch_id")
    item_id = filters.NumberFilter(field_name="item_id")
    low_stock = filters.BooleanFilter(method="filter_low_stock")

    class Meta:
        model = StockLevel
        fields = ["branch_id", "item_id", "low_stock"]

    def filter_low_stock(self, queryset, name, value):
        if value:
            return queryset.filter(quantity__lte=F("min_quantity"))
        return queryset


# EOF
