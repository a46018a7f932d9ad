from django.urls import path

from .views import (
    AddStockView,
    DeductStockView,
    InventoryHealthView,
    ItemStockView,
    ItemTimelineView,
    StockLevelListView,
    TimelineStatsView,
    TimelineView,
)

urlpatterns = [
    path("health/", InventoryHealthView.as_view(), name="inventory-health"),
    # Manual adjustments
    path("adjustments/add/", AddStockView.as_view(), name="inventory-add-stock"),
    path("adjustments/deduct/", DeductStockView.as_view(), name="inventory-deduct-stock"),
    # Timeline
    path("timeline/", TimelineView.as_view(), name="inventory-timeline"),
    path("timeline/stats/", TimelineStatsView.as_view(), name="inventory-timeline-stats"),
    path("items/<int:item_id>/timeline/", ItemTimelineView.as_view(), name="inventory-item-timeline"),
    # Stock reads
    path("items/<int:item_id>/stock/", ItemStockView.as_view(), name="inventory-item-stock"),
    path("stock-levels/", StockLevelListView.as_view(), name="inventory-stock-levels"),
]

# EOF
