"""DRF views for manual adjustments, the transaction timeline and stock reads."""

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from rest_framework import generics, status
from rest_framework import serializers as rf_serializers
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle, UserRateThrottle
from rest_framework.views import APIView

from .exceptions import InsufficientStockError, NotFoundError, PersistenceError, ValidationError
from .filters import StockLevelFilterSet
from .models import StockLevel
from .permissions import IsBusinessMember
from .scope import Scope
from .selectors import get_item_timeline, get_timeline, get_timeline_stats, list_stock_levels
from .serializers import (
    AddStockSerializer,
    DeductStockSerializer,
    MovementResultSerializer,
    StockLevelSerializer,
    StockQuerySerializer,
    StockSnapshotSerializer,
    TimelinePageSerializer,
    TimelineQuerySerializer,
    TimelineStatsQuerySerializer,
    TimelineStatsSerializer,
)
from .services import add_stock, deduct_stock, get_current_stock
from .throttling import InventoryScopedRateThrottle

_ERROR_RESPONSES = {
    400: inline_serializer(name="InventoryValidationError", fields={"detail": rf_serializers.CharField()}),
    404: inline_serializer(name="InventoryNotFoundError", fields={"detail": rf_serializers.CharField()}),
    409: inline_serializer(
        name="InsufficientStockError",
        fields={
            "detail": rf_serializers.CharField(),
            "available": rf_serializers.CharField(),
            "unit": rf_serializers.CharField(),
        },
    ),
    503: inline_serializer(name="InventoryPersistenceError", fields={"detail": rf_serializers.CharField()}),
}

_MOVEMENT_EXAMPLE = {
    "transaction": {
        "id": 42,
        "business_id": 1,
        "branch_id": None,
        "item_id": 7,
        "transaction_type": "manual_deduction",
        "quantity": "3.0000",
        "signed_quantity": "-3.0000",
        "unit": "Kg",
        "deduction_reason": "damaged",
        "reference_type": "manual",
        "reference_id": None,
        "notes": "",
        "performed_by_id": 5,
        "created_at": "2025-01-01T12:00:00Z",
        "quantity_before": "10.0000",
        "quantity_after": "7.0000",
        "cost_per_unit_at_time": "2.50000000",
    },
    "new_quantity": "7.0000",
}


def inventory_error_response(exc):
    """Map a service error onto the API's error envelope."""

    if isinstance(exc, InsufficientStockError):
        return Response(
            {"detail": str(exc), "available": f"{exc.available.normalize():f}", "unit": exc.unit},
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, NotFoundError):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, PersistenceError):
        # Storage details are already in the server log
        return Response(
            {"detail": "Unable to record inventory transaction."}, status=status.HTTP_503_SERVICE_UNAVAILABLE
        )
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


class InventoryAPIView(APIView):
    permission_classes = [IsBusinessMember]
    throttle_scope = "inventory"
    throttle_classes = [InventoryScopedRateThrottle, UserRateThrottle, AnonRateThrottle]


class InventoryHealthView(APIView):
    permission_classes = []
    throttle_classes = []

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Inventory health",
        description="Simple healthcheck endpoint for the inventory app",
        examples=[OpenApiExample("Health OK", value={"status": "ok", "app": "inventory"})],
    )
    def get(self, request):
        return Response({"status": "ok", "app": "inventory"})


class AddStockView(InventoryAPIView):
    """Manually add stock with a written justification."""

    throttle_scope = "inventory_write"

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Add stock",
        description=(
            "Records a manual_addition for the item at the branch, or the business pool when branch_id is omitted. "
            "`notes` is required."
        ),
        request=AddStockSerializer,
        responses={201: MovementResultSerializer, **_ERROR_RESPONSES},
        examples=[
            OpenApiExample(
                "Add",
                value={"item_id": 7, "branch_id": None, "quantity": "5", "notes": "Delivery recount"},
                request_only=True,
            )
        ],
    )
    def post(self, request):
        serializer = AddStockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            result = add_stock(
                business_id=request.user.business_id,
                item_id=data["item_id"],
                quantity=data["quantity"],
                notes=data.get("notes", ""),
                scope=Scope.from_branch_id(data.get("branch_id")),
                performed_by_id=request.user.id,
            )
        except (ValidationError, InsufficientStockError, NotFoundError, PersistenceError) as exc:
            return inventory_error_response(exc)
        return Response(MovementResultSerializer(result).data, status=status.HTTP_201_CREATED)


class DeductStockView(InventoryAPIView):
    """Manually deduct stock for a categorised reason."""

    throttle_scope = "inventory_write"

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Deduct stock",
        description=(
            "Records a manual_deduction. `reason` is one of expired, damaged, spoiled, others; "
            "`others` requires notes. Returns 409 when the deduction exceeds the on-hand quantity."
        ),
        request=DeductStockSerializer,
        responses={201: MovementResultSerializer, **_ERROR_RESPONSES},
        examples=[
            OpenApiExample("Deducted", value=_MOVEMENT_EXAMPLE, response_only=True, status_codes=["201"]),
            OpenApiExample(
                "Insufficient",
                value={"detail": "Insufficient stock. Available: 2 Kg", "available": "2", "unit": "Kg"},
                response_only=True,
                status_codes=["409"],
            ),
        ],
    )
    def post(self, request):
        serializer = DeductStockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            result = deduct_stock(
                business_id=request.user.business_id,
                item_id=data["item_id"],
                quantity=data["quantity"],
                reason=data["reason"],
                notes=data.get("notes"),
                scope=Scope.from_branch_id(data.get("branch_id")),
                performed_by_id=request.user.id,
            )
        except (ValidationError, InsufficientStockError, NotFoundError, PersistenceError) as exc:
            return inventory_error_response(exc)
        return Response(MovementResultSerializer(result).data, status=status.HTTP_201_CREATED)


_TIMELINE_PARAMETERS = [
    OpenApiParameter("branch_id", OpenApiTypes.INT, location="query", description="Only entries for this branch"),
    OpenApiParameter("transaction_type", OpenApiTypes.STR, location="query"),
    OpenApiParameter("reference_type", OpenApiTypes.STR, location="query"),
    OpenApiParameter("deduction_reason", OpenApiTypes.STR, location="query"),
    OpenApiParameter("date_from", OpenApiTypes.DATETIME, location="query", description="Inclusive lower bound"),
    OpenApiParameter("date_to", OpenApiTypes.DATETIME, location="query", description="Inclusive upper bound"),
    OpenApiParameter("page", OpenApiTypes.INT, location="query", description="1-indexed page (default 1)"),
    OpenApiParameter("limit", OpenApiTypes.INT, location="query", description="Page size (default 50)"),
]


class TimelineView(InventoryAPIView):
    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Transaction timeline",
        description="Newest-first ledger entries for the user's business with item, branch and user display fields.",
        parameters=[
            OpenApiParameter("item_id", OpenApiTypes.INT, location="query", description="Only entries for this item"),
            *_TIMELINE_PARAMETERS,
        ],
        responses={200: TimelinePageSerializer},
    )
    def get(self, request):
        query = TimelineQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        page = get_timeline(business_id=request.user.business_id, filters=query.to_filters())
        return Response(TimelinePageSerializer(page).data)


class ItemTimelineView(InventoryAPIView):
    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Item transaction timeline",
        description="Timeline restricted to one item.",
        parameters=_TIMELINE_PARAMETERS,
        responses={200: TimelinePageSerializer},
    )
    def get(self, request, item_id: int):
        query = TimelineQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        page = get_item_timeline(business_id=request.user.business_id, item_id=item_id, filters=query.to_filters())
        return Response(TimelinePageSerializer(page).data)


class TimelineStatsView(InventoryAPIView):
    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Timeline statistics",
        description=(
            "Counts for today and the trailing week, and the five most frequent manual deduction "
            "reasons of the last 30 days."
        ),
        parameters=[OpenApiParameter("branch_id", OpenApiTypes.INT, location="query")],
        responses={200: TimelineStatsSerializer},
        examples=[
            OpenApiExample(
                "Stats",
                value={
                    "today_transactions": 4,
                    "today_additions": 1,
                    "today_deductions": 3,
                    "week_transactions": 19,
                    "top_deduction_reasons": [{"reason": "expired", "count": 6}, {"reason": "damaged", "count": 2}],
                },
            )
        ],
    )
    def get(self, request):
        query = TimelineStatsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        stats = get_timeline_stats(
            business_id=request.user.business_id, branch_id=query.validated_data.get("branch_id")
        )
        return Response(TimelineStatsSerializer(stats).data)


class ItemStockView(InventoryAPIView):
    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Current stock for an item",
        description="On-hand quantity at the branch, or the business pool when branch_id is omitted.",
        parameters=[OpenApiParameter("branch_id", OpenApiTypes.INT, location="query")],
        responses={200: StockSnapshotSerializer, 404: _ERROR_RESPONSES[404]},
    )
    def get(self, request, item_id: int):
        query = StockQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        branch_id = query.validated_data.get("branch_id")
        try:
            snapshot = get_current_stock(
                business_id=request.user.business_id, item_id=item_id, scope=Scope.from_branch_id(branch_id)
            )
        except (NotFoundError, PersistenceError) as exc:
            return inventory_error_response(exc)
        data = {
            "item_id": item_id,
            "branch_id": branch_id,
            "quantity": snapshot.quantity,
            "cost_per_unit": snapshot.cost_per_unit,
            "storage_unit": snapshot.storage_unit,
        }
        return Response(StockSnapshotSerializer(data).data)


class StockLevelListView(generics.ListAPIView):
    permission_classes = [IsBusinessMember]
    serializer_class = StockLevelSerializer
    filterset_class = StockLevelFilterSet
    throttle_scope = "inventory"
    throttle_classes = [InventoryScopedRateThrottle, UserRateThrottle, AnonRateThrottle]

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List stock levels",
        description="Stock projection rows for the user's business. Filters: branch_id, item_id, low_stock.",
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return StockLevel.objects.none()
        return list_stock_levels(business_id=self.request.user.business_id)


# EOF
