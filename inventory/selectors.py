"""Read side of the inventory domain: timeline, stats, stock levels and drift."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from business.models import Branch
from catalog.models import Item
from common.choices import ADDITION_TYPES, DEDUCTION_TYPES, TransactionType
from django.contrib.auth import get_user_model
from django.db.models import Count, F, Q
from django.utils import timezone

from .models import LedgerEntry, StockLevel, signed_quantity
from .quantities import ZERO
from .scope import Scope

DEFAULT_PAGE_SIZE = 50
TOP_REASONS_LIMIT = 5
TOP_REASONS_WINDOW_DAYS = 30
WEEK_WINDOW_DAYS = 7


@dataclass(frozen=True)
class TimelineFilters:
    branch_id: Optional[int] = None
    item_id: Optional[int] = None
    transaction_type: Optional[str] = None
    reference_type: Optional[str] = None
    deduction_reason: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class ItemSummary:
    id: int
    name: str
    name_ar: Optional[str]
    sku: Optional[str]
    unit: str
    storage_unit: str


@dataclass(frozen=True)
class BranchSummary:
    id: int
    name: str
    name_ar: Optional[str]


@dataclass(frozen=True)
class UserSummary:
    id: int
    username: str
    first_name: Optional[str]
    last_name: Optional[str]


@dataclass(frozen=True)
class TimelineEntry:
    transaction: LedgerEntry
    item: Optional[ItemSummary] = None
    branch: Optional[BranchSummary] = None
    user: Optional[UserSummary] = None


@dataclass(frozen=True)
class TimelinePage:
    transactions: list
    total: int
    page: int
    limit: int

    @property
    def has_more(self) -> bool:
        return self.total > self.page * self.limit


@dataclass(frozen=True)
class TimelineStats:
    today_transactions: int
    today_additions: int
    today_deductions: int
    week_transactions: int
    top_deduction_reasons: list = field(default_factory=list)


@dataclass(frozen=True)
class StockDrift:
    business_id: int
    item_id: int
    branch_id: Optional[int]
    projected: Decimal
    folded: Decimal

    @property
    def difference(self) -> Decimal:
        return self.projected - self.folded


def _filtered_ledger(business_id: int, filters: TimelineFilters):
    qs = LedgerEntry.objects.filter(business_id=business_id)
    if filters.branch_id is not None:
        qs = qs.filter(branch_id=filters.branch_id)
    if filters.item_id is not None:
        qs = qs.filter(item_id=filters.item_id)
    if filters.transaction_type:
        qs = qs.filter(transaction_type=filters.transaction_type)
    if filters.reference_type:
        qs = qs.filter(reference_type=filters.reference_type)
    if filters.deduction_reason:
        qs = qs.filter(deduction_reason=filters.deduction_reason)
    if filters.date_from is not None:
        qs = qs.filter(created_at__gte=filters.date_from)
    if filters.date_to is not None:
        qs = qs.filter(created_at__lte=filters.date_to)
    return qs


def _join_summaries(entries: list) -> list:
    """Attach item, branch and user summaries with one bulk query per target.

    Ledger references carry no FK constraint, so a target may be gone; the
    summary is then None and the entry is still returned.
    """

    items = Item.objects.only("id", "name", "name_ar", "sku", "unit", "storage_unit").in_bulk(
        {e.item_id for e in entries}
    )
    branches = Branch.objects.only("id", "name", "name_ar").in_bulk(
        {e.branch_id for e in entries if e.branch_id is not None}
    )
    users = (
        get_user_model()
        .objects.only("id", "username", "first_name", "last_name")
        .in_bulk({e.performed_by_id for e in entries if e.performed_by_id is not None})
    )

    rows = []
    for entry in entries:
        item = items.get(entry.item_id)
        branch = branches.get(entry.branch_id)
        user = users.get(entry.performed_by_id)
        rows.append(
            TimelineEntry(
                transaction=entry,
                item=(
                    ItemSummary(
                        item.id, item.name, item.name_ar or None, item.sku or None, item.unit, item.storage_unit
                    )
                    if item
                    else None
                ),
                branch=BranchSummary(branch.id, branch.name, branch.name_ar or None) if branch else None,
                user=UserSummary(user.id, user.username, user.first_name or None, user.last_name or None)
                if user
                else None,
            )
        )
    return rows


def get_timeline(*, business_id: int, filters: Optional[TimelineFilters] = None) -> TimelinePage:
    """Newest-first page of ledger entries for a business."""

    filters = filters or TimelineFilters()
    page = max(int(filters.page), 1)
    limit = max(int(filters.limit), 1)
    qs = _filtered_ledger(business_id, filters).order_by("-created_at", "-id")
    total = qs.count()
    offset = (page - 1) * limit
    entries = list(qs[offset : offset + limit])
    return TimelinePage(transactions=_join_summaries(entries), total=total, page=page, limit=limit)


def get_item_timeline(*, business_id: int, item_id: int, filters: Optional[TimelineFilters] = None) -> TimelinePage:
    return get_timeline(business_id=business_id, filters=replace(filters or TimelineFilters(), item_id=item_id))


def _local_midnight(now: datetime, days_ago: int = 0) -> datetime:
    local = timezone.localtime(now) - timedelta(days=days_ago)
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def get_timeline_stats(*, business_id: int, branch_id: Optional[int] = None, now: Optional[datetime] = None):
    """Dashboard counters: today, the trailing week and recent deduction reasons.

    Windows are anchored to local midnight in ``TIME_ZONE``; the reasons window
    is the trailing thirty days from ``now``.
    """

    now = now or timezone.now()
    qs = LedgerEntry.objects.filter(business_id=business_id, created_at__lte=now)
    if branch_id is not None:
        qs = qs.filter(branch_id=branch_id)

    today_start = _local_midnight(now)
    counts = qs.aggregate(
        today_transactions=Count("id", filter=Q(created_at__gte=today_start)),
        today_additions=Count(
            "id",
            filter=Q(created_at__gte=today_start, transaction_type__in=[t.value for t in ADDITION_TYPES]),
        ),
        today_deductions=Count(
            "id",
            filter=Q(created_at__gte=today_start, transaction_type__in=[t.value for t in DEDUCTION_TYPES]),
        ),
        week_transactions=Count("id", filter=Q(created_at__gte=_local_midnight(now, WEEK_WINDOW_DAYS))),
    )

    reasons = (
        qs.filter(
            transaction_type=TransactionType.MANUAL_DEDUCTION,
            deduction_reason__isnull=False,
            created_at__gte=now - timedelta(days=TOP_REASONS_WINDOW_DAYS),
        )
        .values("deduction_reason")
        .annotate(count=Count("id"))
        .order_by("-count", "deduction_reason")[:TOP_REASONS_LIMIT]
    )
    return TimelineStats(
        top_deduction_reasons=[{"reason": r["deduction_reason"], "count": r["count"]} for r in reasons],
        **counts,
    )


def list_stock_levels(*, business_id: int):
    """Stock rows of one business by item, pool row first. List filters live in StockLevelFilterSet."""
    return (
        StockLevel.objects.filter(business_id=business_id)
        .select_related("item", "branch")
        .order_by("item__name", "item_id", F("branch_id").asc(nulls_first=True))
    )


def fold_ledger(*, business_id: int, item_id: int, scope: Scope) -> Decimal:
    """Replay every entry for a key in insertion order and return the total."""

    total = ZERO
    rows = (
        LedgerEntry.objects.for_key(business_id=business_id, item_id=item_id, scope=scope)
        .order_by("id")
        .values_list("transaction_type", "quantity", "quantity_before", "quantity_after")
        .iterator()
    )
    for transaction_type, quantity, before, after in rows:
        total += signed_quantity(transaction_type, quantity, before, after)
    return total


def find_drift(*, business_id: Optional[int] = None) -> list:
    """Stock rows whose stored quantity disagrees with their folded ledger."""

    levels = StockLevel.objects.order_by("business_id", "item_id", "branch_id")
    if business_id is not None:
        levels = levels.filter(business_id=business_id)

    drift = []
    for level in levels.only("business_id", "item_id", "branch_id", "quantity").iterator():
        folded = fold_ledger(business_id=level.business_id, item_id=level.item_id, scope=level.scope)
        if folded != level.quantity:
            drift.append(
                StockDrift(
                    business_id=level.business_id,
                    item_id=level.item_id,
                    branch_id=level.branch_id,
                    projected=level.quantity,
                    folded=folded,
                )
            )
    return drift


# EOF
