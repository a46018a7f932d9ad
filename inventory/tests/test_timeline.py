from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from business.tests.factories import BranchFactory, BusinessFactory
from catalog.tests.factories import ItemFactory
from common.choices import DeductionReason, ReferenceType, TransactionType
from django.test import override_settings
from inventory.models import LedgerEntry
from inventory.scope import Scope
from inventory.selectors import (
    TimelineFilters,
    get_item_timeline,
    get_timeline,
    get_timeline_stats,
    list_stock_levels,
)
from inventory.services import add_stock, deduct_stock
from users.tests.factories import UserFactory

from .factories import LedgerEntryFactory, StockLevelFactory

POOL = Scope.business()
NOW = datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc)


def _deduction(business, item, reason, created_at, **kwargs):
    return LedgerEntryFactory(
        business=business,
        item=item,
        transaction_type=TransactionType.MANUAL_DEDUCTION,
        deduction_reason=reason,
        quantity_before=Decimal("5"),
        quantity_after=Decimal("4"),
        created_at=created_at,
        **kwargs,
    )


@pytest.mark.django_db
def test_timeline_scenario_newest_first_with_has_more():
    item = ItemFactory()
    biz = item.business_id
    add_stock(business_id=biz, item_id=item.id, quantity=10, notes="initial count", scope=POOL)
    deduct_stock(business_id=biz, item_id=item.id, quantity=3, reason="expired", scope=POOL)

    page = get_timeline(business_id=biz, filters=TimelineFilters(item_id=item.id, page=1, limit=1))

    assert page.total == 2
    assert page.has_more is True
    assert len(page.transactions) == 1
    newest = page.transactions[0].transaction
    assert newest.transaction_type == TransactionType.MANUAL_DEDUCTION
    assert newest.quantity == 3

    second = get_timeline(business_id=biz, filters=TimelineFilters(item_id=item.id, page=2, limit=1))
    assert second.has_more is False
    assert second.transactions[0].transaction.transaction_type == TransactionType.MANUAL_ADDITION


@pytest.mark.django_db
def test_timeline_ties_on_created_at_break_by_id_desc():
    item = ItemFactory()
    first = LedgerEntryFactory(business=item.business, item=item, created_at=NOW)
    second = LedgerEntryFactory(business=item.business, item=item, created_at=NOW)

    page = get_timeline(business_id=item.business_id)
    assert [row.transaction.id for row in page.transactions] == [second.id, first.id]


@pytest.mark.django_db
def test_timeline_filters_are_combined():
    business = BusinessFactory()
    item = ItemFactory(business=business)
    other_item = ItemFactory(business=business)
    branch = BranchFactory(business=business)

    match = _deduction(business, item, DeductionReason.DAMAGED, NOW, branch=branch, reference_type=ReferenceType.MANUAL)
    _deduction(business, item, DeductionReason.EXPIRED, NOW, branch=branch, reference_type=ReferenceType.MANUAL)
    _deduction(business, other_item, DeductionReason.DAMAGED, NOW, branch=branch)
    _deduction(business, item, DeductionReason.DAMAGED, NOW - timedelta(days=3), branch=branch)
    LedgerEntryFactory(business=business, item=item, branch=branch, created_at=NOW)
    # Another tenant's entry never leaks in
    LedgerEntryFactory(created_at=NOW)

    filters = TimelineFilters(
        branch_id=branch.id,
        item_id=item.id,
        transaction_type=TransactionType.MANUAL_DEDUCTION,
        reference_type=ReferenceType.MANUAL,
        deduction_reason=DeductionReason.DAMAGED,
        date_from=NOW - timedelta(hours=1),
        date_to=NOW,
    )
    page = get_timeline(business_id=business.id, filters=filters)
    assert page.total == 1
    assert page.transactions[0].transaction.id == match.id

    assert get_timeline(business_id=business.id).total == 5


@pytest.mark.django_db
def test_timeline_date_bounds_are_inclusive():
    item = ItemFactory()
    edge = LedgerEntryFactory(business=item.business, item=item, created_at=NOW)
    page = get_timeline(business_id=item.business_id, filters=TimelineFilters(date_from=NOW, date_to=NOW))
    assert [row.transaction.id for row in page.transactions] == [edge.id]


@pytest.mark.django_db
def test_timeline_joins_display_fields():
    user = UserFactory(first_name="Mona", last_name="Saleh")
    item = ItemFactory(business=user.business, name="Tomatoes", name_ar="طماطم", sku="TOM-1")
    branch = BranchFactory(business=user.business, name="Downtown")
    add_stock(
        business_id=user.business_id,
        item_id=item.id,
        quantity=1,
        notes="delivery",
        scope=Scope.branch(branch.id),
        performed_by_id=user.id,
    )

    row = get_timeline(business_id=user.business_id).transactions[0]
    assert row.item.name == "Tomatoes"
    assert row.item.name_ar == "طماطم"
    assert row.item.sku == "TOM-1"
    assert row.item.storage_unit == "Kg"
    assert row.branch.name == "Downtown"
    assert row.user.username == user.username
    assert (row.user.first_name, row.user.last_name) == ("Mona", "Saleh")


@pytest.mark.django_db
def test_timeline_missing_join_targets_become_none():
    user = UserFactory()
    item = ItemFactory(business=user.business)
    add_stock(
        business_id=user.business_id, item_id=item.id, quantity=1, notes="delivery", scope=POOL, performed_by_id=user.id
    )
    # Entry pointing at an item that no longer exists
    LedgerEntry.objects.create(
        business_id=user.business_id,
        item_id=item.id + 10_000,
        transaction_type=TransactionType.MANUAL_ADDITION,
        quantity=Decimal("1"),
        unit="Kg",
        quantity_before=Decimal("0"),
        quantity_after=Decimal("1"),
    )
    business_id = user.business_id
    user.delete()

    page = get_timeline(business_id=business_id)
    assert page.total == 2
    orphan, with_item = page.transactions
    assert orphan.item is None
    assert orphan.branch is None
    assert with_item.item is not None
    assert with_item.user is None
    assert with_item.transaction.performed_by_id is not None


@pytest.mark.django_db
def test_item_timeline_forces_item():
    item = ItemFactory()
    other = ItemFactory(business=item.business)
    LedgerEntryFactory(business=item.business, item=item)
    LedgerEntryFactory(business=item.business, item=other)

    page = get_item_timeline(business_id=item.business_id, item_id=item.id, filters=TimelineFilters(item_id=other.id))
    assert page.total == 1
    assert page.transactions[0].transaction.item_id == item.id


@pytest.mark.django_db
def test_timeline_stats_windows_and_counts():
    business = BusinessFactory()
    item = ItemFactory(business=business)
    today = NOW.replace(hour=0, minute=0)

    # Today: one addition, two deductions, one count adjustment (neither class)
    LedgerEntryFactory(business=business, item=item, created_at=today + timedelta(hours=9))
    _deduction(business, item, DeductionReason.EXPIRED, today + timedelta(hours=10))
    LedgerEntryFactory(
        business=business,
        item=item,
        transaction_type=TransactionType.ORDER_SALE,
        quantity_before=Decimal("5"),
        quantity_after=Decimal("4"),
        created_at=today + timedelta(hours=11),
    )
    LedgerEntryFactory(
        business=business,
        item=item,
        transaction_type=TransactionType.INVENTORY_COUNT_ADJUSTMENT,
        created_at=today + timedelta(hours=12),
    )
    # Earlier this week, including the first minute of the window
    _deduction(business, item, DeductionReason.EXPIRED, today - timedelta(days=1))
    _deduction(business, item, DeductionReason.DAMAGED, today - timedelta(days=7))
    # Outside the week, inside 30 days
    _deduction(business, item, DeductionReason.DAMAGED, today - timedelta(days=7, minutes=1))
    _deduction(business, item, DeductionReason.SPOILED, today - timedelta(days=20))
    _deduction(business, item, DeductionReason.SPOILED, today - timedelta(days=21))
    _deduction(business, item, DeductionReason.OTHERS, today - timedelta(days=22), notes="staff meal")
    # Outside 30 days
    _deduction(business, item, DeductionReason.OTHERS, NOW - timedelta(days=31), notes="old")
    _deduction(business, item, DeductionReason.OTHERS, NOW - timedelta(days=32), notes="old")
    # After "now" and other tenants are ignored
    LedgerEntryFactory(business=business, item=item, created_at=NOW + timedelta(minutes=5))
    _deduction(BusinessFactory(), ItemFactory(), DeductionReason.SPOILED, today + timedelta(hours=1))

    stats = get_timeline_stats(business_id=business.id, now=NOW)

    assert stats.today_transactions == 4
    assert stats.today_additions == 1
    assert stats.today_deductions == 2
    assert stats.week_transactions == 6
    assert stats.top_deduction_reasons == [
        {"reason": "damaged", "count": 2},
        {"reason": "expired", "count": 2},
        {"reason": "spoiled", "count": 2},
        {"reason": "others", "count": 1},
    ]


@pytest.mark.django_db
def test_timeline_stats_for_one_branch():
    business = BusinessFactory()
    item = ItemFactory(business=business)
    branch = BranchFactory(business=business)
    LedgerEntryFactory(business=business, item=item, branch=branch, created_at=NOW - timedelta(hours=1))
    LedgerEntryFactory(business=business, item=item, created_at=NOW - timedelta(hours=1))

    assert get_timeline_stats(business_id=business.id, branch_id=branch.id, now=NOW).today_transactions == 1
    assert get_timeline_stats(business_id=business.id, now=NOW).today_transactions == 2


@pytest.mark.django_db
@override_settings(TIME_ZONE="Asia/Riyadh")
def test_timeline_stats_today_starts_at_local_midnight():
    business = BusinessFactory()
    item = ItemFactory(business=business)
    # 22:30 UTC on the 9th is 01:30 on the 10th in Riyadh (UTC+3)
    LedgerEntryFactory(business=business, item=item, created_at=datetime(2025, 3, 9, 22, 30, tzinfo=timezone.utc))
    LedgerEntryFactory(business=business, item=item, created_at=datetime(2025, 3, 9, 20, 30, tzinfo=timezone.utc))

    stats = get_timeline_stats(business_id=business.id, now=NOW)
    assert stats.today_transactions == 1
    assert stats.week_transactions == 2


@pytest.mark.django_db
def test_top_reasons_limited_to_five_and_ignore_other_types():
    business = BusinessFactory()
    item = ItemFactory(business=business)
    for reason in DeductionReason:
        _deduction(business, item, reason, NOW - timedelta(days=1), notes="n")
    # Reasons on non-manual deductions are not counted
    LedgerEntryFactory(
        business=business,
        item=item,
        transaction_type=TransactionType.ORDER_SALE,
        deduction_reason=DeductionReason.EXPIRED,
        quantity_before=Decimal("5"),
        quantity_after=Decimal("4"),
        created_at=NOW - timedelta(days=1),
    )

    reasons = get_timeline_stats(business_id=business.id, now=NOW).top_deduction_reasons
    assert len(reasons) == 4
    assert [r["reason"] for r in reasons] == ["damaged", "expired", "others", "spoiled"]
    assert all(r["count"] == 1 for r in reasons)


@pytest.mark.django_db
def test_list_stock_levels_is_business_scoped_and_ordered_by_item():
    business = BusinessFactory()
    branch = BranchFactory(business=business)
    apples = ItemFactory(business=business, name="Apples")
    beans = ItemFactory(business=business, name="Beans")
    beans_pool = StockLevelFactory(business=business, item=beans)
    apples_branch = StockLevelFactory(business=business, item=apples, branch=branch)
    apples_pool = StockLevelFactory(business=business, item=apples)
    StockLevelFactory()

    rows = list(list_stock_levels(business_id=business.id))
    assert [row.id for row in rows] == [apples_pool.id, apples_branch.id, beans_pool.id]
