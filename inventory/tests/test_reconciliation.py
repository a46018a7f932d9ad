from decimal import Decimal
from io import StringIO

import pytest
from business.tests.factories import BranchFactory
from catalog.tests.factories import ItemFactory
from django.core.management import call_command
from django.core.management.base import CommandError
from inventory.models import LedgerEntry, StockLevel
from inventory.scope import Scope
from inventory.selectors import find_drift, fold_ledger
from inventory.services import add_stock, apply_movement, deduct_stock, reconcile_count, transfer_stock

POOL = Scope.business()


def _exercise(item):
    biz = item.business_id
    branch = Scope.branch(BranchFactory(business=item.business).id)
    add_stock(business_id=biz, item_id=item.id, quantity="12.5", notes="delivery", scope=POOL)
    deduct_stock(business_id=biz, item_id=item.id, quantity=2, reason="damaged", scope=POOL)
    transfer_stock(business_id=biz, item_id=item.id, quantity=5, source=POOL, destination=branch)
    apply_movement(business_id=biz, item_id=item.id, transaction_type="order_sale", quantity="1.25", scope=branch)
    reconcile_count(business_id=biz, item_id=item.id, counted_quantity=4, scope=branch)
    return branch


@pytest.mark.django_db
def test_ledger_folds_to_stock_level_for_every_key():
    item = ItemFactory()
    branch = _exercise(item)

    for scope in (POOL, branch):
        level = StockLevel.objects.get(item_id=item.id, **scope.lookup())
        assert fold_ledger(business_id=item.business_id, item_id=item.id, scope=scope) == level.quantity
    assert find_drift() == []


@pytest.mark.django_db
def test_every_entry_snapshot_is_consistent():
    item = ItemFactory()
    _exercise(item)

    entries = list(LedgerEntry.objects.filter(item_id=item.id))
    assert len(entries) == 6
    for entry in entries:
        assert entry.quantity_after == entry.quantity_before + entry.signed_quantity
        assert entry.quantity_after >= 0


@pytest.mark.django_db
def test_find_drift_reports_projection_edited_outside_services():
    item = ItemFactory()
    other = ItemFactory()
    add_stock(business_id=item.business_id, item_id=item.id, quantity=10, notes="delivery", scope=POOL)
    add_stock(business_id=other.business_id, item_id=other.id, quantity=1, notes="delivery", scope=POOL)
    StockLevel.objects.filter(item_id=item.id).update(quantity=Decimal("99"))

    drift = find_drift()
    assert len(drift) == 1
    assert drift[0].item_id == item.id
    assert drift[0].branch_id is None
    assert drift[0].projected == 99
    assert drift[0].folded == 10
    assert drift[0].difference == 89

    assert find_drift(business_id=other.business_id) == []


@pytest.mark.django_db
def test_reconcile_stock_command():
    item = ItemFactory()
    add_stock(business_id=item.business_id, item_id=item.id, quantity=3, notes="delivery", scope=POOL)

    out = StringIO()
    call_command("reconcile_stock", stdout=out)
    assert "match the ledger" in out.getvalue()

    StockLevel.objects.filter(item_id=item.id).update(quantity=Decimal("1"))
    out = StringIO()
    with pytest.raises(CommandError):
        call_command("reconcile_stock", "--business", str(item.business_id), stdout=out)
    assert f"item={item.id}" in out.getvalue()
    assert "stored 1, ledger 3" in out.getvalue()
