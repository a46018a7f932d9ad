import threading
from decimal import Decimal
from typing import List

import pytest
from business.tests.factories import BranchFactory
from catalog.tests.factories import ItemFactory
from django.db import close_old_connections, connection
from inventory.exceptions import InsufficientStockError, InventoryError
from inventory.models import LedgerEntry, StockLevel
from inventory.scope import Scope
from inventory.selectors import find_drift
from inventory.services import add_stock, deduct_stock, transfer_stock

POOL = Scope.business()


def _run_threads(target, arg_sets):
    barrier = threading.Barrier(len(arg_sets))
    threads = [threading.Thread(target=target, args=(barrier, *args)) for args in arg_sets]
    for t in threads:
        t.start()
    for t in threads:
        t.join()


def _deduct_worker(barrier: threading.Barrier, item, qty, successes: List[Decimal], errors: List[Exception]):
    # Ensure this thread uses its own DB connection
    close_old_connections()
    barrier.wait()
    try:
        result = deduct_stock(business_id=item.business_id, item_id=item.id, quantity=qty, reason="expired", scope=POOL)
        successes.append(result.new_quantity)
    except InventoryError as exc:
        errors.append(exc)
    finally:
        connection.close()


def _add_worker(barrier: threading.Barrier, item, qty, successes: List[Decimal], errors: List[Exception]):
    close_old_connections()
    barrier.wait()
    try:
        result = add_stock(business_id=item.business_id, item_id=item.id, quantity=qty, notes="race", scope=POOL)
        successes.append(result.new_quantity)
    except InventoryError as exc:  # pragma: no cover
        errors.append(exc)
    finally:
        connection.close()


def _transfer_worker(barrier: threading.Barrier, item, source, destination, errors: List[Exception]):
    close_old_connections()
    barrier.wait()
    try:
        for _ in range(5):
            transfer_stock(
                business_id=item.business_id, item_id=item.id, quantity=1, source=source, destination=destination
            )
    except Exception as exc:  # pragma: no cover
        errors.append(exc)
    finally:
        connection.close()


@pytest.mark.django_db(transaction=True)
def test_threaded_deductions_never_overdraw():
    if connection.vendor == "sqlite":
        pytest.skip("SQLite lacks real concurrent transactions; skipping threaded test.")
    item = ItemFactory()
    add_stock(business_id=item.business_id, item_id=item.id, quantity=10, notes="seed", scope=POOL)

    successes: List[Decimal] = []
    errors: List[Exception] = []
    _run_threads(_deduct_worker, [(item, 3, successes, errors) for _ in range(5)])

    # floor(10 / 3) deductions win, the rest see the reduced stock
    assert len(successes) == 3
    assert len(errors) == 2
    assert all(isinstance(exc, InsufficientStockError) for exc in errors)
    assert StockLevel.objects.get(item_id=item.id).quantity == 1
    assert LedgerEntry.objects.filter(item_id=item.id).count() == 4
    assert find_drift() == []


@pytest.mark.django_db(transaction=True)
def test_threaded_first_additions_create_one_stock_row():
    if connection.vendor == "sqlite":
        pytest.skip("SQLite lacks real concurrent transactions; skipping threaded test.")
    item = ItemFactory()

    successes: List[Decimal] = []
    errors: List[Exception] = []
    _run_threads(_add_worker, [(item, 2, successes, errors) for _ in range(4)])

    assert errors == []
    assert sorted(successes) == [2, 4, 6, 8]
    assert StockLevel.objects.filter(item_id=item.id).count() == 1
    assert StockLevel.objects.get(item_id=item.id).quantity == 8
    assert find_drift() == []


@pytest.mark.django_db(transaction=True)
def test_threaded_opposite_transfers_do_not_deadlock():
    if connection.vendor == "sqlite":
        pytest.skip("SQLite lacks real concurrent transactions; skipping threaded test.")
    item = ItemFactory()
    branch = Scope.branch(BranchFactory(business=item.business).id)
    add_stock(business_id=item.business_id, item_id=item.id, quantity=20, notes="seed", scope=POOL)
    add_stock(business_id=item.business_id, item_id=item.id, quantity=20, notes="seed", scope=branch)

    errors: List[Exception] = []
    _run_threads(_transfer_worker, [(item, POOL, branch, errors), (item, branch, POOL, errors)])

    assert errors == []
    assert StockLevel.objects.get(item_id=item.id, branch__isnull=True).quantity == 20
    assert StockLevel.objects.get(item_id=item.id, branch_id=branch.branch_id).quantity == 20
    assert find_drift() == []


# EOF
