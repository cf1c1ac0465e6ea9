"""Tests for suppliers and purchase orders"""

from datetime import date
from decimal import Decimal

import pytest

from inventory_ledger.domain.exceptions import (
    MissingFieldsError,
    NotFoundOrUnauthorized,
    SupplierInUseError,
    ValidationError,
)
from inventory_ledger.infrastructure.database.models import Supplier
from inventory_ledger.services.order_service import OrderService
from inventory_ledger.services.supplier_service import SupplierService

OWNER_ID = 1


@pytest.fixture
def supplier_service(db) -> SupplierService:
    return SupplierService(db)


@pytest.fixture
def order_service(db, clock) -> OrderService:
    return OrderService(db, clock=clock)


@pytest.fixture
def supplier(supplier_service) -> Supplier:
    return supplier_service.create_supplier(OWNER_ID, "Metro Wholesale", "LIC-100", "555-0200", "metro@example.com")


def _order(order_service, supplier, **overrides):
    fields = dict(
        supplier_id=supplier.id,
        product_name="Rice 5kg",
        quantity=Decimal("50"),
        quantity_unit="kg",
        number_of_items=10,
    )
    fields.update(overrides)
    return order_service.create_order(OWNER_ID, **fields)


def test_create_supplier_trims_fields(supplier_service):
    supplier = supplier_service.create_supplier(OWNER_ID, " Fresh Farms ", "LIC-1", "555-1", "ff@example.com")

    assert supplier.name == "Fresh Farms"
    assert supplier_service.count_suppliers(OWNER_ID) == 1


def test_supplier_fields_are_required(supplier_service):
    with pytest.raises(MissingFieldsError) as exc_info:
        supplier_service.create_supplier(OWNER_ID, "Fresh Farms", "", None, "ff@example.com")

    assert "license_number" in str(exc_info.value)
    assert "phone" in str(exc_info.value)


@pytest.mark.parametrize(
    "name,license_number,phone,email",
    [
        ("Metro Wholesale", "LIC-2", "555-2", "a@example.com"),
        ("Other", "LIC-100", "555-2", "a@example.com"),
        ("Other", "LIC-2", "555-0200", "a@example.com"),
        ("Other", "LIC-2", "555-2", "metro@example.com"),
    ],
)
def test_supplier_fields_unique_per_owner(supplier_service, supplier, name, license_number, phone, email):
    with pytest.raises(ValidationError, match="already exists"):
        supplier_service.create_supplier(OWNER_ID, name, license_number, phone, email)


def test_same_supplier_details_allowed_for_another_owner(supplier_service, supplier):
    other = supplier_service.create_supplier(2, "Metro Wholesale", "LIC-100", "555-0200", "metro@example.com")

    assert other.id != supplier.id


def test_update_supplier(supplier_service, supplier):
    updated = supplier_service.update_supplier(supplier.id, OWNER_ID, phone="555-0300")

    assert updated.phone == "555-0300"
    assert updated.email == "metro@example.com"


def test_update_supplier_keeps_own_values_unique(supplier_service, supplier):
    supplier_service.create_supplier(OWNER_ID, "Fresh Farms", "LIC-1", "555-1", "ff@example.com")

    # Re-submitting its own name is fine, taking another's is not
    supplier_service.update_supplier(supplier.id, OWNER_ID, name="Metro Wholesale")
    with pytest.raises(ValidationError):
        supplier_service.update_supplier(supplier.id, OWNER_ID, name="Fresh Farms")


def test_list_suppliers_by_name(supplier_service, supplier):
    supplier_service.create_supplier(OWNER_ID, "Acme", "LIC-1", "555-1", "acme@example.com")

    assert [s.name for s in supplier_service.list_suppliers(OWNER_ID)] == ["Acme", "Metro Wholesale"]


def test_delete_supplier_refused_while_ordered(supplier_service, order_service, supplier):
    order = _order(order_service, supplier)

    with pytest.raises(SupplierInUseError):
        supplier_service.delete_supplier(supplier.id, OWNER_ID)

    order_service.delete_order(order.id, OWNER_ID)
    supplier_service.delete_supplier(supplier.id, OWNER_ID)
    assert supplier_service.count_suppliers(OWNER_ID) == 0


def test_delete_supplier_refused_while_stocked(supplier_service, supplier, product, db):
    product.supplier_id = supplier.id
    db.commit()

    with pytest.raises(SupplierInUseError) as exc_info:
        supplier_service.delete_supplier(supplier.id, OWNER_ID)

    assert exc_info.value.stock_items == 1


def test_get_supplier_of_another_owner(supplier_service, supplier):
    with pytest.raises(NotFoundOrUnauthorized):
        supplier_service.get_supplier(supplier.id, 2)


def test_create_order_defaults(order_service, supplier):
    order = _order(order_service, supplier)

    assert order.order_date == date(2024, 3, 15)
    assert order.status == "Pending"
    assert order.supplier_name == "Metro Wholesale"
    assert order_service.count_orders(OWNER_ID) == 1


def test_create_order_requires_fields(order_service, supplier):
    with pytest.raises(MissingFieldsError):
        _order(order_service, supplier, quantity_unit="")


@pytest.mark.parametrize("overrides", [{"quantity": Decimal("0")}, {"number_of_items": 0}])
def test_create_order_rejects_non_positive_amounts(order_service, supplier, overrides):
    with pytest.raises(ValidationError):
        _order(order_service, supplier, **overrides)


def test_order_supplier_must_belong_to_owner(order_service, supplier_service):
    foreign = supplier_service.create_supplier(2, "Elsewhere", "LIC-9", "555-9", "e@example.com")

    with pytest.raises(NotFoundOrUnauthorized):
        _order(order_service, foreign)


def test_list_orders_newest_first(order_service, supplier):
    older = _order(order_service, supplier, order_date=date(2024, 3, 1))
    newer = _order(order_service, supplier, order_date=date(2024, 3, 10))

    assert [o.id for o in order_service.list_orders(OWNER_ID)] == [newer.id, older.id]


def test_update_order(order_service, supplier_service, supplier):
    order = _order(order_service, supplier)
    other = supplier_service.create_supplier(OWNER_ID, "Fresh Farms", "LIC-1", "555-1", "ff@example.com")

    updated = order_service.update_order(order.id, OWNER_ID, supplier_id=other.id, status="Received")

    assert updated.status == "Received"
    assert updated.supplier_name == "Fresh Farms"
    assert updated.number_of_items == 10
