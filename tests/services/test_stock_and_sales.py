"""Tests for stock maintenance, customers and cash sales"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from inventory_ledger.domain.exceptions import (
    InsufficientStockError,
    MissingFieldsError,
    NotFoundOrUnauthorized,
    ProductNotFoundError,
    StockInUseError,
    ValidationError,
)
from inventory_ledger.domain.models import (
    CustomerUpdate,
    LineItemInput,
    NewCreditAccount,
    SaleItemInput,
    StockUpdate,
)
from inventory_ledger.infrastructure.database.models import CreditAccount, Customer, Sale, StockItem, Supplier
from inventory_ledger.services.customer_service import CustomerService
from inventory_ledger.services.sale_service import SaleService
from inventory_ledger.services.stock_service import StockService

OWNER_ID = 1


@pytest.fixture
def stock_service(db, reporting, clock) -> StockService:
    return StockService(db, low_stock_threshold=10, reporting=reporting, clock=clock)


@pytest.fixture
def sale_service(db, clock) -> SaleService:
    return SaleService(db, clock=clock)


def test_create_item_computes_quantity(stock_service):
    item = stock_service.create_item(
        OWNER_ID,
        product_name="Sugar",
        category="Staples",
        number_of_items=12,
        package_size=Decimal("2.5"),
        quantity_unit="kg",
        selling_price=Decimal("60"),
    )

    assert item.quantity == Decimal("30.0")
    assert stock_service.get_item(item.id, OWNER_ID).product_name == "Sugar"


def test_duplicate_product_name_is_rejected(stock_service, product):
    with pytest.raises(ValidationError):
        stock_service.create_item(OWNER_ID, product_name="Rice 5kg", category="Grains", number_of_items=1)


def test_get_item_of_another_owner(stock_service, product):
    with pytest.raises(ProductNotFoundError):
        stock_service.get_item(product.id, 2)


def test_restock_adds_items(stock_service, second_product):
    item = stock_service.restock(second_product.id, OWNER_ID, 4)

    assert item.number_of_items == 7
    assert item.quantity == Decimal("14")


def test_restock_must_be_positive(stock_service, product):
    with pytest.raises(ValidationError):
        stock_service.restock(product.id, OWNER_ID, 0)


def test_low_stock_uses_item_threshold_then_default(stock_service, product, second_product, db):
    product.low_stock_threshold = 25
    db.commit()

    low = stock_service.low_stock(OWNER_ID)

    # Rice: 20 <= 25 (own threshold); Cooking Oil: 3 <= 10 (default)
    assert {i.product_name for i in low} == {"Rice 5kg", "Cooking Oil"}


def test_low_stock_excludes_well_stocked_items(stock_service, product):
    assert stock_service.low_stock(OWNER_ID) == []


def test_delete_unreferenced_item(stock_service, product, db):
    stock_service.delete_item(product.id, OWNER_ID)

    assert db.query(StockItem).count() == 0


def test_delete_refused_while_referenced(stock_service, credit_service, customer, product, db):
    credit_service.create_credit(
        NewCreditAccount(
            customer_id=customer.id,
            user_id=OWNER_ID,
            products=[LineItemInput(product_id=product.id, number_of_items=1, price_per_unit=Decimal("100"))],
            interest_rate=Decimal("0"),
        )
    )

    with pytest.raises(StockInUseError):
        stock_service.delete_item(product.id, OWNER_ID)

    assert db.query(StockItem).count() == 1


def test_customer_defaults(db, reporting):
    service = CustomerService(db, reporting)

    customer = service.create_customer(OWNER_ID, "  Chandra  ")

    assert customer.customer_name == "Chandra"
    assert customer.credit_score == 100
    assert [c.id for c in service.list_customers(OWNER_ID)] == [customer.id]


def test_customer_name_required(db, reporting):
    with pytest.raises(MissingFieldsError):
        CustomerService(db, reporting).create_customer(OWNER_ID, "")


def test_customer_scoped_to_owner(db, reporting, customer):
    with pytest.raises(NotFoundOrUnauthorized):
        CustomerService(db, reporting).get_customer(customer.id, 2)


def test_sale_reserves_stock_and_totals(sale_service, product, second_product, db):
    sale = sale_service.record_sale(
        OWNER_ID,
        [
            SaleItemInput(product_id=product.id, quantity=2, unit_price=Decimal("100")),
            SaleItemInput(product_id=second_product.id, quantity=1, unit_price=Decimal("50")),
        ],
        discount=Decimal("25"),
    )

    assert sale.total_amount == Decimal("250.00")
    assert sale.final_amount == Decimal("225.00")
    assert sale.sale_date == date(2024, 3, 15)
    assert len(sale.items) == 2

    db.refresh(product)
    assert product.number_of_items == 18


def test_sale_with_insufficient_stock_rolls_back(sale_service, product, second_product, db):
    with pytest.raises(InsufficientStockError):
        sale_service.record_sale(
            OWNER_ID,
            [
                SaleItemInput(product_id=product.id, quantity=2, unit_price=Decimal("100")),
                SaleItemInput(product_id=second_product.id, quantity=9, unit_price=Decimal("50")),
            ],
        )

    assert db.query(Sale).count() == 0
    db.refresh(product)
    assert product.number_of_items == 20


def test_discount_cannot_exceed_total(sale_service, product):
    with pytest.raises(ValidationError):
        sale_service.record_sale(
            OWNER_ID,
            [SaleItemInput(product_id=product.id, quantity=1, unit_price=Decimal("10"))],
            discount=Decimal("11"),
        )


def test_list_sales_by_date_window(sale_service, product):
    sale_service.record_sale(
        OWNER_ID,
        [SaleItemInput(product_id=product.id, quantity=1, unit_price=Decimal("10"))],
        sale_date=date(2024, 3, 1),
    )
    recent = sale_service.record_sale(
        OWNER_ID,
        [SaleItemInput(product_id=product.id, quantity=1, unit_price=Decimal("10"))],
        sale_date=date(2024, 3, 14),
    )

    sales = sale_service.list_sales(OWNER_ID, start_date=date(2024, 3, 10))

    assert [s.id for s in sales] == [recent.id]


def _open_credit(credit_service, customer, product, items=5):
    return credit_service.create_credit(
        NewCreditAccount(
            customer_id=customer.id,
            user_id=OWNER_ID,
            products=[LineItemInput(product_id=product.id, number_of_items=items, price_per_unit=Decimal("100"))],
            interest_rate=Decimal("10"),
        )
    )


def test_update_item_recomputes_quantity(stock_service, second_product):
    item = stock_service.update_item(
        second_product.id,
        OWNER_ID,
        StockUpdate(number_of_items=5, package_size=Decimal("3"), selling_price=Decimal("55")),
    )

    assert item.number_of_items == 5
    assert item.quantity == Decimal("15")
    assert item.selling_price == Decimal("55")
    assert item.category == "Oils"


def test_update_item_rejects_taken_name(stock_service, product, second_product):
    with pytest.raises(ValidationError):
        stock_service.update_item(second_product.id, OWNER_ID, StockUpdate(product_name="Rice 5kg"))


def test_update_item_requires_owned_supplier(stock_service, product, db):
    supplier = Supplier(user_id=2, name="Other", license_number="L-9", phone="555-9", email="o@example.com")
    db.add(supplier)
    db.commit()

    with pytest.raises(NotFoundOrUnauthorized):
        stock_service.update_item(product.id, OWNER_ID, StockUpdate(supplier_id=supplier.id))


def test_rename_drops_cached_credit_views(stock_service, credit_service, reporting, customer, product, db):
    created = _open_credit(credit_service, customer, product)
    before = reporting.get_account_view(db, created.credit_id, OWNER_ID)
    assert before.products[0].product_name == "Rice 5kg"

    stock_service.update_item(product.id, OWNER_ID, StockUpdate(product_name="Basmati 5kg"))

    after = reporting.get_account_view(db, created.credit_id, OWNER_ID)
    assert after.products[0].product_name == "Basmati 5kg"


def test_expiring_soon_window(stock_service, product, second_product, clock, db):
    product.expiry_date = clock.today() + timedelta(days=10)
    second_product.expiry_date = clock.today() + timedelta(days=45)
    db.add(
        StockItem(
            user_id=OWNER_ID,
            product_name="Old Milk",
            category="Dairy",
            number_of_items=1,
            quantity=Decimal("1"),
            expiry_date=clock.today() - timedelta(days=1),
        )
    )
    db.commit()

    expiring = stock_service.expiring_soon(OWNER_ID)

    assert [(e.product_name, e.days_until_expiry, e.supplier_name) for e in expiring] == [("Rice 5kg", 10, "N/A")]


def test_stock_counts(stock_service, product, second_product, clock, db):
    product.expiry_date = clock.today() + timedelta(days=3)
    db.commit()

    counts = stock_service.counts(OWNER_ID)

    assert (counts.total, counts.low_stock, counts.expiring_soon) == (2, 1, 1)


def test_update_customer_drops_cached_credit_views(db, reporting, credit_service, customer, product):
    created = _open_credit(credit_service, customer, product)
    assert reporting.get_account_view(db, created.credit_id, OWNER_ID).customer_name == "Asha Traders"

    updated = CustomerService(db, reporting).update_customer(
        customer.id, OWNER_ID, CustomerUpdate(customer_name="Asha Stores", credit_score=80)
    )

    assert updated.credit_score == 80
    assert reporting.get_account_view(db, created.credit_id, OWNER_ID).customer_name == "Asha Stores"


def test_update_customer_rejects_blank_name(db, reporting, customer):
    with pytest.raises(MissingFieldsError):
        CustomerService(db, reporting).update_customer(customer.id, OWNER_ID, CustomerUpdate(customer_name=" "))


def test_delete_customer_removes_credits_and_sales(db, reporting, credit_service, sale_service, customer, product):
    _open_credit(credit_service, customer, product)
    sale_service.record_sale(
        OWNER_ID,
        [SaleItemInput(product_id=product.id, quantity=1, unit_price=Decimal("100"))],
        customer_id=customer.id,
    )

    CustomerService(db, reporting).delete_customer(customer.id, OWNER_ID)

    assert db.query(Customer).count() == 0
    assert db.query(CreditAccount).count() == 0
    assert db.query(Sale).count() == 0


def test_purchase_history_includes_archived(db, reporting, credit_service, sale_service, customer, product):
    created = _open_credit(credit_service, customer, product, items=1)
    credit_service.archive(created.credit_id, OWNER_ID)
    sale = sale_service.record_sale(
        OWNER_ID,
        [SaleItemInput(product_id=product.id, quantity=2, unit_price=Decimal("100"))],
        customer_id=customer.id,
    )
    sale_service.archive(sale.id, OWNER_ID)

    history = CustomerService(db, reporting).purchases(customer.id, OWNER_ID)

    assert history.customer_name == "Asha Traders"
    assert [s.id for s in history.sales] == [sale.id]
    assert [c.credit_id for c in history.credits] == [created.credit_id]


def test_credit_score(db, reporting, customer):
    assert CustomerService(db, reporting).credit_score(customer.id, OWNER_ID) == 100


def test_archived_sales_leave_listing_and_stats(sale_service, product):
    kept = sale_service.record_sale(
        OWNER_ID,
        [SaleItemInput(product_id=product.id, quantity=2, unit_price=Decimal("100"))],
        discount=Decimal("20"),
    )
    hidden = sale_service.record_sale(
        OWNER_ID,
        [SaleItemInput(product_id=product.id, quantity=1, unit_price=Decimal("100"))],
    )

    sale_service.archive(hidden.id, OWNER_ID)

    assert [s.id for s in sale_service.list_sales(OWNER_ID)] == [kept.id]
    assert {s.id for s in sale_service.list_sales(OWNER_ID, show_archived=True)} == {kept.id, hidden.id}
    stats = sale_service.stats(OWNER_ID)
    assert stats.total_sales == 1
    assert stats.total_revenue == Decimal("200.00")
    assert stats.total_discount == Decimal("20.00")
    assert stats.net_revenue == Decimal("180.00")

    assert sale_service.unarchive(hidden.id, OWNER_ID).is_archived is False
    assert sale_service.stats(OWNER_ID).total_sales == 2


def test_get_sale_of_another_owner(sale_service, product):
    sale = sale_service.record_sale(
        OWNER_ID,
        [SaleItemInput(product_id=product.id, quantity=1, unit_price=Decimal("100"))],
    )

    with pytest.raises(NotFoundOrUnauthorized):
        sale_service.get_sale(sale.id, 2)
