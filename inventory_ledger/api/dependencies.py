"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from inventory_ledger.infrastructure.database.session import get_db
from inventory_ledger.services.credit_service import CreditService
from inventory_ledger.services.customer_service import CustomerService
from inventory_ledger.services.interest_service import InterestService
from inventory_ledger.services.order_service import OrderService
from inventory_ledger.services.reporting import CreditReportingService
from inventory_ledger.services.sale_service import SaleService
from inventory_ledger.services.stock_service import StockService
from inventory_ledger.services.supplier_service import SupplierService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock(request: Request):
    """Clock shared by the API and the interest scheduler"""
    return request.app.state.clock


def get_reporting(request: Request) -> CreditReportingService:
    """Reporting service owning the application-wide view cache"""
    return request.app.state.reporting


def get_credit_service(
    db: Session = Depends(get_db),
    reporting: CreditReportingService = Depends(get_reporting),
    clock=Depends(get_clock),
) -> CreditService:
    return CreditService(db, reporting, clock=clock)


def get_interest_service(
    db: Session = Depends(get_db),
    reporting: CreditReportingService = Depends(get_reporting),
    clock=Depends(get_clock),
) -> InterestService:
    return InterestService(db, reporting, clock=clock)


def get_stock_service(
    request: Request,
    db: Session = Depends(get_db),
    reporting: CreditReportingService = Depends(get_reporting),
    clock=Depends(get_clock),
) -> StockService:
    settings = request.app.state.settings
    return StockService(
        db,
        low_stock_threshold=settings.low_stock_threshold,
        reporting=reporting,
        clock=clock,
        expiry_warning_days=settings.expiry_warning_days,
    )


def get_customer_service(
    db: Session = Depends(get_db),
    reporting: CreditReportingService = Depends(get_reporting),
) -> CustomerService:
    return CustomerService(db, reporting)


def get_sale_service(db: Session = Depends(get_db), clock=Depends(get_clock)) -> SaleService:
    return SaleService(db, clock=clock)


def get_supplier_service(db: Session = Depends(get_db)) -> SupplierService:
    return SupplierService(db)


def get_order_service(db: Session = Depends(get_db), clock=Depends(get_clock)) -> OrderService:
    return OrderService(db, clock=clock)
