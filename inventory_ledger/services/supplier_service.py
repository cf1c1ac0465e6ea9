"""Suppliers of stock items and orders"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from inventory_ledger.domain.exceptions import (
    MissingFieldsError,
    NotFoundOrUnauthorized,
    SupplierInUseError,
    ValidationError,
)
from inventory_ledger.infrastructure.database.models import Supplier
from inventory_ledger.infrastructure.database.repositories import SupplierRepository
from inventory_ledger.infrastructure.database.session import atomic

logger = logging.getLogger(__name__)

# Each of these must be unique among one owner's suppliers
UNIQUE_FIELDS = ("name", "license_number", "phone", "email")


class SupplierService:
    def __init__(self, db: Session):
        self.db = db
        self.supplier_repo = SupplierRepository(db)

    def create_supplier(
        self,
        user_id: int,
        name: Optional[str],
        license_number: Optional[str],
        phone: Optional[str],
        email: Optional[str],
    ) -> Supplier:
        fields = _clean(name=name, license_number=license_number, phone=phone, email=email)
        missing = [n for n in UNIQUE_FIELDS if not fields[n]]
        if missing:
            raise MissingFieldsError(*missing)

        with atomic(self.db):
            self._check_unique(user_id, fields)
            supplier = self.supplier_repo.create_supplier(user_id, **fields)

        logger.info(f"Supplier {supplier.id} created", extra={"user_id": user_id, "supplier_id": supplier.id})
        return supplier

    def get_supplier(self, supplier_id: int, user_id: int) -> Supplier:
        supplier = self.supplier_repo.get_for_owner(supplier_id, user_id)
        if supplier is None:
            raise NotFoundOrUnauthorized("Supplier not found")
        return supplier

    def list_suppliers(self, user_id: int) -> List[Supplier]:
        return self.supplier_repo.list_for_owner(user_id)

    def count_suppliers(self, user_id: int) -> int:
        return self.supplier_repo.count_for_owner(user_id)

    def update_supplier(
        self,
        supplier_id: int,
        user_id: int,
        name: Optional[str] = None,
        license_number: Optional[str] = None,
        phone: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Supplier:
        """Change any subset of the fields; blank values are rejected"""
        changes = {
            k: v
            for k, v in _clean(name=name, license_number=license_number, phone=phone, email=email).items()
            if v is not None
        }
        blank = [k for k, v in changes.items() if not v]
        if blank:
            raise MissingFieldsError(*blank)

        with atomic(self.db):
            supplier = self.get_supplier(supplier_id, user_id)
            self._check_unique(user_id, changes, exclude_id=supplier_id)
            for key, value in changes.items():
                setattr(supplier, key, value)

        logger.info(f"Supplier {supplier_id} updated", extra={"user_id": user_id, "supplier_id": supplier_id})
        return supplier

    def delete_supplier(self, supplier_id: int, user_id: int) -> None:
        """Refused while stock items or orders reference the supplier"""
        with atomic(self.db):
            supplier = self.get_supplier(supplier_id, user_id)
            stock_items, orders = self.supplier_repo.reference_counts(supplier_id)
            if stock_items or orders:
                raise SupplierInUseError(supplier_id, stock_items, orders)
            self.supplier_repo.delete(supplier)

        logger.info(f"Supplier {supplier_id} deleted", extra={"user_id": user_id, "supplier_id": supplier_id})

    def _check_unique(self, user_id: int, fields: dict, exclude_id: Optional[int] = None) -> None:
        conflict = self.supplier_repo.find_conflict(user_id, fields, exclude_id=exclude_id)
        if conflict is not None:
            label = conflict.replace("_", " ")
            raise ValidationError(f"A supplier with this {label} already exists")


def _clean(**values: Optional[str]) -> dict:
    return {k: v.strip() if isinstance(v, str) else v for k, v in values.items()}
