"""Customer records and their purchase history"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from inventory_ledger.domain.exceptions import MissingFieldsError, NotFoundOrUnauthorized, ValidationError
from inventory_ledger.domain.models import CustomerPurchases, CustomerUpdate
from inventory_ledger.infrastructure.database.models import Customer
from inventory_ledger.infrastructure.database.repositories import CustomerRepository, SaleRepository
from inventory_ledger.infrastructure.database.session import atomic
from inventory_ledger.services.reporting import CreditReportingService

logger = logging.getLogger(__name__)

DEFAULT_CREDIT_SCORE = 100


class CustomerService:
    def __init__(self, db: Session, reporting: CreditReportingService):
        self.db = db
        self.reporting = reporting
        self.customer_repo = CustomerRepository(db)

    def create_customer(
        self,
        user_id: int,
        customer_name: str,
        phone_number: Optional[str] = None,
        address: Optional[str] = None,
        notes: Optional[str] = None,
        credit_score: Optional[int] = None,
    ) -> Customer:
        if not customer_name or not customer_name.strip():
            raise MissingFieldsError("customer_name")
        score = DEFAULT_CREDIT_SCORE if credit_score is None else credit_score
        if score < 0:
            raise ValidationError("Credit score cannot be negative")

        with atomic(self.db):
            customer = self.customer_repo.create_customer(
                user_id=user_id,
                customer_name=customer_name.strip(),
                phone_number=phone_number,
                address=address,
                notes=notes,
                credit_score=score,
            )

        logger.info(f"Customer {customer.id} created", extra={"user_id": user_id, "customer_id": customer.id})
        return customer

    def get_customer(self, customer_id: int, user_id: int) -> Customer:
        customer = self.customer_repo.get_for_owner(customer_id, user_id)
        if customer is None:
            raise NotFoundOrUnauthorized("Customer not found")
        return customer

    def list_customers(self, user_id: int) -> List[Customer]:
        return self.customer_repo.list_for_owner(user_id)

    def credit_score(self, customer_id: int, user_id: int) -> int:
        return self.get_customer(customer_id, user_id).credit_score

    def update_customer(self, customer_id: int, user_id: int, changes: CustomerUpdate) -> Customer:
        """Edit a customer; cached credit views carrying the name are dropped"""
        if changes.customer_name is not None and not changes.customer_name.strip():
            raise MissingFieldsError("customer_name")
        if changes.credit_score is not None and changes.credit_score < 0:
            raise ValidationError("Credit score cannot be negative")

        with atomic(self.db):
            customer = self.get_customer(customer_id, user_id)
            if changes.customer_name is not None:
                customer.customer_name = changes.customer_name.strip()
            for name in ("phone_number", "address", "notes", "credit_score"):
                value = getattr(changes, name)
                if value is not None:
                    setattr(customer, name, value)

        self.reporting.invalidate_owner(user_id)
        logger.info(f"Customer {customer_id} updated", extra={"user_id": user_id, "customer_id": customer_id})
        return customer

    def delete_customer(self, customer_id: int, user_id: int) -> None:
        """Delete a customer together with their credit accounts and sales"""
        with atomic(self.db):
            self.customer_repo.delete(self.get_customer(customer_id, user_id))

        self.reporting.invalidate_owner(user_id)
        logger.info(f"Customer {customer_id} deleted", extra={"user_id": user_id, "customer_id": customer_id})

    def purchases(self, customer_id: int, user_id: int) -> CustomerPurchases:
        """Cash sales and credit accounts (archived included) of one customer"""
        customer = self.get_customer(customer_id, user_id)
        sales = SaleRepository(self.db).list_for_owner(user_id, show_archived=True, customer_id=customer_id)
        credits = self.reporting.list_accounts(self.db, user_id, show_archived=True, customer_id=customer_id)
        return CustomerPurchases(
            customer_id=customer.id,
            customer_name=customer.customer_name,
            sales=sales,
            credits=credits,
        )
