import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from smallbiz.core.exceptions import NotFoundError
from smallbiz.models.customer import Customer
from smallbiz.models.sales import Sale
from smallbiz.schemas.customer import CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.get(Customer, customer_id)
    if not customer:
        raise NotFoundError(f"Customer with ID {customer_id} not found")
    return customer


def list_customers(db: Session) -> list[Customer]:
    return list(db.scalars(select(Customer).order_by(Customer.name.asc(), Customer.id.asc())).all())


def create_customer(db: Session, payload: CustomerCreate) -> Customer:
    customer = Customer(
        name=payload.name,
        phone=_clean(payload.phone),
        email=_clean(payload.email),
        address=_clean(payload.address),
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    logger.info("customer %s created", customer.id)
    return customer


def update_customer(db: Session, customer_id: int, payload: CustomerUpdate) -> Customer:
    customer = get_customer(db, customer_id)

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(customer, field, value if field == "name" else _clean(value))
    customer.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(customer)
    logger.info("customer %s updated: %s", customer.id, sorted(changes))
    return customer


def get_customer_history(db: Session, customer_id: int) -> list[Sale]:
    """Return the customer's sales, newest first."""
    get_customer(db, customer_id)
    query = (
        select(Sale)
        .where(Sale.customer_id == customer_id)
        .order_by(Sale.transaction_date.desc(), Sale.id.desc())
    )
    return list(db.scalars(query).all())
