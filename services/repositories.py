"""
Repositories over the SQLAlchemy session.

The negotiation services only talk to these classes, never to the session
directly, so the state machines can be exercised against any session.
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models import (
    Order, OrderStatus, Quote, QuoteStatus, Requirement, RequirementStatus, User
)

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: UUID) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user


class RequirementRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_requirement_by_id(self, requirement_id: UUID) -> Optional[Requirement]:
        return self.db.query(Requirement).filter(Requirement.id == requirement_id).first()

    def get_for_update(self, requirement_id: UUID) -> Optional[Requirement]:
        """Fetch and lock the requirement row for the rest of the transaction."""
        return (
            self.db.query(Requirement)
            .filter(Requirement.id == requirement_id)
            .with_for_update()
            .first()
        )

    def create_requirement(self, requirement: Requirement) -> Requirement:
        self.db.add(requirement)
        self.db.flush()
        return requirement

    def update_requirement(self, requirement: Requirement, data: dict) -> Requirement:
        for key, value in data.items():
            setattr(requirement, key, value)
        self.db.flush()
        return requirement

    def update_requirement_status(self, requirement: Requirement, status: RequirementStatus) -> None:
        requirement.status = status
        self.db.flush()

    def delete(self, requirement: Requirement) -> None:
        self.db.delete(requirement)
        self.db.flush()

    def list_all(self) -> List[Requirement]:
        return self.db.query(Requirement).order_by(Requirement.created_at.desc()).all()

    def list_by_status(self, statuses) -> List[Requirement]:
        return (
            self.db.query(Requirement)
            .filter(Requirement.status.in_(list(statuses)))
            .order_by(Requirement.delivery_deadline)
            .all()
        )

    def list_for_buyer(self, buyer_id: UUID) -> List[Requirement]:
        return (
            self.db.query(Requirement)
            .filter(Requirement.buyer_id == buyer_id)
            .order_by(Requirement.created_at.desc())
            .all()
        )


class QuoteRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, quote_id: UUID) -> Optional[Quote]:
        return self.db.query(Quote).filter(Quote.id == quote_id).first()

    def add_quote(self, quote: Quote) -> Quote:
        self.db.add(quote)
        self.db.flush()
        return quote

    def get_quotes_for_requirement(self, requirement_id: UUID, merchant_id: Optional[UUID] = None) -> List[Quote]:
        q = self.db.query(Quote).filter(Quote.requirement_id == requirement_id)
        if merchant_id is not None:
            q = q.filter(Quote.merchant_id == merchant_id)
        return q.order_by(Quote.created_at).all()

    def get_quotes_for_merchant(self, merchant_id: UUID) -> List[Quote]:
        return (
            self.db.query(Quote)
            .filter(Quote.merchant_id == merchant_id)
            .order_by(Quote.created_at.desc())
            .all()
        )

    def accepted_for_requirement(self, requirement_id: UUID) -> List[Quote]:
        return (
            self.db.query(Quote)
            .filter(Quote.requirement_id == requirement_id, Quote.status == QuoteStatus.accepted)
            .all()
        )

    def update_quote_status(self, quote: Quote, status: QuoteStatus) -> None:
        quote.status = status
        self.db.flush()


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, order: Order) -> Order:
        self.db.add(order)
        self.db.flush()
        return order

    def get_for_requirement(self, requirement_id: UUID) -> Optional[Order]:
        return self.db.query(Order).filter(Order.requirement_id == requirement_id).first()

    def list_confirmed_orders(self) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.status == OrderStatus.confirmed)
            .order_by(Order.created_at.desc())
            .all()
        )

    def list_for_user(self, user_id: UUID, statuses=None) -> List[Order]:
        q = self.db.query(Order).filter(
            or_(
                Order.buyer_id == user_id,
                Order.merchant_id == user_id
            )
        )
        if statuses:
            q = q.filter(Order.status.in_(list(statuses)))
        return q.order_by(Order.created_at.desc()).all()
