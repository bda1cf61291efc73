"""
Read-only views over requirements, quotes and orders.

Nothing here is persisted; every view is recomputed from the repositories on
demand. Rows whose counterpart is gone (a quote whose requirement was
deleted, an order without its quote) are left out rather than failing.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from models import Order, OrderStatus, Quote, QuoteStatus, Requirement, RequirementStatus
from services import requirement_lifecycle as lifecycle
from services.repositories import OrderRepository, QuoteRepository, RequirementRepository

logger = logging.getLogger(__name__)


@dataclass
class RequirementView:
    requirement: Requirement
    status: RequirementStatus
    quote_count: int = 0


@dataclass
class QuoteView:
    quote: Quote
    requirement: Requirement
    requirement_status: RequirementStatus


@dataclass
class TransactionView:
    requirement: Requirement
    quote: Quote
    order: Optional[Order] = None


class ProjectionService:
    def __init__(self, db: Session, today: Callable[[], date] = date.today):
        self.requirements = RequirementRepository(db)
        self.quotes = QuoteRepository(db)
        self.orders = OrderRepository(db)
        self.today = today

    def open_requirements_for_merchant(self, merchant_id: Optional[UUID] = None) -> List[RequirementView]:
        """Requirements still open for bidding whose delivery deadline is today or later."""
        today = self.today()
        views = []
        for requirement in self.requirements.list_by_status(lifecycle.OPEN_FOR_BIDDING):
            if not lifecycle.is_open_for_bidding(requirement, today):
                continue
            if merchant_id is not None and requirement.buyer_id == merchant_id:
                continue
            views.append(RequirementView(
                requirement=requirement,
                status=lifecycle.effective_status(requirement, today),
                quote_count=len(requirement.quotes),
            ))
        return views

    def requirements_for_buyer(self, buyer_id: UUID) -> List[RequirementView]:
        """The buyer's own requirements with status recomputed from their quotes."""
        today = self.today()
        views = []
        for requirement in self.requirements.list_for_buyer(buyer_id):
            quotes = list(requirement.quotes)
            status = lifecycle.derive_requirement_status(requirement, quotes)
            if status in lifecycle.OPEN_FOR_BIDDING and lifecycle.is_expired(requirement, today):
                status = RequirementStatus.closed
            views.append(RequirementView(requirement=requirement, status=status, quote_count=len(quotes)))
        return views

    def quotes_for_merchant(self, merchant_id: UUID) -> List[QuoteView]:
        today = self.today()
        views = []
        for quote in self.quotes.get_quotes_for_merchant(merchant_id):
            requirement = quote.requirement
            if requirement is None:
                logger.debug("Skipping quote %s: requirement %s is missing", quote.id, quote.requirement_id)
                continue
            views.append(QuoteView(
                quote=quote,
                requirement=requirement,
                requirement_status=lifecycle.effective_status(requirement, today),
            ))
        return views

    def confirmed_transactions(self) -> List[TransactionView]:
        """Confirmed requirements joined with their accepted quote and order."""
        views = []
        for requirement in self.requirements.list_by_status([RequirementStatus.confirmed]):
            accepted = [q for q in requirement.quotes if QuoteStatus(q.status) == QuoteStatus.accepted]
            if len(accepted) != 1:
                logger.debug("Skipping requirement %s: %d accepted quotes", requirement.id, len(accepted))
                continue
            order = self.orders.get_for_requirement(requirement.id)
            views.append(TransactionView(requirement=requirement, quote=accepted[0], order=order))
        return views

    def orders_for_user(self, user_id: UUID, active_only: bool = True) -> List[Order]:
        statuses = [OrderStatus.placed, OrderStatus.confirmed] if active_only else None
        return [
            order for order in self.orders.list_for_user(user_id, statuses)
            if order.requirement is not None and order.quote is not None
        ]
