"""
Negotiation coordinator
=======================
The only place where a quote and its requirement change together.

Every public operation either commits once and returns the affected entity,
or rolls back and returns a ``DomainError``. Nothing is raised for expected
business conditions.

Usage:
    from services.negotiation import NegotiationService

    service = NegotiationService(db)
    result = service.submit_quote(requirement_id, merchant_id, "700", "8,200", "FOB Kochi")
    if is_error(result):
        ...
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import (
    Order, OrderStatus, Quote, QuoteStatus, Requirement, RequirementStatus, UserRole
)
from services import errors, pricing, quantity, quote_lifecycle
from services import requirement_lifecycle as lifecycle
from services.errors import DomainError, Result, is_error
from services.repositories import (
    OrderRepository, QuoteRepository, RequirementRepository, UserRepository
)

logger = logging.getLogger(__name__)

REQUIREMENT_FIELDS = (
    "grade", "origin", "required_quantity", "minimum_quantity", "expected_price",
    "allow_lower_bid", "delivery_location", "city", "country", "delivery_deadline",
    "specifications", "is_draft",
)


class NegotiationService:
    """Coordinates requirement, quote and order state for one database session."""

    def __init__(self, db: Session, today: Callable[[], date] = date.today):
        self.db = db
        self.today = today
        self.users = UserRepository(db)
        self.requirements = RequirementRepository(db)
        self.quotes = QuoteRepository(db)
        self.orders = OrderRepository(db)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _fail(self, error: DomainError) -> DomainError:
        self.db.rollback()
        logger.warning("Negotiation request refused: %s (%s)", error.code, error.message)
        return error

    def _commit(self, *entities):
        self.db.commit()
        for entity in entities:
            self.db.refresh(entity)

    def _user_with_role(self, user_id: UUID, *roles: UserRole):
        user = self.users.get(user_id)
        if user is None:
            return errors.user_not_found(user_id)
        if UserRole(user.role) not in roles:
            allowed = " or ".join(role.value for role in roles)
            return errors.not_permitted(f"Only a {allowed} can perform this action")
        return user

    def _normalize_requirement(self, data: dict) -> Result[dict]:
        fields = {key: data.get(key) for key in REQUIREMENT_FIELDS}

        for name in ("grade", "delivery_deadline"):
            if fields[name] is None:
                return errors.missing_field(name)

        for name in ("required_quantity", "minimum_quantity", "expected_price"):
            value = quantity.normalize_number(fields[name], name)
            if is_error(value):
                return value
            fields[name] = value

        error = quantity.validate_requirement_bounds(fields["required_quantity"], fields["minimum_quantity"])
        if error:
            return error

        fields["origin"] = (fields["origin"] or pricing.ANY_ORIGIN).strip().lower()
        error = pricing.validate_price(fields["expected_price"], fields["grade"], fields["origin"])
        if error:
            return error

        fields["is_draft"] = bool(fields["is_draft"])
        fields["allow_lower_bid"] = bool(fields["allow_lower_bid"])
        deadline = fields["delivery_deadline"]
        if not fields["is_draft"] and deadline is not None and deadline < self.today():
            return errors.deadline_passed(deadline)
        return fields

    def _may_act_for_buyer(self, actor, requirement: Requirement) -> bool:
        role = UserRole(actor.role)
        return role == UserRole.admin or (role == UserRole.buyer and actor.id == requirement.buyer_id)

    # ------------------------------------------------------------------ #
    # Requirement authoring (buyer)
    # ------------------------------------------------------------------ #
    def create_requirement(self, buyer_id: UUID, data: dict) -> Result[Requirement]:
        buyer = self._user_with_role(buyer_id, UserRole.buyer)
        if is_error(buyer):
            return self._fail(buyer)

        fields = self._normalize_requirement(data)
        if is_error(fields):
            return self._fail(fields)

        requirement = Requirement(
            buyer_id=buyer.id,
            status=lifecycle.initial_status(fields["is_draft"]),
            **fields,
        )
        self.requirements.create_requirement(requirement)
        self._commit(requirement)
        logger.info("Requirement %s created by buyer %s as %s", requirement.id, buyer.id, requirement.status.value)
        return requirement

    def update_requirement(self, requirement_id: UUID, buyer_id: UUID, data: dict) -> Result[Requirement]:
        requirement = self.requirements.get_for_update(requirement_id)
        if requirement is None:
            return self._fail(errors.requirement_not_found(requirement_id))
        if requirement.buyer_id != buyer_id:
            return self._fail(errors.not_permitted("Only the owning buyer may edit this requirement"))

        status = RequirementStatus(requirement.status)
        if status in lifecycle.TERMINAL:
            return self._fail(errors.already_terminal(status))
        if status not in lifecycle.EDITABLE:
            return self._fail(errors.requirement_not_open(status, "only draft or active requirements can be edited"))

        merged = {key: getattr(requirement, key) for key in REQUIREMENT_FIELDS}
        merged.update({key: value for key, value in data.items() if key in REQUIREMENT_FIELDS})
        fields = self._normalize_requirement(merged)
        if is_error(fields):
            return self._fail(fields)

        target = lifecycle.initial_status(fields["is_draft"])
        if target != status:
            error = lifecycle.transition(requirement, target)
            if error:
                return self._fail(error)

        self.requirements.update_requirement(requirement, fields)
        self._commit(requirement)
        logger.info("Requirement %s updated by buyer %s", requirement.id, buyer_id)
        return requirement

    def delete_requirement(self, requirement_id: UUID, buyer_id: UUID) -> Result[UUID]:
        requirement = self.requirements.get_for_update(requirement_id)
        if requirement is None:
            return self._fail(errors.requirement_not_found(requirement_id))
        if requirement.buyer_id != buyer_id:
            return self._fail(errors.not_permitted("Only the owning buyer may delete this requirement"))
        status = RequirementStatus(requirement.status)
        if status in (RequirementStatus.selected, RequirementStatus.confirmed):
            return self._fail(errors.already_terminal(status))

        self.requirements.delete(requirement)
        self.db.commit()
        logger.info("Requirement %s deleted by buyer %s", requirement_id, buyer_id)
        return requirement_id

    def mark_viewed(self, requirement_id: UUID, merchant_id: UUID) -> Result[Requirement]:
        """Record that a merchant opened the requirement. Repeated calls are no-ops."""
        merchant = self._user_with_role(merchant_id, UserRole.merchant)
        if is_error(merchant):
            return self._fail(merchant)
        requirement = self.requirements.get_requirement_by_id(requirement_id)
        if requirement is None:
            return self._fail(errors.requirement_not_found(requirement_id))

        status = RequirementStatus(requirement.status)
        if status == RequirementStatus.draft:
            return self._fail(errors.requirement_not_open(status))
        if status == RequirementStatus.active and not lifecycle.is_expired(requirement, self.today()):
            lifecycle.transition(requirement, RequirementStatus.viewed)
            self._commit(requirement)
        return requirement

    # ------------------------------------------------------------------ #
    # Quotes
    # ------------------------------------------------------------------ #
    def submit_quote(
        self,
        requirement_id: UUID,
        merchant_id: UUID,
        quantity_raw,
        price_raw,
        remarks: Optional[str] = None,
    ) -> Result[Quote]:
        requirement = self.requirements.get_for_update(requirement_id)
        if requirement is None:
            return self._fail(errors.requirement_not_found(requirement_id))

        merchant = self._user_with_role(merchant_id, UserRole.merchant)
        if is_error(merchant):
            return self._fail(merchant)
        if merchant.id == requirement.buyer_id:
            return self._fail(errors.not_permitted("A buyer cannot quote on their own requirement"))

        status = lifecycle.effective_status(requirement, self.today())
        if status not in lifecycle.OPEN_FOR_BIDDING:
            reason = "delivery deadline has passed" if lifecycle.is_expired(requirement, self.today()) else None
            return self._fail(errors.requirement_not_open(status, reason))

        offered_quantity = quantity.normalize_number(quantity_raw, "quantity")
        if is_error(offered_quantity):
            return self._fail(offered_quantity)
        offered_price = quantity.normalize_number(price_raw, "price")
        if is_error(offered_price):
            return self._fail(offered_price)

        error = quantity.validate_quote_quantity(offered_quantity, requirement)
        if error:
            return self._fail(error)
        error = pricing.validate_quote_price(offered_price, requirement)
        if error:
            return self._fail(error)

        quote = Quote(
            requirement_id=requirement.id,
            merchant_id=merchant.id,
            quantity=offered_quantity,
            price=offered_price,
            remarks=remarks or "",
            status=QuoteStatus.new,
        )
        self.quotes.add_quote(quote)

        if status in (RequirementStatus.active, RequirementStatus.viewed):
            lifecycle.transition(requirement, RequirementStatus.responded)

        self._commit(quote, requirement)
        logger.info("Quote %s submitted by merchant %s on requirement %s", quote.id, merchant.id, requirement.id)
        return quote

    def accept_quote(self, quote_id: UUID, actor_id: UUID) -> Result[Order]:
        """Accept one quote, select its requirement and derive the order."""
        quote = self.quotes.get(quote_id)
        if quote is None:
            return self._fail(errors.quote_not_found(quote_id))
        requirement = self.requirements.get_for_update(quote.requirement_id)
        if requirement is None:
            return self._fail(errors.requirement_not_found(quote.requirement_id))

        actor = self.users.get(actor_id)
        if actor is None:
            return self._fail(errors.user_not_found(actor_id))
        if not self._may_act_for_buyer(actor, requirement):
            return self._fail(errors.not_permitted("Only the owning buyer may accept quotes"))

        siblings = self.quotes.get_quotes_for_requirement(requirement.id)
        winner = quote_lifecycle.accepted_sibling(quote, siblings)
        if winner is not None:
            return self._fail(errors.duplicate_acceptance(winner.id))

        # stored status: a quote received before the deadline stays acceptable after it
        status = RequirementStatus(requirement.status)
        if status in lifecycle.TERMINAL:
            return self._fail(errors.already_terminal(status))
        if status not in lifecycle.OPEN_FOR_BIDDING:
            return self._fail(errors.requirement_not_open(status))

        error = quote_lifecycle.accept(quote, siblings)
        if error:
            return self._fail(error)
        error = lifecycle.transition(requirement, RequirementStatus.selected)
        if error:
            return self._fail(error)

        agreed_quantity = Decimal(quote.quantity)
        agreed_price = Decimal(quote.price)
        order = Order(
            requirement_id=requirement.id,
            quote_id=quote.id,
            buyer_id=requirement.buyer_id,
            merchant_id=quote.merchant_id,
            status=OrderStatus.placed,
            quantity=agreed_quantity,
            price=agreed_price,
            total_price=agreed_quantity * agreed_price,
        )
        try:
            self.orders.add(order)
            self._commit(order, quote, requirement)
        except IntegrityError:
            # a concurrent acceptance won the unique index
            return self._fail(errors.duplicate_acceptance(None))

        logger.info("Order %s placed from quote %s (%s kg at %s)", order.id, quote.id, order.quantity, order.price)
        return order

    def reject_quote(self, quote_id: UUID, actor_id: UUID) -> Result[Quote]:
        quote = self.quotes.get(quote_id)
        if quote is None:
            return self._fail(errors.quote_not_found(quote_id))
        requirement = self.requirements.get_for_update(quote.requirement_id)
        if requirement is None:
            return self._fail(errors.requirement_not_found(quote.requirement_id))

        actor = self.users.get(actor_id)
        if actor is None:
            return self._fail(errors.user_not_found(actor_id))
        if not self._may_act_for_buyer(actor, requirement):
            return self._fail(errors.not_permitted("Only the owning buyer may reject quotes"))

        error = quote_lifecycle.reject(quote)
        if error:
            return self._fail(error)

        derived = lifecycle.derive_requirement_status(requirement, self.quotes.get_quotes_for_requirement(requirement.id))
        if derived != RequirementStatus(requirement.status):
            self.requirements.update_requirement_status(requirement, derived)

        self._commit(quote, requirement)
        return quote

    # ------------------------------------------------------------------ #
    # Requirement closing and orders
    # ------------------------------------------------------------------ #
    def skip_requirement(self, requirement_id: UUID, actor_id: UUID) -> Result[Requirement]:
        """
        Close a requirement. Its quotes are left untouched for audit.

        A merchant passing on a requirement has no stored effect; only the
        owning buyer (or an admin) closes it for everyone.
        """
        requirement = self.requirements.get_for_update(requirement_id)
        if requirement is None:
            return self._fail(errors.requirement_not_found(requirement_id))

        actor = self.users.get(actor_id)
        if actor is None:
            return self._fail(errors.user_not_found(actor_id))
        if not self._may_act_for_buyer(actor, requirement):
            return self._fail(errors.not_permitted("Only the owning buyer may skip a requirement"))

        error = lifecycle.transition(requirement, RequirementStatus.closed)
        if error:
            return self._fail(error)

        self._commit(requirement)
        logger.info("Requirement %s skipped by %s", requirement.id, actor.id)
        return requirement

    def _order_actor(self, actor_id: UUID, requirement: Requirement, order: Optional[Order]):
        actor = self.users.get(actor_id)
        if actor is None:
            return errors.user_not_found(actor_id)
        if self._may_act_for_buyer(actor, requirement):
            return actor
        if order is not None and actor.id == order.merchant_id:
            return actor
        return errors.not_permitted("Only the buyer or the winning merchant may act on this order")

    def confirm_order(self, requirement_id: UUID, actor_id: UUID) -> Result[Order]:
        requirement = self.requirements.get_for_update(requirement_id)
        if requirement is None:
            return self._fail(errors.requirement_not_found(requirement_id))
        order = self.orders.get_for_requirement(requirement.id)

        actor = self._order_actor(actor_id, requirement, order)
        if is_error(actor):
            return self._fail(actor)

        status = RequirementStatus(requirement.status)
        if status in lifecycle.TERMINAL:
            return self._fail(errors.already_terminal(status))
        if status != RequirementStatus.selected:
            return self._fail(errors.order_not_confirmable("Requirement has no selected quote"))
        if len(self.quotes.accepted_for_requirement(requirement.id)) != 1:
            return self._fail(errors.order_not_confirmable("Requirement must have exactly one accepted quote"))
        if order is None or OrderStatus(order.status) != OrderStatus.placed:
            return self._fail(errors.order_not_confirmable("No placed order to confirm"))

        error = lifecycle.transition(requirement, RequirementStatus.confirmed)
        if error:
            return self._fail(error)
        order.status = OrderStatus.confirmed

        self._commit(order, requirement)
        logger.info("Order %s confirmed by %s", order.id, actor.id)
        return order

    def cancel_order(self, requirement_id: UUID, actor_id: UUID) -> Result[Order]:
        """Cancel the order of a selected or confirmed requirement; the requirement is closed."""
        requirement = self.requirements.get_for_update(requirement_id)
        if requirement is None:
            return self._fail(errors.requirement_not_found(requirement_id))
        order = self.orders.get_for_requirement(requirement.id)

        actor = self._order_actor(actor_id, requirement, order)
        if is_error(actor):
            return self._fail(actor)

        status = RequirementStatus(requirement.status)
        if status == RequirementStatus.closed:
            return self._fail(errors.already_terminal(status))
        if order is None or OrderStatus(order.status) == OrderStatus.cancelled:
            return self._fail(errors.order_not_confirmable("No order to cancel"))

        error = lifecycle.transition(requirement, RequirementStatus.closed, cancellation=True)
        if error:
            return self._fail(error)
        order.status = OrderStatus.cancelled

        self._commit(order, requirement)
        logger.info("Order %s cancelled by %s; requirement %s closed", order.id, actor.id, requirement.id)
        return order
