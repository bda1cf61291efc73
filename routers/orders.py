from typing import List
from uuid import UUID
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from routers.errors import unwrap
from schemas.orders_schema import OrderAction, OrderOut, TransactionOut
from schemas.quote_schema import QuoteRead
from schemas.requirement_schema import RequirementRead
from services.negotiation import NegotiationService
from services.projections import ProjectionService

logger = logging.getLogger(__name__)

orders_router = APIRouter(prefix="/orders", tags=["orders"])


# Confirmed transactions (requirement + winning quote + order)
@orders_router.get("/confirmed", response_model=List[TransactionOut])
def list_confirmed_orders(db: Session = Depends(get_db)):
    return [
        TransactionOut(
            requirement=RequirementRead.model_validate(view.requirement),
            quote=QuoteRead.model_validate(view.quote),
            order=OrderOut.model_validate(view.order) if view.order is not None else None,
        )
        for view in ProjectionService(db).confirmed_transactions()
    ]


# Placed and confirmed orders for a user (buyer or merchant)
@orders_router.get("/user/{user_id}", response_model=List[OrderOut])
def get_active_orders_for_user(user_id: UUID, include_cancelled: bool = False, db: Session = Depends(get_db)):
    return ProjectionService(db).orders_for_user(user_id, active_only=not include_cancelled)


@orders_router.post("/{requirement_id}/confirm", response_model=OrderOut)
def confirm_order(requirement_id: UUID, action: OrderAction, db: Session = Depends(get_db)):
    return unwrap(NegotiationService(db).confirm_order(requirement_id, action.user_id))


@orders_router.post("/{requirement_id}/cancel", response_model=OrderOut)
def cancel_order(requirement_id: UUID, action: OrderAction, db: Session = Depends(get_db)):
    order = unwrap(NegotiationService(db).cancel_order(requirement_id, action.user_id))
    logger.info("Order for requirement %s cancelled via API", requirement_id)
    return order
