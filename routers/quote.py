from typing import List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from routers.errors import unwrap
from schemas.orders_schema import OrderOut
from schemas.quote_schema import MerchantQuote, QuoteAction, QuoteCreate, QuoteRead, QuotesWithRequirement
from schemas.requirement_schema import RequirementRead
from services import errors
from services import requirement_lifecycle as lifecycle
from services.negotiation import NegotiationService
from services.projections import ProjectionService
from services.repositories import QuoteRepository, RequirementRepository

quote_router = APIRouter(prefix="/quotes", tags=["quotes"])


# 1) Static routes BEFORE the dynamic /{quote_id}/ routes
@quote_router.post("/send/{requirement_id}", response_model=QuoteRead, status_code=status.HTTP_201_CREATED)
def submit_quote(requirement_id: UUID, quote_in: QuoteCreate, db: Session = Depends(get_db)):
    result = NegotiationService(db).submit_quote(
        requirement_id,
        quote_in.merchant_id,
        quote_in.quantity,
        quote_in.price,
        quote_in.remarks,
    )
    return unwrap(result)


@quote_router.get("/with-requirement/{requirement_id}", response_model=QuotesWithRequirement)
def get_quotes_for_requirement(
    requirement_id: UUID,
    view: Literal["buyer", "merchant"] = "buyer",
    viewer_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
):
    """
    Buyers see every quote on their requirement; merchants only see their own.
    """
    requirement = RequirementRepository(db).get_requirement_by_id(requirement_id)
    if requirement is None:
        unwrap(errors.requirement_not_found(requirement_id))

    if view == "merchant":
        if viewer_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="viewer_id is required for the merchant view")
        quotes = QuoteRepository(db).get_quotes_for_requirement(requirement_id, merchant_id=viewer_id)
    else:
        if viewer_id is not None and viewer_id != requirement.buyer_id:
            unwrap(errors.not_permitted("Only the owning buyer can see every quote"))
        quotes = QuoteRepository(db).get_quotes_for_requirement(requirement_id)

    today = NegotiationService(db).today()
    return QuotesWithRequirement(
        requirement=RequirementRead.model_validate(requirement).model_copy(
            update={"status": lifecycle.effective_status(requirement, today), "quote_count": len(requirement.quotes)}
        ),
        quotes=[QuoteRead.model_validate(quote) for quote in quotes],
    )


@quote_router.get("/merchant/{merchant_id}", response_model=List[MerchantQuote])
def list_merchant_quotes(merchant_id: UUID, db: Session = Depends(get_db)):
    return [
        MerchantQuote(
            quote=QuoteRead.model_validate(view.quote),
            requirement=RequirementRead.model_validate(view.requirement).model_copy(
                update={"status": view.requirement_status}
            ),
        )
        for view in ProjectionService(db).quotes_for_merchant(merchant_id)
    ]


# 2) Respond to a quote
@quote_router.patch("/{quote_id}/respond")
def respond_to_quote(quote_id: UUID, action: QuoteAction, db: Session = Depends(get_db)):
    service = NegotiationService(db)
    if action.action == "accept":
        order = unwrap(service.accept_quote(quote_id, action.buyer_id))
        return {"msg": "Quote accepted", "order": OrderOut.model_validate(order).model_dump(mode="json")}

    quote = unwrap(service.reject_quote(quote_id, action.buyer_id))
    return {"msg": "Quote rejected", "quote": QuoteRead.model_validate(quote).model_dump(mode="json")}
