from typing import List, Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from routers.errors import unwrap
from schemas.requirement_schema import RequirementAction, RequirementCreate, RequirementRead, RequirementUpdate
from services.negotiation import NegotiationService
from services.projections import ProjectionService
from services.repositories import RequirementRepository, UserRepository
from services import errors
from services import requirement_lifecycle as lifecycle
from statuses import UserRole

logger = logging.getLogger(__name__)

requirement_router = APIRouter(prefix="/requirements", tags=["requirements"])


def _read(view) -> RequirementRead:
    return RequirementRead.model_validate(view.requirement).model_copy(
        update={"status": view.status, "quote_count": view.quote_count}
    )


# Static routes come before the dynamic /{requirement_id} routes

@requirement_router.get("/open", response_model=List[RequirementRead])
def list_open_requirements(merchant_id: Optional[UUID] = None, db: Session = Depends(get_db)):
    views = ProjectionService(db).open_requirements_for_merchant(merchant_id)
    logger.debug("%d open requirements for merchant %s", len(views), merchant_id)
    return [_read(view) for view in views]


@requirement_router.get("/buyer/{buyer_id}", response_model=List[RequirementRead])
def list_buyer_requirements(buyer_id: UUID, db: Session = Depends(get_db)):
    return [_read(view) for view in ProjectionService(db).requirements_for_buyer(buyer_id)]


@requirement_router.post("/", response_model=RequirementRead, status_code=status.HTTP_201_CREATED)
def create_requirement(requirement_in: RequirementCreate, db: Session = Depends(get_db)):
    data = requirement_in.model_dump(exclude={"buyer_id"})
    return unwrap(NegotiationService(db).create_requirement(requirement_in.buyer_id, data))


@requirement_router.get("/{requirement_id}", response_model=RequirementRead)
def get_requirement(
    requirement_id: UUID,
    viewer_id: Optional[UUID] = Query(None, description="Marks the requirement viewed when the viewer is a merchant"),
    db: Session = Depends(get_db),
):
    service = NegotiationService(db)
    if viewer_id is not None:
        viewer = UserRepository(db).get(viewer_id)
        if viewer is not None and UserRole(viewer.role) == UserRole.merchant:
            unwrap(service.mark_viewed(requirement_id, viewer_id))

    requirement = RequirementRepository(db).get_requirement_by_id(requirement_id)
    if requirement is None:
        unwrap(errors.requirement_not_found(requirement_id))
    return RequirementRead.model_validate(requirement).model_copy(
        update={
            "status": lifecycle.effective_status(requirement, service.today()),
            "quote_count": len(requirement.quotes),
        }
    )


@requirement_router.put("/{requirement_id}", response_model=RequirementRead)
def update_requirement(requirement_id: UUID, requirement_update: RequirementUpdate, db: Session = Depends(get_db)):
    # Only fields present in the payload are changed
    data = requirement_update.model_dump(exclude_unset=True, exclude={"buyer_id"})
    return unwrap(NegotiationService(db).update_requirement(requirement_id, requirement_update.buyer_id, data))


@requirement_router.delete("/{requirement_id}")
def delete_requirement(requirement_id: UUID, buyer_id: UUID, db: Session = Depends(get_db)):
    unwrap(NegotiationService(db).delete_requirement(requirement_id, buyer_id))
    return JSONResponse(status_code=status.HTTP_200_OK, content={"message": "Requirement deleted successfully"})


@requirement_router.post("/{requirement_id}/skip", response_model=RequirementRead)
def skip_requirement(requirement_id: UUID, action: RequirementAction, db: Session = Depends(get_db)):
    return unwrap(NegotiationService(db).skip_requirement(requirement_id, action.user_id))
