from fastapi import HTTPException, status

from services import errors
from services.errors import is_error

STATUS_BY_KIND = {
    errors.VALIDATION: 422,
    errors.CONFLICT: status.HTTP_409_CONFLICT,
    errors.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    errors.FORBIDDEN: status.HTTP_403_FORBIDDEN,
}


def unwrap(result):
    """Return the entity, or raise the HTTPException matching the domain error."""
    if is_error(result):
        raise HTTPException(
            status_code=STATUS_BY_KIND.get(result.kind, status.HTTP_400_BAD_REQUEST),
            detail=result.as_detail(),
        )
    return result
