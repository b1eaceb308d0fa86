from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from interest_ledger.api.deps import get_identity, get_service
from interest_ledger.common.logging_config import get_logger
from interest_ledger.core.exceptions import UnauthenticatedError, ValidationError

logger = get_logger(__name__)
router = APIRouter()


@router.get("/projections")
def list_projections(
    cursor: Optional[str] = None,
    limit: int = 50,
    sort: str = "desc",
    status: Optional[List[str]] = Query(default=None),
    identity: str = Depends(get_identity),
    service=Depends(get_service),
):
    """One page of the donation projection, newest first by default."""
    try:
        page = service.list_projections(
            identity,
            cursor=cursor,
            limit=limit,
            sort_direction=sort,
            status_filter=status,
        )
        return jsonable_encoder({
            "items": page.items,
            "next_cursor": page.next_cursor,
            "has_next_page": page.has_next_page,
        })
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except UnauthenticatedError:
        raise HTTPException(status_code=401, detail="unauthenticated")
    except Exception as e:
        logger.error(f"Internal error while listing projections: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal error: {str(e)}")


@router.get("/stats")
def dashboard_stats(identity: str = Depends(get_identity), service=Depends(get_service)):
    try:
        stats = service.dashboard_stats(identity)
        return {key: str(value) for key, value in stats.items()}
    except UnauthenticatedError:
        raise HTTPException(status_code=401, detail="unauthenticated")
    except Exception as e:
        logger.error(f"Internal error while computing stats: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal error: {str(e)}")
