from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException

from interest_ledger.api.deps import get_identity, get_service
from interest_ledger.common.logging_config import get_logger
from interest_ledger.core.exceptions import UnauthenticatedError, ValidationError

logger = get_logger(__name__)
router = APIRouter()


@router.post("/")
def add_donation(
    background_tasks: BackgroundTasks,
    amount: Any = Body(..., embed=True),
    identity: str = Depends(get_identity),
    service=Depends(get_service),
):
    try:
        donation = service.add_donation(identity, amount, defer=background_tasks.add_task)
        return {
            "message": "Donation added",
            "amount": str(donation.amount),
            "date": donation.date.isoformat(),
        }
    except ValidationError as e:
        logger.warning(f"Donation rejected: {e}", issues=e.issues)
        raise HTTPException(status_code=422, detail=str(e))
    except UnauthenticatedError:
        raise HTTPException(status_code=401, detail="unauthenticated")
    except Exception as e:
        logger.error(f"Internal error while adding donation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal error: {str(e)}")
