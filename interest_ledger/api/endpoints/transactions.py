from typing import Any, Dict, List

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException

from interest_ledger.api.deps import get_identity, get_service
from interest_ledger.common.logging_config import get_logger
from interest_ledger.core.exceptions import UnauthenticatedError, ValidationError

logger = get_logger(__name__)
router = APIRouter()


@router.post("/sync")
def sync_transactions(
    background_tasks: BackgroundTasks,
    transactions: List[Dict[str, Any]] = Body(...),
    identity: str = Depends(get_identity),
    service=Depends(get_service),
):
    try:
        inserted = service.sync_transactions(identity, transactions, defer=background_tasks.add_task)
        return {
            "message": "Transactions synced",
            "submitted": len(transactions),
            "inserted": inserted,
        }
    except ValidationError as e:
        logger.warning(f"Sync validation error: {e}", issues=e.issues)
        raise HTTPException(status_code=422, detail=str(e))
    except UnauthenticatedError:
        raise HTTPException(status_code=401, detail="unauthenticated")
    except Exception as e:
        logger.error(f"Internal error during sync: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal error: {str(e)}")
