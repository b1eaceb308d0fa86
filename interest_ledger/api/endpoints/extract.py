from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.encoders import jsonable_encoder

from interest_ledger.api.deps import get_app_settings, get_identity, get_pipeline
from interest_ledger.common.logging_config import get_logger
from interest_ledger.parsing.artifact import StatementArtifact
from interest_ledger.parsing.exceptions import StatementFormatError

logger = get_logger(__name__)
router = APIRouter()


@router.post("/")
def extract_statements(
    files: List[UploadFile] = File(...),
    identity: str = Depends(get_identity),
    pipeline=Depends(get_pipeline),
    settings=Depends(get_app_settings),
):
    """
    Detect the bank of every uploaded statement, pull out its interest
    credits and return the deduplicated preview. Nothing is persisted;
    the reviewed preview goes to /api/transactions/sync.
    """
    if len(files) > settings.max_upload_files:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files: {len(files)} (max {settings.max_upload_files})",
        )

    try:
        logger.info(f"Extraction started: {len(files)} files", files_count=len(files))
        artifacts = [
            StatementArtifact(file.filename, file.file.read(), file.content_type)
            for file in files
        ]
        result = pipeline.process_batch(artifacts, identity)

        transactions = []
        for txn in result.transactions:
            item = txn.to_dict()
            item['display_description'] = pipeline.registry.format_description(txn.bank_id, txn.description)
            transactions.append(item)

        return jsonable_encoder({
            "files": [vars(report) for report in result.files],
            "transactions": transactions,
            "count": len(transactions),
        })

    except StatementFormatError as e:
        logger.warning(f"Extraction rejected: {e.message}", filename=e.filename, bank_id=e.bank_id)
        raise HTTPException(status_code=400, detail=e.message)
    except Exception as e:
        logger.error(f"Internal error during extraction: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal error: {str(e)}")
