"""
Shared dependencies for the API endpoints.

Import these in endpoints instead of importing from main.py to avoid
circular imports.
"""
import threading
from typing import Optional

from fastapi import Header, HTTPException

from interest_ledger.common.config import Settings, get_settings
from interest_ledger.core.service import LedgerService
from interest_ledger.parsing.pipeline import ExtractorPipeline
from interest_ledger.parsing.registry import get_registry
from interest_ledger.store.database import init_db, make_engine, make_session_factory

_lock = threading.Lock()
_service: Optional[LedgerService] = None
_pipeline: Optional[ExtractorPipeline] = None


def get_app_settings() -> Settings:
    return get_settings()


def get_identity(x_user_id: Optional[str] = Header(default=None)) -> str:
    """
    Resolve the caller. The identity provider sits in front of this API and
    forwards the authenticated user id in the X-User-Id header.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="unauthenticated")
    return x_user_id.strip()


def get_service() -> LedgerService:
    global _service
    with _lock:
        if _service is None:
            settings = get_settings()
            engine = make_engine(settings.database_url)
            init_db(engine)
            _service = LedgerService(
                make_session_factory(engine),
                registry=get_registry(),
                page_limit=settings.projection_page_limit,
            )
        return _service


def get_pipeline() -> ExtractorPipeline:
    global _pipeline
    with _lock:
        if _pipeline is None:
            settings = get_settings()
            _pipeline = ExtractorPipeline(
                get_registry(),
                max_workers=settings.extract_max_workers,
                failure_policy=settings.batch_failure_policy,
            )
        return _pipeline
