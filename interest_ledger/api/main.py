import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from interest_ledger.api.endpoints import donations, extract, projections, transactions
from interest_ledger.common.config import get_settings
from interest_ledger.common.logging_config import get_logger, set_request_id, setup_logging

settings = get_settings()

# Initialize Structured Logging
setup_logging(settings.log_level, settings.log_file)
logger = get_logger("api.main")

app = FastAPI(title="Interest Ledger API", version="1.0.0")


# Middleware for Request ID and Logging
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    set_request_id(request_id)

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path}",
        method=request.method,
        path=request.url.path,
        client=request.client.host if request.client else "unknown",
    )

    try:
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(
            f"Request completed: {request.method} {request.url.path} - Status: {response.status_code}",
            status_code=response.status_code,
            process_time_ms=round(process_time * 1000, 2),
        )

        response.headers["X-Request-ID"] = request_id
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(
            f"Request failed: {str(e)}",
            error=str(e),
            process_time_ms=round(process_time * 1000, 2),
            exc_info=True,
        )
        raise


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include Routers
app.include_router(extract.router, prefix="/api/extract", tags=["Extract"])
app.include_router(transactions.router, prefix="/api/transactions", tags=["Transactions"])
app.include_router(donations.router, prefix="/api/donations", tags=["Donations"])
app.include_router(projections.router, prefix="/api", tags=["Projections"])


@app.get("/api/health")
def health_check():
    return {"status": "ok", "app": "Interest Ledger"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8010)
