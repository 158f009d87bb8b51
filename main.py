from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from datetime import datetime, timezone
import logging
import os
import time

from db import Base, SessionLocal, engine
from dependencies import get_db
from errors import ConflictError, NotFoundError
from routers import ALL_ROUTERS

import orm  # noqa: F401  (registers tables on Base.metadata)

app = FastAPI(title="Asset Lending API")

Base.metadata.create_all(bind=engine)

# -----------------------
# Logging
# -----------------------
logging.basicConfig(
    level=os.getenv("APP_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("app")

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    elapsed_ms = int((time.time() - start) * 1000)
    logger.info(
        "method=%s path=%s status=%s elapsed_ms=%s",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response

# -----------------------
# Domain errors
# -----------------------
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})

@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": exc.message})

for router in ALL_ROUTERS:
    app.include_router(router)

@app.get("/")
def root():
    return {"message": "Asset Lending API", "docs": "/docs"}

@app.get("/healthcheck")
def healthcheck():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

__all__ = ["app", "SessionLocal", "get_db"]
