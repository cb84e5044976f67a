# DishFlow API Main Entry Point
import logging
import sys
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from .settings import settings
from .sync.errors import StorageFailure, BatchTooLarge
from .routers.ready import router as ready_router
from .routers.sync import router as sync_router
from .routers.recipes import router as recipes_router
from .routers.pantry import router as pantry_router
from .routers.shopping import router as shopping_router

# Configure structured logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("dishflow")

# Rate limiter (per-IP)
limiter = Limiter(key_func=get_remote_address, default_limits=["100/minute"], enabled=settings.rate_limit_enabled)

app = FastAPI(title="DishFlow API", version="0.1.0")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(StorageFailure)
async def storage_failure_handler(request: Request, exc: StorageFailure):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


@app.exception_handler(BatchTooLarge)
async def batch_too_large_handler(request: Request, exc: BatchTooLarge):
    logger.warning(f"Rejected sync batch: {exc}")
    return JSONResponse(
        status_code=413,
        content={"detail": str(exc), "received": exc.received, "limit": exc.limit},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ready_router, prefix="/api", tags=["ready"])
app.include_router(sync_router, prefix="/api", tags=["sync"])
app.include_router(recipes_router, prefix="/api", tags=["recipes"])
app.include_router(pantry_router, prefix="/api/pantry", tags=["pantry"])
app.include_router(shopping_router, prefix="/api/shopping-lists", tags=["shopping"])
