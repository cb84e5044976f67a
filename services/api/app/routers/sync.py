"""Device sync endpoint.

One call pushes the device's pending changes and pulls everything changed
since its last cursor. Conflicts come back as data in the response body.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from .. import models, schemas
from ..deps import get_db, get_owner
from ..infra.idempotency import idempotency_precheck, idempotency_store_result, idempotency_clear_key
from ..settings import settings
from ..sync.coordinator import SyncCoordinator

router = APIRouter()


def _owner_or_address(request: Request) -> str:
    return request.headers.get("X-User-Id") or get_remote_address(request)


limiter = Limiter(key_func=_owner_or_address, enabled=settings.rate_limit_enabled)


@router.post("/sync", response_model=schemas.SyncResponse)
@limiter.limit(settings.sync_rate_limit)
async def sync(
    request: Request,  # Required for rate limiter
    payload: schemas.SyncRequest,
    db: Session = Depends(get_db),
    owner: models.User = Depends(get_owner),
):
    """Push local changes, pull the delta since lastSyncTimestamp."""
    pre = await idempotency_precheck(request, owner_id=owner.id, route_key="sync")
    if isinstance(pre, JSONResponse):
        return pre

    coordinator = SyncCoordinator(db, max_entities=settings.sync_max_entities_per_request)
    try:
        result = coordinator.sync(owner.id, payload)
    except Exception:
        if pre:
            await idempotency_clear_key(pre[0])
        raise

    if pre:
        redis_key, req_hash = pre
        await idempotency_store_result(
            redis_key, req_hash, status=200, body=result.model_dump(mode="json", by_alias=True)
        )
    return result
