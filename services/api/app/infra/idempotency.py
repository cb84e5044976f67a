import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from app.infra.redis_client import get_redis
from app.settings import settings

logger = logging.getLogger("dishflow.idempotency")

PROCESSING_TTL_SEC = 60


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _hash_request(method: str, path: str, body_bytes: bytes) -> str:
    h = hashlib.sha256()
    h.update(method.encode("utf-8"))
    h.update(b"|")
    h.update(path.encode("utf-8"))
    h.update(b"|")
    h.update(body_bytes or b"")
    return h.hexdigest()


def _idemp_redis_key(owner_id: str, route_key: str, idem_key: str) -> str:
    return f"dishflow:idemp:{owner_id}:{route_key}:{idem_key}"


async def idempotency_precheck(
    request: Request, *, owner_id: str, route_key: str
) -> Union[None, tuple[str, str], JSONResponse]:
    """Claim an Idempotency-Key for this request.

    Returns:
        None if the request carries no Idempotency-Key (plain execution)
        (redis_key, request_hash) if the caller should proceed and store its result
        JSONResponse if a completed response should be replayed

    Raises:
        HTTPException 409 if the key is still being processed or was used with another body
    """
    idem_key = request.headers.get("Idempotency-Key")
    if not idem_key:
        return None

    body_bytes = await request.body()
    req_hash = _hash_request(request.method, request.url.path, body_bytes)

    rkey = _idemp_redis_key(owner_id, route_key, idem_key)
    r = await get_redis()

    raw = await r.get(rkey)
    if raw:
        data = json.loads(raw)
        # Reject if same key is reused with different payload
        if data.get("request_hash") and data["request_hash"] != req_hash:
            raise HTTPException(status_code=409, detail="Idempotency-Key reused with different request payload")
        if data.get("state") == "done":
            logger.info(f"Replaying {route_key} response for key {idem_key}")
            return JSONResponse(
                content=data.get("body"),
                status_code=int(data.get("status", 200)),
                headers=data.get("headers") or {},
            )
        raise HTTPException(status_code=409, detail="Request with this Idempotency-Key is still processing. Retry shortly.")

    processing_payload = {
        "state": "processing",
        "status": None,
        "body": None,
        "created_at": _iso_now(),
        "completed_at": None,
        "request_hash": req_hash,
    }
    ok = await r.set(rkey, json.dumps(processing_payload), ex=PROCESSING_TTL_SEC, nx=True)
    if not ok:
        # someone else won the race
        raise HTTPException(status_code=409, detail="Request with this Idempotency-Key is still processing. Retry shortly.")

    return (rkey, req_hash)


async def idempotency_store_result(redis_key: str, req_hash: str, *, status: int, body: dict, headers: Optional[dict] = None):
    r = await get_redis()
    payload = {
        "state": "done",
        "status": int(status),
        "headers": headers or {},
        "body": body,
        "completed_at": _iso_now(),
        "request_hash": req_hash,
    }
    await r.set(redis_key, json.dumps(payload), ex=settings.idempotency_ttl_sec)


async def idempotency_clear_key(redis_key: str):
    """Release the key after a failed request so the client can retry."""
    r = await get_redis()
    await r.delete(redis_key)
