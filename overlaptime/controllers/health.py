from typing import Any, Dict

from fastapi import APIRouter

from overlaptime.dependencies import OptionalRedis, Store

router = APIRouter()


@router.get("/health")
async def health(store: Store, redis_client: OptionalRedis) -> Dict[str, Any]:
    redis_status = "disabled"
    if redis_client is not None:
        try:
            await redis_client.ping()
            redis_status = "healthy"
        except Exception:
            redis_status = "unhealthy"

    return {
        "status": "ok",
        "store": store.backend,
        "store_stats": store.stats(),
        "redis": redis_status,
    }
