from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/api/health")
async def health(request: Request):
    store = request.app.state.session_store
    limiter = request.app.state.rate_limiter

    storage_info = {"sessions_dir": None, "writable": False, "session_count": 0}
    if store:
        storage_info = {
            "sessions_dir": str(store.sessions_dir),
            "writable": store.is_writable(),
            "session_count": await store.count(),
        }

    limiter_info = {"tracked_clients": 0, "window_ms": 0, "max_requests": 0}
    if limiter:
        limiter_info = {
            "tracked_clients": limiter.tracked_clients,
            "window_ms": limiter.window_ms,
            "max_requests": limiter.max_requests,
        }

    return {
        "status": "ok",
        "storage": storage_info,
        "rate_limiter": limiter_info,
    }
