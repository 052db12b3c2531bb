from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict:
    """Liveness check."""
    return {"ok": True, "store": request.app.state.store_kind}
