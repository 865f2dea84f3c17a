from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    provider_registry = request.app.state.provider_registry
    provider_status = await provider_registry.health_check_all()
    return {
        "status": "ok" if all(provider_status.values()) else "degraded",
        "providers": provider_status,
    }


@router.get("/ready")
async def ready():
    return {"status": "ready"}
