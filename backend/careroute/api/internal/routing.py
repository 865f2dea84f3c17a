from fastapi import APIRouter, Request

from careroute.models.cost import RouterStats
from careroute.models.routing import RouteContext

router = APIRouter()


@router.post("/routing/select")
async def select_route(context: RouteContext, request: Request):
    """Preview the route a context resolves to, without calling any model."""
    route = request.app.state.router.select_route(context)
    return route.model_dump()


@router.get("/routing/rules")
async def list_rules(request: Request):
    config = request.app.state.router_config
    patterns = request.app.state.router.rule_patterns()
    return {
        "default": {
            "provider": config.llm.default_provider,
            "model": config.llm.default_model,
        },
        "rules": [
            {**rule.model_dump(), "compiled": patterns.get(rule.name)}
            for rule in config.routing.rules
        ],
    }


@router.get("/routing/stats", response_model=RouterStats)
async def stats(request: Request):
    return await request.app.state.router.get_stats()
