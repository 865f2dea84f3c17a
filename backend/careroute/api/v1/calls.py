from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from careroute.core.config_loader import FeatureFlags
from careroute.core.logging import get_logger
from careroute.models.routing import ModelOptions, ModelResponse, RouteContext
from careroute.routing.healthcare import AgentType, HealthcareAgentRequest, HealthcareRouter

logger = get_logger(__name__)
router = APIRouter()

# Each agent can be switched off on its own; unset flags mean enabled.
AGENT_FLAGS = {
    AgentType.PLANNER: "enableHealthcarePlanner",
    AgentType.COORDINATOR: "enableCareCoordinator",
    AgentType.REVIEWER: "enableSafetyReviewer",
}


class CallRequest(BaseModel):
    context: RouteContext
    input: str
    options: Optional[ModelOptions] = None


def get_router(request: Request) -> HealthcareRouter:
    return request.app.state.router


def get_feature_flags(request: Request) -> FeatureFlags:
    return request.app.state.feature_flags


def agent_enabled(flags: FeatureFlags, agent_type: AgentType) -> bool:
    return flags.is_enabled(AGENT_FLAGS[agent_type], default=True)


@router.post("/call", response_model=ModelResponse)
async def call_model(body: CallRequest, router: HealthcareRouter = Depends(get_router)):
    return await router.call(body.context, body.input, body.options)


@router.post("/healthcare/{agent_type}", response_model=ModelResponse)
async def call_healthcare_agent(
    agent_type: AgentType,
    body: HealthcareAgentRequest,
    router: HealthcareRouter = Depends(get_router),
    flags: FeatureFlags = Depends(get_feature_flags),
):
    if not agent_enabled(flags, agent_type):
        logger.warning("healthcare_agent_disabled", agent_type=agent_type.value, flag=AGENT_FLAGS[agent_type])
        raise HTTPException(
            status_code=503,
            detail=f"Healthcare {agent_type.value} agent temporarily unavailable",
        )

    logger.info(
        "healthcare_agent_call",
        agent_type=agent_type.value,
        topic=body.topic,
        urgency=body.urgency.value,
    )
    return await router.call_healthcare_agent(agent_type, body)


@router.get("/agents/status")
async def agents_status(
    router: HealthcareRouter = Depends(get_router),
    flags: FeatureFlags = Depends(get_feature_flags),
):
    """Per-agent availability plus routing totals."""
    stats = await router.get_stats()
    return {
        "agents": {
            agent_type.value: {
                "flag": flag,
                "enabled": agent_enabled(flags, agent_type),
            }
            for agent_type, flag in AGENT_FLAGS.items()
        },
        "routing": {
            "total_calls": stats.total_calls,
            "total_cost": stats.total_cost,
            "avg_cost": stats.avg_cost,
        },
    }
