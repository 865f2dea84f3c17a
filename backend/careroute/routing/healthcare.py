from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from careroute.models.routing import ModelOptions, ModelResponse, RiskLevel, RouteContext
from careroute.routing.router import ModelRouter


class AgentType(str, Enum):
    PLANNER = "planner"
    COORDINATOR = "coordinator"
    REVIEWER = "reviewer"


class Urgency(str, Enum):
    ROUTINE = "routine"
    URGENT = "urgent"
    EMERGENCY = "emergency"


URGENCY_RISK: Dict[Urgency, RiskLevel] = {
    Urgency.ROUTINE: RiskLevel.LOW,
    Urgency.URGENT: RiskLevel.MEDIUM,
    Urgency.EMERGENCY: RiskLevel.HIGH,
}

SYSTEM_PROMPTS: Dict[AgentType, str] = {
    AgentType.PLANNER: (
        "You are a healthcare safety planning assistant for older adults aging in place. "
        "Assess home and health risks and propose evidence-based, prioritized safety plans."
    ),
    AgentType.COORDINATOR: (
        "You are a care coordination assistant. Match patients with providers, schedule "
        "appointments and keep emergency contacts and care teams informed."
    ),
    AgentType.REVIEWER: (
        "You are a healthcare safety reviewer. Check recommendations against safety policy, "
        "medical compliance and accessibility requirements before they reach patients."
    ),
}

AGENT_TOOLS: Dict[AgentType, List[str]] = {
    AgentType.PLANNER: ["safety_assessment", "medical_knowledge", "risk_analysis"],
    AgentType.COORDINATOR: ["appointment_service", "provider_network", "emergency_contacts"],
    AgentType.REVIEWER: ["safety_policy_check", "medical_compliance", "accessibility_audit"],
}

# Clinical calls run colder than general routing.
ROUTINE_TEMPERATURE = 0.1
EMERGENCY_TEMPERATURE = 0.0


class HealthcareAgentRequest(BaseModel):
    patient_context: Dict[str, Any] = Field(default_factory=dict)
    medical_history: Optional[Dict[str, Any]] = None
    urgency: Urgency = Urgency.ROUTINE
    topic: str
    input: str
    tenant: Optional[str] = None
    user_id: Optional[str] = None


class HealthcareRouter(ModelRouter):
    """ModelRouter with request shaping for the clinical agents."""

    async def call_healthcare_agent(
        self, agent_type: AgentType, request: HealthcareAgentRequest
    ) -> ModelResponse:
        agent_type = AgentType(agent_type)
        urgency = Urgency(request.urgency)

        context = RouteContext(
            topic=f"{agent_type.value}.{request.topic}",
            tenant=request.tenant,
            user_id=request.user_id,
            risk=URGENCY_RISK[urgency],
            emergency=urgency is Urgency.EMERGENCY,
        )
        options = ModelOptions(
            system_prompt=SYSTEM_PROMPTS[agent_type],
            tools=list(AGENT_TOOLS[agent_type]),
            temperature=EMERGENCY_TEMPERATURE if urgency is Urgency.EMERGENCY else ROUTINE_TEMPERATURE,
        )
        return await self.call(context, request.input, options)
