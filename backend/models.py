from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from dialplan_flows.models import ApiModel, DialplanConnection, DialplanNode, Position


class TypeSummary(BaseModel):
    type: str
    label: str


class GraphPayload(ApiModel):
    context_id: int
    context_name: Optional[str] = None
    nodes: List[DialplanNode] = Field(default_factory=list)
    connections: List[DialplanConnection] = Field(default_factory=list)
    node_types: List[Dict[str, Any]] = Field(default_factory=list)


class JourneyStepPayload(ApiModel):
    name: str = ""
    action_type: str
    action_config: Dict[str, Any] = Field(default_factory=dict)
    delay_type: str = "immediate"
    delay_config: Dict[str, Any] = Field(default_factory=dict)
    position: Position = Field(default_factory=Position)


class StepValidation(BaseModel):
    valid: bool
    errors: List[str]
