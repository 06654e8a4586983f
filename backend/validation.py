from typing import List

from dialplan_flows.graph import DialplanGraph
from dialplan_flows.journey import DelayConfig, JourneyAction, JourneyStep
from dialplan_flows.models import ValidationResult
from dialplan_flows.node_types import NodeTypeCatalog
from dialplan_flows.validation import validate_graph

from .models import GraphPayload, JourneyStepPayload


def validate_payload(payload: GraphPayload) -> ValidationResult:
    """Build a graph from the posted records and run the local checks"""
    graph = DialplanGraph(payload.context_id)
    graph.load(payload.nodes, payload.connections)
    catalog = NodeTypeCatalog.from_api(payload.node_types)
    return validate_graph(graph, catalog, payload.context_name)


def validate_step(payload: JourneyStepPayload) -> List[str]:
    """Check a journey step's action and delay configs against their schemas"""
    step = JourneyStep(
        name=payload.name,
        action=JourneyAction(type=payload.action_type, config=payload.action_config),
        delay=DelayConfig(type=payload.delay_type, config=payload.delay_config),
        position=payload.position,
    )
    errors = step.validate()
    if not step.name.strip():
        errors.insert(0, "Step name must not be empty")
    return errors
