from typing import Any, Dict, List

from fastapi import APIRouter, Body, HTTPException
from loguru import logger

from dialplan_flows.exceptions import GraphError, SchemaError, UnknownTypeError
from dialplan_flows.models import ValidationResult
from dialplan_flows.node_types import NodeType
from dialplan_flows.params import (
    DelayType,
    JourneyActionType,
    get_action_type_params,
    get_default_action_config_values,
    get_default_delay_config_values,
    get_delay_type_params,
)

from .models import GraphPayload, JourneyStepPayload, StepValidation, TypeSummary
from .validation import validate_payload, validate_step

router = APIRouter()


def _summaries(enum_cls) -> List[TypeSummary]:
    return [
        TypeSummary(type=member.value, label=member.value.replace("_", " ").title())
        for member in enum_cls
    ]


@router.get("/action-types")
async def list_action_types() -> List[TypeSummary]:
    return _summaries(JourneyActionType)


@router.get("/action-types/{action_type}/params")
async def action_type_params(action_type: str) -> List[Dict[str, Any]]:
    """Field definitions of a journey action type, in display order"""
    try:
        return [param.to_dict() for param in get_action_type_params(action_type)]
    except UnknownTypeError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/action-types/{action_type}/defaults")
async def action_type_defaults(action_type: str) -> Dict[str, Any]:
    """Initial config for a new action of this type"""
    try:
        return get_default_action_config_values(action_type)
    except UnknownTypeError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/delay-types")
async def list_delay_types() -> List[TypeSummary]:
    return _summaries(DelayType)


@router.get("/delay-types/{delay_type}/params")
async def delay_type_params(delay_type: str) -> List[Dict[str, Any]]:
    try:
        return [param.to_dict() for param in get_delay_type_params(delay_type)]
    except UnknownTypeError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/delay-types/{delay_type}/defaults")
async def delay_type_defaults(delay_type: str) -> Dict[str, Any]:
    try:
        return get_default_delay_config_values(delay_type)
    except UnknownTypeError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/node-types/properties")
async def node_type_properties(descriptor: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Derive the schema and initial properties of a node type descriptor"""
    try:
        node_type = NodeType.from_api(descriptor)
        properties = node_type.derive_properties()
    except SchemaError as e:
        logger.warning(f"Rejected node type descriptor: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "nodeTypeId": node_type.id,
        "name": node_type.name,
        "category": node_type.category.value,
        "paramDefs": [param.to_dict() for param in node_type.param_defs()],
        "properties": properties,
    }


@router.post("/validate")
async def validate_graph_payload(payload: GraphPayload) -> ValidationResult:
    """Run the local pre-flight checks on a posted context graph"""
    try:
        return validate_payload(payload)
    except GraphError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/journey/validate-step")
async def validate_journey_step(payload: JourneyStepPayload) -> StepValidation:
    try:
        errors = validate_step(payload)
    except UnknownTypeError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return StepValidation(valid=len(errors) == 0, errors=errors)
