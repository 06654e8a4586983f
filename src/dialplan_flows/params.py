#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Parameter-schema registry for journey actions and delays.

Every journey step is configured through a form generated from a list of
ParamDefinitions. This module holds those lists as fixed, read-only tables:
- ACTION_TYPE_PARAMS: JourneyActionType -> parameter definitions
- DELAY_TYPE_PARAMS: DelayType -> parameter definitions

and the pure functions built on them:
- get_action_type_params / get_delay_type_params: schema lookup
- get_default_action_config_values / get_default_delay_config_values:
  the initial config shown before the user touches a field
- validate_config: check a config object against a schema

Tuple order is the canonical display order. Unknown type tags raise
UnknownTypeError instead of silently yielding an empty schema.
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from loguru import logger

from .exceptions import SchemaError, UnknownTypeError
from .types import REFERENCE_TYPES, ParamDefinition, ParamType, TemplateType

class JourneyActionType(str, Enum):
    """Actions a journey step can perform."""

    CALL = "call"
    SMS = "sms"
    EMAIL = "email"
    STATUS_CHANGE = "status_change"
    TAG_UPDATE = "tag_update"
    WEBHOOK = "webhook"
    WAIT_FOR_EVENT = "wait_for_event"
    CONDITIONAL_BRANCH = "conditional_branch"
    LEAD_ASSIGNMENT = "lead_assignment"
    DATA_UPDATE = "data_update"
    JOURNEY_TRANSFER = "journey_transfer"
    DELAY = "delay"


class DelayType(str, Enum):
    """How long a journey step waits before it runs."""

    IMMEDIATE = "immediate"
    FIXED_TIME = "fixed_time"
    DELAY_AFTER_PREVIOUS = "delay_after_previous"
    DELAY_AFTER_ENROLLMENT = "delay_after_enrollment"
    SPECIFIC_DAYS = "specific_days"


def _duration_params() -> Tuple[ParamDefinition, ...]:
    return (
        ParamDefinition(
            "minutes",
            "Minutes",
            ParamType.NUMBER,
            default=0,
            description="Minutes to delay",
        ),
        ParamDefinition(
            "hours",
            "Hours",
            ParamType.NUMBER,
            default=0,
            description="Hours to delay",
        ),
        ParamDefinition("days", "Days", ParamType.NUMBER, default=0, description="Days to delay"),
    )


_CALL = (
    ParamDefinition(
        "transferNumber",
        "Transfer Number",
        ParamType.STRING,
        required=True,
        description="Direct transfer number",
    ),
    ParamDefinition(
        "transferGroupId",
        "Transfer Group",
        ParamType.TRANSFER_GROUP_SELECT,
        description="Select a transfer group for routing",
    ),
    ParamDefinition(
        "scriptId",
        "Call Script",
        ParamType.TEMPLATE_SELECT,
        template_type=TemplateType.SCRIPT,
        description="Select a script template for the call",
    ),
    ParamDefinition(
        "fallbackDID",
        "Fallback DID",
        ParamType.STRING,
        description="Fallback DID if no DIDs available",
    ),
    ParamDefinition(
        "useLocalDID",
        "Use Local DID",
        ParamType.BOOLEAN,
        default=True,
        description="Whether to try matching lead's area code",
    ),
    ParamDefinition(
        "maxAttempts",
        "Maximum Attempts",
        ParamType.NUMBER,
        default=3,
        description="Maximum attempts for this call",
    ),
    ParamDefinition(
        "voicemailDetection",
        "Voicemail Detection",
        ParamType.BOOLEAN,
        default=True,
        description="Whether to detect voicemail",
    ),
    ParamDefinition(
        "voicemailMessage",
        "Voicemail Script",
        ParamType.TEMPLATE_SELECT,
        template_type=TemplateType.VOICEMAIL,
        description="Select a voicemail script template",
    ),
    ParamDefinition(
        "callerId",
        "Caller ID Name",
        ParamType.STRING,
        description="Custom caller ID name",
    ),
    ParamDefinition(
        "recordCall",
        "Record Call",
        ParamType.BOOLEAN,
        default=True,
        description="Whether to record the call",
    ),
    ParamDefinition(
        "respectBusinessHours",
        "Respect Business Hours",
        ParamType.BOOLEAN,
        default=True,
        description="Whether to respect tenant business hours",
    ),
    ParamDefinition(
        "ivrEnabled",
        "Enable IVR",
        ParamType.BOOLEAN,
        default=False,
        description="Enable Interactive Voice Response system",
    ),
    ParamDefinition(
        "ivrPromptText",
        "IVR Prompt Text",
        ParamType.STRING,
        description='Text-to-speech prompt for IVR (e.g., "Press 1 for sales, 2 for support")',
    ),
    ParamDefinition(
        "ivrPromptRecordingId",
        "IVR Prompt Recording",
        ParamType.RECORDING_SELECT,
        description="Recording ID for IVR prompt (alternative to text)",
    ),
    ParamDefinition(
        "ivrTimeout",
        "IVR Timeout (seconds)",
        ParamType.NUMBER,
        default=10,
        description="Seconds to wait for user input",
    ),
    ParamDefinition(
        "ivrMaxRetries",
        "IVR Max Retries",
        ParamType.NUMBER,
        default=3,
        description="Maximum retries for invalid input",
    ),
    ParamDefinition(
        "ivrInvalidInputText",
        "Invalid Input Text",
        ParamType.STRING,
        description="Text-to-speech for invalid input",
    ),
    ParamDefinition(
        "ivrInvalidInputRecordingId",
        "Invalid Input Recording",
        ParamType.RECORDING_SELECT,
        description="Recording ID for invalid input message",
    ),
    ParamDefinition(
        "ivrOptions",
        "IVR Menu Options",
        ParamType.IVR_OPTIONS,
        description="Configure IVR menu options and actions",
    ),
)

_SMS = (
    ParamDefinition(
        "message",
        "Message",
        ParamType.STRING,
        description="SMS text (supports variables) - leave empty to use template",
    ),
    ParamDefinition(
        "templateId",
        "SMS Template",
        ParamType.TEMPLATE_SELECT,
        template_type=TemplateType.SMS,
        description="Select an SMS template (alternative to message)",
    ),
    ParamDefinition(
        "from",
        "From Number",
        ParamType.STRING,
        description="Sender phone number (leave empty for default)",
    ),
    ParamDefinition(
        "trackClicks",
        "Track Clicks",
        ParamType.BOOLEAN,
        default=True,
        description="Whether to track link clicks",
    ),
    ParamDefinition(
        "optOutMessage",
        "Include Opt-Out",
        ParamType.BOOLEAN,
        default=True,
        description="Include opt-out instructions",
    ),
)

_EMAIL = (
    ParamDefinition(
        "subject",
        "Subject",
        ParamType.STRING,
        required=True,
        description="Email subject",
    ),
    ParamDefinition(
        "templateId",
        "Email Template",
        ParamType.TEMPLATE_SELECT,
        required=True,
        template_type=TemplateType.EMAIL,
        description="Select an email template",
    ),
    ParamDefinition(
        "from",
        "From Email",
        ParamType.STRING,
        description="Sender email (leave empty for default)",
    ),
    ParamDefinition(
        "fromName",
        "From Name",
        ParamType.STRING,
        description="Sender name (leave empty for default)",
    ),
    ParamDefinition(
        "replyTo",
        "Reply-To",
        ParamType.STRING,
        description="Reply-to address (leave empty for default)",
    ),
    ParamDefinition(
        "trackOpens",
        "Track Opens",
        ParamType.BOOLEAN,
        default=True,
        description="Track email opens",
    ),
    ParamDefinition(
        "trackClicks",
        "Track Clicks",
        ParamType.BOOLEAN,
        default=True,
        description="Track link clicks",
    ),
)

_STATUS_CHANGE = (
    ParamDefinition(
        "newStatus",
        "New Status",
        ParamType.STRING,
        required=True,
        description="New status value",
    ),
    ParamDefinition(
        "recordNote",
        "Record Note",
        ParamType.BOOLEAN,
        default=True,
        description="Add a note about the change",
    ),
    ParamDefinition(
        "noteText",
        "Note Text",
        ParamType.STRING,
        default="Status changed by journey",
        description="Custom note text",
    ),
    ParamDefinition(
        "updateLastAttempt",
        "Update Last Attempt",
        ParamType.BOOLEAN,
        default=True,
        description="Update lastAttempt timestamp",
    ),
)

_TAG_UPDATE = (
    ParamDefinition(
        "operation",
        "Operation",
        ParamType.SELECT,
        required=True,
        default="add",
        options=("add", "remove", "set"),
        description="Operation: add, remove, or set",
    ),
    ParamDefinition(
        "tags",
        "Tags",
        ParamType.STRING,
        required=True,
        description="Comma-separated tags to operate on",
    ),
    ParamDefinition(
        "recordNote",
        "Record Note",
        ParamType.BOOLEAN,
        default=True,
        description="Record a note about tag changes",
    ),
    ParamDefinition(
        "noteText",
        "Note Text",
        ParamType.STRING,
        default="Tags updated by journey",
        description="Custom note text",
    ),
)

_WEBHOOK = (
    ParamDefinition(
        "url",
        "Webhook URL",
        ParamType.STRING,
        required=True,
        description="Webhook URL",
    ),
    ParamDefinition(
        "method",
        "HTTP Method",
        ParamType.SELECT,
        default="POST",
        options=("GET", "POST", "PUT", "PATCH", "DELETE"),
        description="HTTP method",
    ),
    ParamDefinition(
        "timeout",
        "Timeout (ms)",
        ParamType.NUMBER,
        default=10000,
        description="Timeout in milliseconds",
    ),
    ParamDefinition(
        "retries",
        "Retries",
        ParamType.NUMBER,
        default=3,
        description="Number of retry attempts",
    ),
    ParamDefinition(
        "updateLeadData",
        "Update Lead Data",
        ParamType.BOOLEAN,
        default=False,
        description="Update lead with response data",
    ),
)

_WAIT_FOR_EVENT = (
    ParamDefinition(
        "eventType",
        "Event Type",
        ParamType.SELECT,
        required=True,
        options=("inbound_call", "email_opened", "link_clicked", "form_submitted", "sms_replied"),
        description="Event type to wait for",
    ),
    ParamDefinition(
        "timeoutDays",
        "Timeout Days",
        ParamType.NUMBER,
        default=7,
        description="Days to wait before timing out",
    ),
    ParamDefinition(
        "timeoutAction",
        "Timeout Action",
        ParamType.SELECT,
        default="skip_step",
        options=("skip_step", "end_journey"),
        description="Action on timeout",
    ),
    ParamDefinition(
        "captureData",
        "Capture Event Data",
        ParamType.BOOLEAN,
        default=True,
        description="Whether to capture event data",
    ),
)

_CONDITIONAL_BRANCH = (
    ParamDefinition(
        "conditionField",
        "Condition Field",
        ParamType.STRING,
        required=True,
        description="Field to evaluate (e.g., additionalData.value)",
    ),
    ParamDefinition(
        "operator",
        "Operator",
        ParamType.SELECT,
        required=True,
        options=("=", "!=", ">", "<", ">=", "<=", "contains", "not_contains", "exists", "not_exists"),
        description="Comparison operator",
    ),
    ParamDefinition("value", "Value", ParamType.STRING, description="Value to compare against"),
    ParamDefinition(
        "nextStepId",
        "Next Step ID",
        ParamType.NUMBER,
        required=True,
        description="ID of step to go to if condition is true",
    ),
    ParamDefinition(
        "defaultNextStepId",
        "Default Next Step ID",
        ParamType.NUMBER,
        description="Default step if condition is false",
    ),
)

_LEAD_ASSIGNMENT = (
    ParamDefinition(
        "assignmentType",
        "Assignment Type",
        ParamType.SELECT,
        required=True,
        options=("user", "team"),
        description="User or team",
    ),
    ParamDefinition(
        "assignToId",
        "Assign To ID",
        ParamType.STRING,
        required=True,
        description="User or team ID",
    ),
    ParamDefinition(
        "notifyAssignee",
        "Notify Assignee",
        ParamType.BOOLEAN,
        default=True,
        description="Send notification to assignee",
    ),
    ParamDefinition(
        "notificationMethod",
        "Notification Method",
        ParamType.SELECT,
        default="email",
        options=("email", "sms", "system"),
        description="Method to notify assignee",
    ),
    ParamDefinition(
        "assignmentNote",
        "Assignment Note",
        ParamType.STRING,
        description="Note for the assignee",
    ),
    ParamDefinition(
        "priority",
        "Priority",
        ParamType.SELECT,
        default="medium",
        options=("low", "medium", "high", "urgent"),
        description="Priority level",
    ),
)

_DATA_UPDATE = (
    ParamDefinition(
        "field",
        "Field",
        ParamType.STRING,
        required=True,
        description="Field to update (e.g., additionalData.score)",
    ),
    ParamDefinition("value", "Value", ParamType.STRING, required=True, description="New value"),
    ParamDefinition(
        "operation",
        "Operation",
        ParamType.SELECT,
        default="set",
        options=("set", "increment", "decrement"),
        description="Operation to perform",
    ),
    ParamDefinition(
        "recordNote",
        "Record Note",
        ParamType.BOOLEAN,
        default=True,
        description="Record a note about the update",
    ),
)

_JOURNEY_TRANSFER = (
    ParamDefinition(
        "targetJourneyId",
        "Target Journey ID",
        ParamType.NUMBER,
        required=True,
        description="Target journey ID",
    ),
    ParamDefinition(
        "exitCurrentJourney",
        "Exit Current Journey",
        ParamType.BOOLEAN,
        default=True,
        description="Whether to exit the current journey",
    ),
    ParamDefinition(
        "transferContextData",
        "Transfer Context Data",
        ParamType.BOOLEAN,
        default=True,
        description="Transfer context data to new journey",
    ),
    ParamDefinition(
        "startAtStep",
        "Start At Step",
        ParamType.NUMBER,
        description="Start at specific step ID (empty = start at beginning)",
    ),
)

_DELAY_ACTION = _duration_params() + (
    ParamDefinition(
        "businessHoursOnly",
        "Business Hours Only",
        ParamType.BOOLEAN,
        default=True,
        description="Only count business hours",
    ),
    ParamDefinition(
        "exactDateTime",
        "Exact Date/Time",
        ParamType.STRING,
        description="Specific date/time to resume (ISO format)",
    ),
    ParamDefinition(
        "overrideStepDelay",
        "Override Step Delay",
        ParamType.BOOLEAN,
        default=True,
        description="Whether this overrides the step's delay config",
    ),
)

_TIME = ParamDefinition(
    "time", "Time", ParamType.STRING, required=True, description="Time in HH:MM format (24-hour)"
)

ACTION_TYPE_PARAMS: Mapping[JourneyActionType, Tuple[ParamDefinition, ...]] = MappingProxyType(
    {
        JourneyActionType.CALL: _CALL,
        JourneyActionType.SMS: _SMS,
        JourneyActionType.EMAIL: _EMAIL,
        JourneyActionType.STATUS_CHANGE: _STATUS_CHANGE,
        JourneyActionType.TAG_UPDATE: _TAG_UPDATE,
        JourneyActionType.WEBHOOK: _WEBHOOK,
        JourneyActionType.WAIT_FOR_EVENT: _WAIT_FOR_EVENT,
        JourneyActionType.CONDITIONAL_BRANCH: _CONDITIONAL_BRANCH,
        JourneyActionType.LEAD_ASSIGNMENT: _LEAD_ASSIGNMENT,
        JourneyActionType.DATA_UPDATE: _DATA_UPDATE,
        JourneyActionType.JOURNEY_TRANSFER: _JOURNEY_TRANSFER,
        JourneyActionType.DELAY: _DELAY_ACTION,
    }
)

DELAY_TYPE_PARAMS: Mapping[DelayType, Tuple[ParamDefinition, ...]] = MappingProxyType(
    {
        DelayType.IMMEDIATE: (),
        DelayType.FIXED_TIME: (_TIME,),
        DelayType.DELAY_AFTER_PREVIOUS: _duration_params(),
        DelayType.DELAY_AFTER_ENROLLMENT: _duration_params(),
        DelayType.SPECIFIC_DAYS: (
            ParamDefinition(
                "days",
                "Days",
                ParamType.SELECT,
                required=True,
                options=("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"),
                description="Days of the week to execute",
            ),
            _TIME,
        ),
    }
)


def _check_exhaustive(kind: str, enum_cls, table: Mapping) -> None:
    missing = [member.value for member in enum_cls if member not in table]
    if missing:
        raise SchemaError(f"No {kind} schema registered for: {', '.join(missing)}")


_check_exhaustive("action", JourneyActionType, ACTION_TYPE_PARAMS)
_check_exhaustive("delay", DelayType, DELAY_TYPE_PARAMS)


def _coerce_tag(kind: str, enum_cls, tag: Union[str, Enum]):
    try:
        return enum_cls(tag)
    except ValueError as e:
        raise UnknownTypeError(kind, tag) from e


def as_action_type(action_type: Union[str, JourneyActionType]) -> JourneyActionType:
    """Resolve a tag to its JourneyActionType, raising UnknownTypeError if unregistered."""
    return _coerce_tag("action", JourneyActionType, action_type)


def as_delay_type(delay_type: Union[str, DelayType]) -> DelayType:
    """Resolve a tag to its DelayType, raising UnknownTypeError if unregistered."""
    return _coerce_tag("delay", DelayType, delay_type)


def get_action_type_params(action_type: Union[str, JourneyActionType]) -> List[ParamDefinition]:
    """Get the parameter definitions for a journey action type.

    Args:
        action_type: Action type tag or enum member

    Returns:
        Definitions in display order

    Raises:
        UnknownTypeError: If the tag is not a JourneyActionType
    """
    return list(ACTION_TYPE_PARAMS[as_action_type(action_type)])


def get_delay_type_params(delay_type: Union[str, DelayType]) -> List[ParamDefinition]:
    """Get the parameter definitions for a delay type.

    Args:
        delay_type: Delay type tag or enum member

    Returns:
        Definitions in display order; empty for "immediate"

    Raises:
        UnknownTypeError: If the tag is not a DelayType
    """
    return list(DELAY_TYPE_PARAMS[as_delay_type(delay_type)])


def derive_default_values(param_defs: Iterable[ParamDefinition]) -> Dict[str, Any]:
    """Build the initial values object for a list of parameter definitions.

    Declared defaults win and are copied as-is. Required fields without a
    default get the empty value of their type. Optional fields without a
    default are left out.

    Args:
        param_defs: Parameter definitions

    Returns:
        Mapping of parameter id to its initial value
    """
    values: Dict[str, Any] = {}
    for param in param_defs:
        if param.has_default:
            values[param.id] = param.default_value()
        elif param.required:
            values[param.id] = param.empty_value()
    return values


def get_default_action_config_values(action_type: Union[str, JourneyActionType]) -> Dict[str, Any]:
    """Get the initial config for a new journey action of the given type."""
    return derive_default_values(get_action_type_params(action_type))


def get_default_delay_config_values(delay_type: Union[str, DelayType]) -> Dict[str, Any]:
    """Get the initial config for a new delay of the given type."""
    return derive_default_values(get_delay_type_params(delay_type))


def _type_error(param: ParamDefinition, value: Any) -> Optional[str]:
    if param.type == ParamType.BOOLEAN:
        if not isinstance(value, bool):
            return f"'{param.id}' must be a boolean"
    elif param.type == ParamType.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return f"'{param.id}' must be a number"
    elif param.type == ParamType.SELECT:
        if param.options and value not in param.options:
            return f"'{param.id}' must be one of {list(param.options)}"
    elif param.type == ParamType.IVR_OPTIONS:
        if not isinstance(value, list):
            return f"'{param.id}' must be a list of menu options"
    elif param.type == ParamType.STRING or param.type in REFERENCE_TYPES:
        # Reference ids come back from the backend as ints
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            return f"'{param.id}' must be a string"
    return None


def validate_config(param_defs: Iterable[ParamDefinition], config: Mapping[str, Any]) -> List[str]:
    """Check a config or properties object against its schema.

    Args:
        param_defs: Schema to validate against
        config: Values chosen by the user

    Returns:
        Human readable error messages; empty when the config is valid
    """
    errors: List[str] = []
    by_id = {param.id: param for param in param_defs}

    for key in config:
        if key not in by_id:
            errors.append(f"Unknown field '{key}'")

    for param_id, param in by_id.items():
        value = config.get(param_id)
        # Required fields seeded with an empty string still need user input
        if value is None or (param.required and value == ""):
            if param.required:
                errors.append(f"'{param_id}' is required")
            continue
        error = _type_error(param, value)
        if error:
            errors.append(error)

    if errors:
        logger.debug(f"Config validation found {len(errors)} error(s): {errors}")
    return errors
