#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#
"""Dialplan Flows.

This package models the call-routing graphs ("dial plans") of a call-center
PBX and keeps a local copy of them in step with the backend REST API:

1. Parameter schemas:
   - Each journey action, delay and node type declares its fields as
     ParamDefinitions; forms and defaults are derived from them
   - Example:
        from dialplan_flows import get_action_type_params, get_default_action_config_values

        fields = get_action_type_params("webhook")
        config = get_default_action_config_values("webhook")
        # {"url": "", "method": "POST", "timeout": 10000, "retries": 3, "updateLeadData": False}

2. Dial-plan graphs:
   - Projects hold contexts, contexts hold nodes and prioritized connections
   - Example:
        from dialplan_flows import ClientConfig, DialplanClient, DialplanEditorSession

        async with DialplanClient(ClientConfig.from_env()) as client:
            session = DialplanEditorSession(client)
            await session.check_capabilities()
            await session.load_project(42)
            node = await session.create_node(node_type_id=3, position={"x": 80, "y": 40})
            await session.change_node_type(node.id, 5)
"""

from .client import DialplanClient
from .config import ClientConfig
from .exceptions import (
    ApiError,
    AuthenticationError,
    DialplanError,
    GraphError,
    InvalidIdError,
    NotFoundError,
    ReadOnlyError,
    ResponseError,
    SchemaError,
    TransportError,
    UnknownTypeError,
)
from .graph import DialplanGraph
from .journey import DelayConfig, JourneyAction, JourneyStep
from .models import (
    DeploymentRequest,
    DialplanCapabilities,
    DialplanConnection,
    DialplanContext,
    DialplanDeployment,
    DialplanGenerationResult,
    DialplanNode,
    DialplanProject,
    Position,
    ValidationIssue,
    ValidationResult,
)
from .node_types import (
    NodeCategory,
    NodeType,
    NodeTypeCatalog,
    NodeTypeSchema,
    ParamDefSchema,
    PropertiesSchema,
    PropertySchema,
    default_param_defs,
)
from .notifications import LoggingNotifier, Notification, Notifier, RecordingNotifier
from .params import (
    ACTION_TYPE_PARAMS,
    DELAY_TYPE_PARAMS,
    DelayType,
    JourneyActionType,
    derive_default_values,
    get_action_type_params,
    get_default_action_config_values,
    get_default_delay_config_values,
    get_delay_type_params,
    validate_config,
)
from .session import DialplanEditorSession, NodeUpdateState
from .types import NO_DEFAULT, ParamDefinition, ParamType, TemplateType
from .validation import GraphValidator, validate_graph

__all__ = [
    # Client
    "ClientConfig",
    "DialplanClient",
    # Session
    "DialplanEditorSession",
    "NodeUpdateState",
    # Graph
    "DialplanGraph",
    "GraphValidator",
    "validate_graph",
    # Exceptions
    "ApiError",
    "AuthenticationError",
    "DialplanError",
    "GraphError",
    "InvalidIdError",
    "NotFoundError",
    "ReadOnlyError",
    "ResponseError",
    "SchemaError",
    "TransportError",
    "UnknownTypeError",
    # Journey
    "DelayConfig",
    "JourneyAction",
    "JourneyStep",
    # Models
    "DeploymentRequest",
    "DialplanCapabilities",
    "DialplanConnection",
    "DialplanContext",
    "DialplanDeployment",
    "DialplanGenerationResult",
    "DialplanNode",
    "DialplanProject",
    "Position",
    "ValidationIssue",
    "ValidationResult",
    # Node types
    "NodeCategory",
    "NodeType",
    "NodeTypeCatalog",
    "NodeTypeSchema",
    "ParamDefSchema",
    "PropertiesSchema",
    "PropertySchema",
    "default_param_defs",
    # Notifications
    "LoggingNotifier",
    "Notification",
    "Notifier",
    "RecordingNotifier",
    # Parameter schemas
    "ACTION_TYPE_PARAMS",
    "DELAY_TYPE_PARAMS",
    "DelayType",
    "JourneyActionType",
    "NO_DEFAULT",
    "ParamDefinition",
    "ParamType",
    "TemplateType",
    "derive_default_values",
    "get_action_type_params",
    "get_default_action_config_values",
    "get_default_delay_config_values",
    "get_delay_type_params",
    "validate_config",
]
