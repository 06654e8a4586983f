#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Records exchanged with the dial-plan backend.

The backend speaks camelCase JSON; these models accept either camelCase or
snake_case on input, ignore fields they do not know, and serialize back to
camelCase with `to_api()`.

Hierarchy:
    DialplanProject -> DialplanContext -> {DialplanNode, DialplanConnection}
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for all backend records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_api(self) -> Dict[str, Any]:
        """Serialize to the camelCase JSON the backend expects."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Position(BaseModel):
    x: float = 0
    y: float = 0


class DialplanContext(ApiModel):
    """Named sub-graph of a project; maps to an Asterisk dialplan context."""

    id: int
    project_id: int
    name: str
    description: Optional[str] = None
    position: Position = Field(default_factory=Position)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DialplanProject(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    tenant_id: Optional[str] = None
    is_active: bool = True
    metadata: Dict[str, Any] = Field(default_factory=dict)
    last_deployed: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    contexts: Optional[List[DialplanContext]] = None


class DialplanNode(ApiModel):
    """A single step of a dial-plan graph.

    `properties` holds the values chosen against the node type's schema and
    must contain every required field of that schema.
    """

    id: int
    context_id: int
    node_type_id: int
    name: str
    label: str = ""
    position: Position = Field(default_factory=Position)
    properties: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DialplanConnection(ApiModel):
    """Directed edge between two nodes of the same context.

    Lower priorities are evaluated first among a node's outgoing edges.
    """

    id: int
    source_node_id: int
    target_node_id: int
    condition: Optional[str] = None
    priority: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DialplanDeployment(ApiModel):
    id: int
    project_id: int
    deployed_at: Optional[datetime] = None
    status: Literal["success", "failed"]
    server_response: Optional[str] = None


class ValidationIssue(ApiModel):
    """A single validation finding, located as precisely as the backend knows."""

    message: str
    level: Literal["project", "context", "node", "connection"] = "project"
    severity: Literal["error", "warning"] = "error"
    node_id: Optional[int] = None
    node_name: Optional[str] = None
    context_id: Optional[int] = None
    context_name: Optional[str] = None
    connection_id: Optional[int] = None

    def __str__(self) -> str:
        where = self.level
        if self.node_name or self.node_id is not None:
            where = f"node {self.node_name or self.node_id}"
        elif self.connection_id is not None:
            where = f"connection {self.connection_id}"
        elif self.context_name or self.context_id is not None:
            where = f"context {self.context_name or self.context_id}"
        return f"[{self.severity}] {where}: {self.message}"


class ValidationResult(ApiModel):
    valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)
    timestamp: Optional[datetime] = None

    @field_validator("errors", "warnings", mode="before")
    @classmethod
    def _coerce_plain_messages(cls, value: Any, info) -> Any:
        # Older backends report bare strings
        if not isinstance(value, list):
            return value
        severity = "error" if info.field_name == "errors" else "warning"
        return [
            {"message": item, "severity": severity} if isinstance(item, str) else item
            for item in value
        ]


class DialplanGenerationResult(ApiModel):
    dialplan: str
    project: Optional[str] = None
    contexts: Optional[int] = None
    timestamp: Optional[datetime] = None


class DeploymentRequest(ApiModel):
    server: str
    port: int = 22
    username: str
    password: str = Field(repr=False)
    asterisk_path: str = "/etc/asterisk"


class CapabilityFlags(ApiModel):
    node_types: Any = None
    generator: bool = False
    validator: bool = False
    deployment: bool = False


class DialplanCapabilities(ApiModel):
    message: str = ""
    capabilities: Optional[CapabilityFlags] = None

    @property
    def has_generator(self) -> bool:
        return bool(self.capabilities and self.capabilities.generator)
