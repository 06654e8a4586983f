#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Node types and their property schemas.

The backend describes each node type's configurable properties in one of two
mutually exclusive shapes:

1. paramDefs: a flat list of parameter definitions
   {"paramDefs": [{"id": "exten", "type": "string", "required": true, ...}]}

2. properties: a JSON-schema-like object keyed by property name
   {"properties": {"timeout": {"type": "integer", "default": 30}, ...}}

NodeType.from_api() turns either into a NodeTypeSchema (ParamDefSchema or
PropertiesSchema), so consumers handle both through param_defs(). A type that
declares neither gets the built-in schema for its category.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from loguru import logger

from .exceptions import SchemaError, UnknownTypeError
from .params import derive_default_values, validate_config
from .types import NO_DEFAULT, ParamDefinition, ParamType


class NodeCategory(str, Enum):
    EXTENSION = "extension"
    APPLICATION = "application"
    FLOWCONTROL = "flowcontrol"
    ACTION = "action"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class PropertySchema:
    """One entry of a JSON-schema-like properties object.

    Attributes:
        type: JSON schema type ("string", "integer", "number", "boolean")
        required: Whether the property must be set
        default: Declared default, or NO_DEFAULT
        enum: Allowed values
        format: Rendering hint (e.g. "multi-line")
        title: Label
        description: Help text
    """

    type: str = "string"
    required: bool = False
    default: Any = NO_DEFAULT
    enum: Optional[Tuple[Any, ...]] = None
    format: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PropertySchema":
        if not isinstance(data, dict):
            raise SchemaError(f"Property schema must be an object, got {type(data).__name__}")
        enum = data.get("enum")
        return cls(
            type=data.get("type", "string"),
            required=bool(data.get("required", False)),
            default=data["default"] if "default" in data else NO_DEFAULT,
            enum=tuple(enum) if enum else None,
            format=data.get("format"),
            title=data.get("title"),
            description=data.get("description"),
        )

    def to_param_definition(self, key: str) -> ParamDefinition:
        """Express this property as a ParamDefinition."""
        if self.enum:
            param_type = ParamType.SELECT
        elif self.type in ("integer", "number"):
            param_type = ParamType.NUMBER
        elif self.type == "boolean":
            param_type = ParamType.BOOLEAN
        else:
            param_type = ParamType.STRING

        return ParamDefinition(
            id=key,
            name=self.title or key,
            type=param_type,
            required=self.required,
            default=self.default,
            options=self.enum,
            description=self.description,
        )


@dataclass(frozen=True)
class ParamDefSchema:
    """Node type schema given as a flat list of parameter definitions."""

    params: Tuple[ParamDefinition, ...]

    def param_defs(self) -> List[ParamDefinition]:
        return list(self.params)


@dataclass(frozen=True)
class PropertiesSchema:
    """Node type schema given as a JSON-schema-like properties object."""

    properties: Tuple[Tuple[str, PropertySchema], ...]
    params: Tuple[ParamDefinition, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        # Converted up front so a bad entry fails NodeType.from_api
        params = tuple(schema.to_param_definition(key) for key, schema in self.properties)
        object.__setattr__(self, "params", params)

    def param_defs(self) -> List[ParamDefinition]:
        return list(self.params)


NodeTypeSchema = Union[ParamDefSchema, PropertiesSchema]


_COMMON_PARAMS = (
    ParamDefinition(
        "priority",
        "Priority",
        ParamType.NUMBER,
        default=1,
        description="Execution priority for this node",
    ),
)


def default_param_defs(name: str, category: Union[str, NodeCategory]) -> Tuple[ParamDefinition, ...]:
    """Built-in schema for node types the backend describes without one.

    The application, flowcontrol and terminal categories refine the schema by
    keywords in the type name (dial, playback, queue, goto, if/condition,
    hangup).

    Args:
        name: Node type name
        category: Node type category

    Returns:
        Parameter definitions ending with the common priority field
    """
    lowered = (name or "").lower()
    try:
        category = NodeCategory(category)
    except ValueError:
        category = None

    if category == NodeCategory.EXTENSION:
        params = (
            ParamDefinition(
                "exten",
                "Extension",
                ParamType.STRING,
                required=True,
                default="s",
                description="The extension pattern to match",
            ),
            ParamDefinition(
                "matchPattern",
                "Match Pattern",
                ParamType.SELECT,
                default="exact",
                options=("exact", "pattern", "regex"),
                description="How to match the extension",
            ),
        )
    elif category == NodeCategory.APPLICATION and "dial" in lowered:
        params = (
            ParamDefinition(
                "technology",
                "Technology",
                ParamType.SELECT,
                required=True,
                default="SIP",
                options=("SIP", "PJSIP", "IAX2", "DAHDI", "Local"),
                description="The technology to use for dialing",
            ),
            ParamDefinition(
                "destination",
                "Destination",
                ParamType.STRING,
                required=True,
                default="",
                description="The destination to dial",
            ),
            ParamDefinition(
                "timeout", "Timeout", ParamType.NUMBER, default=30, description="Timeout in seconds"
            ),
            ParamDefinition(
                "options",
                "Dial Options",
                ParamType.STRING,
                default="",
                description="Additional dial options",
            ),
        )
    elif category == NodeCategory.APPLICATION and "playback" in lowered:
        params = (
            ParamDefinition(
                "filename",
                "Filename",
                ParamType.STRING,
                required=True,
                default="",
                description="Sound file to play",
            ),
            ParamDefinition(
                "skip",
                "Skip if busy",
                ParamType.BOOLEAN,
                default=False,
                description="Skip playback if busy",
            ),
        )
    elif category == NodeCategory.APPLICATION and "queue" in lowered:
        params = (
            ParamDefinition(
                "queueName",
                "Queue Name",
                ParamType.STRING,
                required=True,
                default="",
                description="Name of the queue",
            ),
            ParamDefinition(
                "options",
                "Queue Options",
                ParamType.STRING,
                default="",
                description="Queue options",
            ),
            ParamDefinition(
                "timeout",
                "Timeout",
                ParamType.NUMBER,
                default=0,
                description="Maximum wait time in seconds (0 for unlimited)",
            ),
        )
    elif category == NodeCategory.APPLICATION:
        params = (
            ParamDefinition(
                "app",
                "Application",
                ParamType.STRING,
                required=True,
                default="",
                description="The application name",
            ),
            ParamDefinition(
                "args",
                "Arguments",
                ParamType.STRING,
                default="",
                description="Application arguments",
            ),
        )
    elif category == NodeCategory.FLOWCONTROL and "goto" in lowered:
        # Goto carries its own destination priority, which shadows the common one
        return (
            ParamDefinition(
                "context",
                "Context",
                ParamType.STRING,
                default="",
                description="Destination context",
            ),
            ParamDefinition(
                "exten",
                "Extension",
                ParamType.STRING,
                required=True,
                default="s",
                description="Destination extension",
            ),
            ParamDefinition(
                "priority",
                "Priority",
                ParamType.STRING,
                required=True,
                default="1",
                description="Destination priority",
            ),
        )
    elif category == NodeCategory.FLOWCONTROL and ("if" in lowered or "condition" in lowered):
        params = (
            ParamDefinition(
                "expression",
                "Condition",
                ParamType.STRING,
                required=True,
                default="",
                description="Expression to evaluate (e.g., ${CALLERID(num)} = 1234)",
            ),
        )
    elif category == NodeCategory.FLOWCONTROL:
        params = (
            ParamDefinition(
                "action",
                "Action",
                ParamType.STRING,
                required=True,
                default="",
                description="Flow control action",
            ),
            ParamDefinition(
                "data",
                "Data",
                ParamType.STRING,
                default="",
                description="Additional data for the action",
            ),
        )
    elif category == NodeCategory.TERMINAL and "hangup" in lowered:
        params = (
            ParamDefinition(
                "cause",
                "Hangup Cause",
                ParamType.SELECT,
                default="normal",
                options=("normal", "busy", "congestion", "no_answer", "decline", "canceled"),
                description="The reason for hanging up",
            ),
        )
    elif category == NodeCategory.TERMINAL:
        params = (
            ParamDefinition(
                "action",
                "Action",
                ParamType.STRING,
                required=True,
                default="Hangup",
                description="Terminal action",
            ),
        )
    else:
        params = (
            ParamDefinition(
                "custom",
                "Custom Value",
                ParamType.STRING,
                default="",
                description="Custom configuration value",
            ),
            ParamDefinition(
                "enabled",
                "Enabled",
                ParamType.BOOLEAN,
                default=True,
                description="Enable/disable this node",
            ),
        )
    return params + _COMMON_PARAMS


@dataclass(frozen=True)
class NodeType:
    """Read-only description of what a node can configure.

    Attributes:
        id: Backend id
        name: Display name, also used as the name of new nodes
        description: Help text
        category: Node category
        schema: Property schema (ParamDefSchema or PropertiesSchema)
        input_handles: Number of incoming handles drawn by the canvas
        output_handles: Number of outgoing handles drawn by the canvas
        default_params: Values overlaid on the derived defaults
    """

    id: int
    name: str
    category: NodeCategory
    schema: NodeTypeSchema
    description: str = ""
    input_handles: Optional[int] = None
    output_handles: Optional[int] = None
    default_params: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "NodeType":
        """Parse a node type descriptor from the backend.

        Raises:
            SchemaError: If the descriptor is malformed or carries both
                paramDefs and properties
        """
        try:
            type_id = int(data["id"])
            name = data["name"]
        except (KeyError, TypeError, ValueError) as e:
            raise SchemaError(f"Invalid node type descriptor: {data!r}") from e

        param_defs = data.get("paramDefs")
        properties = data.get("properties")
        if param_defs and properties:
            raise SchemaError(f"Node type '{name}' declares both paramDefs and properties")

        category = data.get("category", "")
        try:
            category = NodeCategory(str(category).lower())
        except ValueError as e:
            raise SchemaError(f"Node type '{name}' has unknown category {category!r}") from e

        schema: NodeTypeSchema
        if param_defs:
            schema = ParamDefSchema(tuple(ParamDefinition.from_dict(p) for p in param_defs))
        elif properties:
            if not isinstance(properties, dict):
                raise SchemaError(f"Node type '{name}' properties must be an object")
            schema = PropertiesSchema(
                tuple((key, PropertySchema.from_dict(value)) for key, value in properties.items())
            )
        else:
            logger.debug(f"Node type '{name}' has no schema; using {category.value} defaults")
            schema = ParamDefSchema(default_param_defs(name, category))

        return cls(
            id=type_id,
            name=name,
            category=category,
            schema=schema,
            description=data.get("description") or "",
            input_handles=data.get("inputHandles"),
            output_handles=data.get("outputHandles"),
            default_params=dict(data.get("defaultParams") or {}),
        )

    def param_defs(self) -> List[ParamDefinition]:
        return self.schema.param_defs()

    def derive_properties(self) -> Dict[str, Any]:
        """Build the properties object for a freshly typed node.

        Only default_params keys that the schema declares are overlaid, so the
        result never carries keys validate_properties() would flag.

        Returns:
            Derived defaults of the schema with default_params overlaid
        """
        params = self.param_defs()
        properties = derive_default_values(params)
        known = {param.id for param in params}
        for key, value in self.default_params.items():
            if key in known:
                properties[key] = value
            else:
                logger.warning(
                    f"Node type '{self.name}' has a default for undeclared field '{key}'"
                )
        return properties

    def validate_properties(self, properties: Dict[str, Any]) -> List[str]:
        return validate_config(self.param_defs(), properties)


class NodeTypeCatalog:
    """Node types available to an editing session, keyed by id.

    Loaded once per session and treated as static reference data.
    """

    def __init__(self, node_types: Iterable[NodeType] = ()):
        self._types: Dict[int, NodeType] = {}
        for node_type in node_types:
            self._types[node_type.id] = node_type

    @classmethod
    def from_api(cls, descriptors: Iterable[Dict[str, Any]]) -> "NodeTypeCatalog":
        """Build a catalog, skipping descriptors that fail to parse."""
        node_types = []
        for descriptor in descriptors:
            try:
                node_types.append(NodeType.from_api(descriptor))
            except SchemaError as e:
                logger.warning(f"Skipping node type: {e}")
        return cls(node_types)

    def get(self, type_id: int) -> NodeType:
        """Get a node type by id.

        Raises:
            UnknownTypeError: If the id is not in the catalog
        """
        try:
            return self._types[type_id]
        except KeyError:
            raise UnknownTypeError("node", type_id) from None

    def find(self, type_id: int) -> Optional[NodeType]:
        return self._types.get(type_id)

    def by_category(self, category: Union[str, NodeCategory]) -> List[NodeType]:
        category = NodeCategory(category)
        return [t for t in self._types.values() if t.category == category]

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._types

    def __iter__(self) -> Iterator[NodeType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)
