#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Parameter schema types shared by node properties, journey actions and delays.

This module defines the building blocks of every dynamic form in the editor:
- ParamType: The kinds of field a form can render
- TemplateType: Which template catalog a template reference points at
- ParamDefinition: One typed, possibly required, field with an optional default

Definitions are constructed statically and never persisted; only the values
chosen against them are.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .exceptions import SchemaError


class ParamType(str, Enum):
    """Field types understood by the form builder."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    TEMPLATE_SELECT = "template_select"
    TRANSFER_GROUP_SELECT = "transfer_group_select"
    RECORDING_SELECT = "recording_select"
    IVR_OPTIONS = "ivr_options"


class TemplateType(str, Enum):
    """Template catalogs a template_select field can reference."""

    SMS = "sms"
    EMAIL = "email"
    SCRIPT = "script"
    VOICEMAIL = "voicemail"
    TRANSFER = "transfer"


# Reference fields hold the id of another record, entered as a string
REFERENCE_TYPES = frozenset(
    {
        ParamType.TEMPLATE_SELECT,
        ParamType.TRANSFER_GROUP_SELECT,
        ParamType.RECORDING_SELECT,
    }
)


class _NoDefault:
    """Sentinel for "no default declared", distinct from a default of None."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


NO_DEFAULT: Any = _NoDefault()


@dataclass(frozen=True)
class ParamDefinition:
    """Schema for a single configuration field.

    Attributes:
        id: Key of the value in the persisted config/properties object
        name: Human readable label
        type: Field type
        required: Whether the value must be present
        default: Declared default, or NO_DEFAULT
        options: Allowed values for select fields
        template_type: Template catalog for template_select fields
        description: Help text shown under the field

    Raises:
        SchemaError: If a select default is not one of its options
    """

    id: str
    name: str
    type: ParamType
    required: bool = False
    default: Any = NO_DEFAULT
    options: Optional[Tuple[str, ...]] = None
    template_type: Optional[TemplateType] = None
    description: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        """Validate the definition."""
        if not self.id:
            raise SchemaError("Parameter definition requires an id")
        try:
            object.__setattr__(self, "type", ParamType(self.type))
        except ValueError as e:
            raise SchemaError(f"Parameter '{self.id}' has unknown type {self.type!r}") from e

        if self.options is not None:
            if self.type != ParamType.SELECT:
                raise SchemaError(f"Parameter '{self.id}' declares options but is not a select")
            object.__setattr__(self, "options", tuple(self.options))

        if (
            self.type == ParamType.SELECT
            and self.options
            and self.has_default
            and self.default not in self.options
        ):
            raise SchemaError(
                f"Default {self.default!r} of parameter '{self.id}' is not one of {list(self.options)}"
            )

        if self.template_type is not None:
            if self.type != ParamType.TEMPLATE_SELECT:
                raise SchemaError(
                    f"Parameter '{self.id}' declares a template type but is not a template_select"
                )
            try:
                object.__setattr__(self, "template_type", TemplateType(self.template_type))
            except ValueError as e:
                raise SchemaError(
                    f"Parameter '{self.id}' has unknown template type {self.template_type!r}"
                ) from e

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    def default_value(self) -> Any:
        """Return a private copy of the declared default."""
        return copy.deepcopy(self.default)

    def empty_value(self) -> Any:
        """Return the type-appropriate empty value used for required fields.

        Returns:
            '' for strings and reference fields, 0 for numbers, False for
            booleans, the first option for selects (None if there are none)
            and an empty list for IVR option tables.
        """
        if self.type == ParamType.STRING or self.type in REFERENCE_TYPES:
            return ""
        if self.type == ParamType.NUMBER:
            return 0
        if self.type == ParamType.BOOLEAN:
            return False
        if self.type == ParamType.SELECT:
            return self.options[0] if self.options else None
        if self.type == ParamType.IVR_OPTIONS:
            return []
        raise SchemaError(f"No empty value for parameter type {self.type!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Render the definition in the camelCase shape the editor UI expects."""
        result: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "required": self.required,
        }
        if self.has_default:
            result["default"] = self.default_value()
        if self.options is not None:
            result["options"] = list(self.options)
        if self.template_type is not None:
            result["templateType"] = self.template_type.value
        if self.description is not None:
            result["description"] = self.description
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParamDefinition":
        """Build a definition from a backend paramDefs entry.

        Raises:
            SchemaError: If required keys are missing or the entry is invalid
        """
        if not isinstance(data, dict):
            raise SchemaError(f"Parameter definition must be an object, got {type(data).__name__}")
        try:
            param_id = data["id"]
            param_type = data["type"]
        except KeyError as e:
            raise SchemaError(f"Parameter definition missing {e.args[0]!r}: {data}") from e

        options = data.get("options")
        return cls(
            id=param_id,
            name=data.get("name", param_id),
            type=param_type,
            required=bool(data.get("required", False)),
            default=data["default"] if "default" in data else NO_DEFAULT,
            options=tuple(options) if options is not None else None,
            template_type=data.get("templateType"),
            description=data.get("description"),
        )
