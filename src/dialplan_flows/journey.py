#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Journey step configuration.

A lead-nurturing journey is a sequence of steps. Each step pairs an action
(call, sms, webhook, ...) with a delay, and both carry a config object whose
keys and types are fully determined by the parameter registry.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models import Position
from .params import (
    DelayType,
    JourneyActionType,
    as_action_type,
    as_delay_type,
    get_action_type_params,
    get_default_action_config_values,
    get_default_delay_config_values,
    get_delay_type_params,
    validate_config,
)
from .types import ParamDefinition


@dataclass
class JourneyAction:
    """Action performed by a journey step.

    Attributes:
        type: Action type
        config: Values chosen against get_action_type_params(type)
    """

    type: JourneyActionType
    config: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.type = as_action_type(self.type)

    @classmethod
    def create(cls, action_type, **overrides: Any) -> "JourneyAction":
        """Create an action seeded with its default config.

        Args:
            action_type: Action type tag or enum member
            **overrides: Field values replacing the defaults

        Raises:
            UnknownTypeError: If the action type is not registered
        """
        config = get_default_action_config_values(action_type)
        config.update(overrides)
        return cls(type=as_action_type(action_type), config=config)

    @property
    def param_defs(self) -> List[ParamDefinition]:
        return get_action_type_params(self.type)

    def validate(self) -> List[str]:
        return validate_config(self.param_defs, self.config)

    def is_valid(self) -> bool:
        return not self.validate()

    def change_type(self, action_type) -> None:
        """Switch to another action type, replacing the config with its defaults."""
        self.type = as_action_type(action_type)
        self.config = get_default_action_config_values(self.type)


@dataclass
class DelayConfig:
    """Delay applied before a journey step runs."""

    type: DelayType
    config: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.type = as_delay_type(self.type)

    @classmethod
    def create(cls, delay_type, **overrides: Any) -> "DelayConfig":
        config = get_default_delay_config_values(delay_type)
        config.update(overrides)
        return cls(type=as_delay_type(delay_type), config=config)

    @property
    def param_defs(self) -> List[ParamDefinition]:
        return get_delay_type_params(self.type)

    def validate(self) -> List[str]:
        return validate_config(self.param_defs, self.config)

    def is_valid(self) -> bool:
        return not self.validate()

    def change_type(self, delay_type) -> None:
        self.type = as_delay_type(delay_type)
        self.config = get_default_delay_config_values(self.type)


@dataclass
class JourneyStep:
    """One step of a journey as stored by the backend.

    Example:
        {
            "id": 12,
            "name": "Intro call",
            "actionType": "call",
            "actionConfig": {"transferNumber": "+15550100", "maxAttempts": 3},
            "delayType": "delay_after_previous",
            "delayConfig": {"minutes": 0, "hours": 2, "days": 0},
            "position": {"x": 250, "y": 100}
        }
    """

    name: str
    action: JourneyAction
    delay: DelayConfig = field(default_factory=lambda: DelayConfig.create(DelayType.IMMEDIATE))
    id: Optional[int] = None
    position: Position = field(default_factory=Position)

    def validate(self) -> List[str]:
        errors = [f"action: {error}" for error in self.action.validate()]
        errors.extend(f"delay: {error}" for error in self.delay.validate())
        return errors

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JourneyStep":
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            action=JourneyAction(
                type=data["actionType"], config=copy.deepcopy(data.get("actionConfig") or {})
            ),
            delay=DelayConfig(
                type=data.get("delayType", DelayType.IMMEDIATE.value),
                config=copy.deepcopy(data.get("delayConfig") or {}),
            ),
            position=Position.model_validate(data.get("position") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "actionType": self.action.type.value,
            "actionConfig": copy.deepcopy(self.action.config),
            "delayType": self.delay.type.value,
            "delayConfig": copy.deepcopy(self.delay.config),
            "position": self.position.model_dump(),
        }
        if self.id is not None:
            result["id"] = self.id
        return result
