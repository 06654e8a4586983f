#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Test suite for the journey action and delay parameter registries.

Tests cover:
- Exhaustiveness of the action and delay registries
- Default derivation rules (declared defaults, empty values, omission)
- Known scenarios for webhook and tag_update
- Unknown type tags
- Config validation against a schema
"""

import unittest

from dialplan_flows.exceptions import UnknownTypeError
from dialplan_flows.params import (
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
from dialplan_flows.types import ParamDefinition, ParamType


class TestRegistries(unittest.TestCase):
    """Test that every type tag resolves to an ordered schema."""

    def test_every_action_type_registered(self):
        """Test that each JourneyActionType has a schema."""
        for action_type in JourneyActionType:
            params = get_action_type_params(action_type)
            self.assertIsInstance(params, list)
            self.assertTrue(params, f"{action_type.value} has no parameters")
        self.assertEqual(set(ACTION_TYPE_PARAMS), set(JourneyActionType))

    def test_every_delay_type_registered(self):
        """Test that each DelayType has a (possibly empty) schema."""
        for delay_type in DelayType:
            self.assertIsInstance(get_delay_type_params(delay_type), list)
        self.assertEqual(set(DELAY_TYPE_PARAMS), set(DelayType))

    def test_string_tags_accepted(self):
        """Test that plain string tags resolve like enum members."""
        self.assertEqual(
            get_action_type_params("webhook"), get_action_type_params(JourneyActionType.WEBHOOK)
        )

    def test_param_ids_unique_per_type(self):
        """Test that no schema declares the same id twice."""
        for action_type, params in ACTION_TYPE_PARAMS.items():
            ids = [param.id for param in params]
            self.assertEqual(len(ids), len(set(ids)), action_type.value)
        for delay_type, params in DELAY_TYPE_PARAMS.items():
            ids = [param.id for param in params]
            self.assertEqual(len(ids), len(set(ids)), delay_type.value)

    def test_returned_list_is_a_copy(self):
        """Test that mutating a returned list leaves the registry intact."""
        params = get_action_type_params("sms")
        params.clear()
        self.assertTrue(get_action_type_params("sms"))

    def test_unknown_action_type(self):
        """Test that unregistered action tags raise UnknownTypeError."""
        with self.assertRaises(UnknownTypeError) as ctx:
            get_action_type_params("fax")
        self.assertEqual(ctx.exception.kind, "action")
        self.assertEqual(ctx.exception.tag, "fax")
        self.assertIn("fax", str(ctx.exception))

    def test_unknown_delay_type(self):
        """Test that unregistered delay tags raise UnknownTypeError."""
        with self.assertRaises(UnknownTypeError):
            get_default_delay_config_values("next_full_moon")

    def test_webhook_method_field(self):
        """Test the webhook method select and its default."""
        params = {param.id: param for param in get_action_type_params("webhook")}
        method = params["method"]
        self.assertEqual(method.type, ParamType.SELECT)
        self.assertEqual(list(method.options), ["GET", "POST", "PUT", "PATCH", "DELETE"])
        self.assertEqual(method.default, "POST")

    def test_call_display_order(self):
        """Test that call parameters start with the transfer fields."""
        ids = [param.id for param in get_action_type_params("call")]
        self.assertEqual(ids[:3], ["transferNumber", "transferGroupId", "scriptId"])
        self.assertEqual(ids[-1], "ivrOptions")

    def test_specific_days_schema(self):
        """Test that specific_days asks for a weekday and a time."""
        params = get_delay_type_params("specific_days")
        self.assertEqual([param.id for param in params], ["days", "time"])
        self.assertEqual(params[0].options[0], "monday")
        self.assertTrue(all(param.required for param in params))


class TestDefaultDerivation(unittest.TestCase):
    """Test derivation of initial config objects."""

    def test_tag_update_defaults(self):
        """Test the tag_update defaults exactly."""
        self.assertEqual(
            get_default_action_config_values("tag_update"),
            {
                "operation": "add",
                "tags": "",
                "recordNote": True,
                "noteText": "Tags updated by journey",
            },
        )

    def test_webhook_defaults(self):
        """Test the webhook defaults exactly."""
        self.assertEqual(
            get_default_action_config_values("webhook"),
            {
                "url": "",
                "method": "POST",
                "timeout": 10000,
                "retries": 3,
                "updateLeadData": False,
            },
        )

    def test_immediate_delay(self):
        """Test that the immediate delay has no parameters and no config."""
        self.assertEqual(get_delay_type_params("immediate"), [])
        self.assertEqual(get_default_delay_config_values("immediate"), {})

    def test_duration_delay_defaults(self):
        """Test that duration delays default every unit to zero."""
        expected = {"minutes": 0, "hours": 0, "days": 0}
        self.assertEqual(get_default_delay_config_values("delay_after_previous"), expected)
        self.assertEqual(get_default_delay_config_values("delay_after_enrollment"), expected)

    def test_defaults_keys_subset_of_param_ids(self):
        """Test that derived keys always come from the schema."""
        for action_type in JourneyActionType:
            ids = {param.id for param in get_action_type_params(action_type)}
            defaults = get_default_action_config_values(action_type)
            self.assertLessEqual(set(defaults), ids, action_type.value)

    def test_declared_defaults_copied_exactly(self):
        """Test that declared defaults are neither coerced nor dropped."""
        for action_type in JourneyActionType:
            defaults = get_default_action_config_values(action_type)
            for param in get_action_type_params(action_type):
                if param.has_default:
                    self.assertEqual(defaults[param.id], param.default)
                    self.assertIs(type(defaults[param.id]), type(param.default))

    def test_required_without_default_gets_empty_value(self):
        """Test the per-type empty values of required fields."""
        self.assertEqual(get_default_action_config_values("call")["transferNumber"], "")
        self.assertEqual(get_default_action_config_values("email")["templateId"], "")
        self.assertEqual(get_default_action_config_values("conditional_branch")["nextStepId"], 0)
        self.assertEqual(get_default_action_config_values("conditional_branch")["operator"], "=")
        self.assertEqual(
            get_default_action_config_values("wait_for_event")["eventType"], "inbound_call"
        )
        self.assertEqual(get_default_delay_config_values("specific_days"), {"days": "monday", "time": ""})

    def test_optional_without_default_omitted(self):
        """Test that optional fields without a default are left out."""
        defaults = get_default_action_config_values("call")
        self.assertNotIn("fallbackDID", defaults)
        self.assertNotIn("ivrOptions", defaults)
        self.assertNotIn("scriptId", defaults)

    def test_derivation_is_idempotent(self):
        """Test that deriving twice yields equal but independent objects."""
        for action_type in JourneyActionType:
            first = get_default_action_config_values(action_type)
            second = get_default_action_config_values(action_type)
            self.assertEqual(first, second)
            self.assertIsNot(first, second)

    def test_mutable_defaults_not_shared(self):
        """Test that a list default is copied into each derived object."""
        params = [ParamDefinition("menu", "Menu", ParamType.IVR_OPTIONS, default=[{"digit": "1"}])]
        first = derive_default_values(params)
        first["menu"].append({"digit": "2"})
        self.assertEqual(derive_default_values(params), {"menu": [{"digit": "1"}]})

    def test_boolean_required_empty_value(self):
        """Test that a required boolean without default derives False."""
        params = [ParamDefinition("confirm", "Confirm", ParamType.BOOLEAN, required=True)]
        self.assertEqual(derive_default_values(params), {"confirm": False})


class TestValidateConfig(unittest.TestCase):
    """Test validation of config objects against their schema."""

    def test_defaults_with_required_values_filled(self):
        """Test that a completed webhook config is valid."""
        config = get_default_action_config_values("webhook")
        config["url"] = "https://hooks.example.com/lead"
        self.assertEqual(validate_config(get_action_type_params("webhook"), config), [])

    def test_required_empty_string_rejected(self):
        """Test that seeded empty strings still count as missing."""
        config = get_default_action_config_values("webhook")
        errors = validate_config(get_action_type_params("webhook"), config)
        self.assertEqual(errors, ["'url' is required"])

    def test_unknown_field_reported(self):
        """Test that keys outside the schema are reported."""
        config = get_default_delay_config_values("fixed_time")
        config.update({"time": "09:30", "timezone": "UTC"})
        errors = validate_config(get_delay_type_params("fixed_time"), config)
        self.assertEqual(errors, ["Unknown field 'timezone'"])

    def test_type_errors(self):
        """Test the per-type value checks."""
        config = get_default_action_config_values("webhook")
        config.update({"url": "https://x", "method": "TRACE", "retries": True, "updateLeadData": "no"})
        errors = validate_config(get_action_type_params("webhook"), config)
        self.assertIn("'method' must be one of ['GET', 'POST', 'PUT', 'PATCH', 'DELETE']", errors)
        self.assertIn("'retries' must be a number", errors)
        self.assertIn("'updateLeadData' must be a boolean", errors)
        self.assertEqual(len(errors), 3)

    def test_reference_ids_may_be_integers(self):
        """Test that template ids returned as ints are accepted."""
        config = get_default_action_config_values("email")
        config.update({"subject": "Welcome", "templateId": 42})
        self.assertEqual(validate_config(get_action_type_params("email"), config), [])

    def test_ivr_options_must_be_list(self):
        """Test that IVR option tables are lists."""
        config = get_default_action_config_values("call")
        config.update({"transferNumber": "+15550100", "ivrOptions": "1=sales"})
        errors = validate_config(get_action_type_params("call"), config)
        self.assertEqual(errors, ["'ivrOptions' must be a list of menu options"])


if __name__ == "__main__":
    unittest.main()
