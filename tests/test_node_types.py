#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Test suite for node types and their property schemas.

Tests cover:
- Parsing of paramDefs and properties descriptors
- Rejection of descriptors declaring both shapes
- Built-in fallback schemas per category
- Property derivation on node type change
- The node type catalog
"""

import unittest

from dialplan_flows.exceptions import SchemaError, UnknownTypeError
from dialplan_flows.node_types import (
    NodeCategory,
    NodeType,
    NodeTypeCatalog,
    ParamDefSchema,
    PropertiesSchema,
    default_param_defs,
)
from dialplan_flows.types import ParamType
from tests.test_helpers import DIAL_TYPE, EXTENSION_TYPE, HANGUP_TYPE, NODE_TYPES, QUEUE_TYPE


class TestNodeTypeParsing(unittest.TestCase):
    def test_param_defs_descriptor(self):
        """Test that a paramDefs descriptor yields a ParamDefSchema."""
        node_type = NodeType.from_api(DIAL_TYPE)
        self.assertIsInstance(node_type.schema, ParamDefSchema)
        self.assertIs(node_type.category, NodeCategory.APPLICATION)
        self.assertEqual(
            [param.id for param in node_type.param_defs()], ["destination", "timeout", "recordCall"]
        )

    def test_properties_descriptor(self):
        """Test that a properties descriptor maps JSON schema types."""
        node_type = NodeType.from_api(QUEUE_TYPE)
        self.assertIsInstance(node_type.schema, PropertiesSchema)
        params = {param.id: param for param in node_type.param_defs()}
        self.assertIs(params["queueName"].type, ParamType.STRING)
        self.assertEqual(params["queueName"].name, "Queue Name")
        self.assertTrue(params["queueName"].required)
        self.assertIs(params["timeout"].type, ParamType.NUMBER)
        self.assertIs(params["strategy"].type, ParamType.SELECT)
        self.assertEqual(params["strategy"].options, ("ringall", "leastrecent"))

    def test_both_shapes_rejected(self):
        """Test that paramDefs and properties are mutually exclusive."""
        descriptor = dict(DIAL_TYPE, properties=QUEUE_TYPE["properties"])
        with self.assertRaises(SchemaError):
            NodeType.from_api(descriptor)

    def test_missing_id_rejected(self):
        with self.assertRaises(SchemaError):
            NodeType.from_api({"name": "Dial", "category": "application"})

    def test_unknown_category_rejected(self):
        with self.assertRaises(SchemaError):
            NodeType.from_api({"id": 9, "name": "Fax", "category": "fax"})

    def test_category_case_insensitive(self):
        node_type = NodeType.from_api({"id": 9, "name": "Start", "category": "Extension"})
        self.assertIs(node_type.category, NodeCategory.EXTENSION)

    def test_schemaless_descriptor_uses_fallback(self):
        """Test that a type without schema gets its category's built-in fields."""
        node_type = NodeType.from_api(HANGUP_TYPE)
        self.assertEqual(node_type.derive_properties(), {"cause": "normal", "priority": 1})


class TestDefaultParamDefs(unittest.TestCase):
    def test_extension(self):
        ids = [param.id for param in default_param_defs("Start", "extension")]
        self.assertEqual(ids, ["exten", "matchPattern", "priority"])

    def test_application_keywords(self):
        dial = [param.id for param in default_param_defs("Dial Trunk", "application")]
        self.assertEqual(dial[:2], ["technology", "destination"])
        playback = [param.id for param in default_param_defs("Playback", "application")]
        self.assertIn("filename", playback)
        queue = [param.id for param in default_param_defs("Queue", "application")]
        self.assertIn("queueName", queue)
        other = [param.id for param in default_param_defs("MixMonitor", "application")]
        self.assertEqual(other, ["app", "args", "priority"])

    def test_dial_technology_definition(self):
        technology = default_param_defs("Dial", "application")[0]
        self.assertIs(technology.type, ParamType.SELECT)
        self.assertTrue(technology.required)
        self.assertEqual(technology.default, "SIP")
        self.assertEqual(technology.options, ("SIP", "PJSIP", "IAX2", "DAHDI", "Local"))
        self.assertEqual(technology.description, "The technology to use for dialing")

    def test_terminal_action_is_required(self):
        action = default_param_defs("Busy", "terminal")[0]
        self.assertEqual((action.id, action.required, action.default), ("action", True, "Hangup"))

    def test_goto_priority_is_a_string(self):
        """Test that goto's destination priority shadows the common one."""
        params = default_param_defs("Goto", "flowcontrol")
        priorities = [param for param in params if param.id == "priority"]
        self.assertEqual(len(priorities), 1)
        self.assertIs(priorities[0].type, ParamType.STRING)
        self.assertEqual(priorities[0].default, "1")

    def test_condition(self):
        ids = [param.id for param in default_param_defs("GotoIf condition", "flowcontrol")]
        # "goto" wins over "if"
        self.assertEqual(ids, ["context", "exten", "priority"])
        ids = [param.id for param in default_param_defs("If", "flowcontrol")]
        self.assertEqual(ids, ["expression", "priority"])

    def test_unknown_category(self):
        ids = [param.id for param in default_param_defs("Custom", "plugin")]
        self.assertEqual(ids, ["custom", "enabled", "priority"])


class TestDeriveProperties(unittest.TestCase):
    def test_param_defs_defaults(self):
        node_type = NodeType.from_api(DIAL_TYPE)
        self.assertEqual(node_type.derive_properties(), {"destination": "", "timeout": 30})

    def test_default_params_overlay(self):
        node_type = NodeType.from_api(QUEUE_TYPE)
        self.assertEqual(
            node_type.derive_properties(),
            {"queueName": "", "timeout": 0, "strategy": "leastrecent"},
        )

    def test_undeclared_default_params_ignored(self):
        node_type = NodeType.from_api(QUEUE_TYPE)
        self.assertNotIn("announce", node_type.derive_properties())

    def test_derived_properties_pass_validation(self):
        """Test that derived properties only lack the required values the user must fill."""
        for descriptor in NODE_TYPES:
            node_type = NodeType.from_api(descriptor)
            errors = node_type.validate_properties(node_type.derive_properties())
            self.assertEqual([e for e in errors if not e.endswith("is required")], [])
        queue = NodeType.from_api(QUEUE_TYPE)
        self.assertEqual(
            queue.validate_properties(queue.derive_properties()), ["'queueName' is required"]
        )

    def test_type_change_replaces_keys(self):
        """Test that retyping from paramDefs to properties keeps no old keys."""
        old_type = NodeType.from_api(DIAL_TYPE)
        new_type = NodeType.from_api(QUEUE_TYPE)
        old_properties = old_type.derive_properties()
        old_properties["destination"] = "SIP/1001"

        new_properties = new_type.derive_properties()

        new_keys = {param.id for param in new_type.param_defs()}
        self.assertLessEqual(set(new_properties), new_keys)
        self.assertNotIn("destination", new_properties)
        # Shared key takes the new type's default, not the old value
        self.assertEqual(new_properties["timeout"], 0)

    def test_validate_properties(self):
        node_type = NodeType.from_api(EXTENSION_TYPE)
        self.assertEqual(node_type.validate_properties(node_type.derive_properties()), [])
        self.assertEqual(
            node_type.validate_properties({"exten": "", "matchPattern": "glob"}),
            ["'exten' is required", "'matchPattern' must be one of ['exact', 'pattern', 'regex']"],
        )


class TestNodeTypeCatalog(unittest.TestCase):
    def setUp(self):
        self.catalog = NodeTypeCatalog.from_api(NODE_TYPES)

    def test_lookup(self):
        self.assertEqual(len(self.catalog), 4)
        self.assertIn(2, self.catalog)
        self.assertEqual(self.catalog.get(2).name, "Dial")
        self.assertIsNone(self.catalog.find(99))

    def test_unknown_id(self):
        with self.assertRaises(UnknownTypeError):
            self.catalog.get(99)

    def test_invalid_descriptors_skipped(self):
        catalog = NodeTypeCatalog.from_api(
            [DIAL_TYPE, {"id": 5, "name": "Bad", "category": "nope"}, {"name": "No id"}]
        )
        self.assertEqual([t.id for t in catalog], [2])

    def test_enum_without_its_default_skipped(self):
        properties = {"strategy": {"type": "string", "enum": ["ringall"], "default": "random"}}
        descriptor = {"id": 6, "name": "Bad Queue", "category": "application", "properties": properties}
        with self.assertRaises(SchemaError):
            NodeType.from_api(descriptor)
        catalog = NodeTypeCatalog.from_api([DIAL_TYPE, descriptor])
        self.assertEqual([t.id for t in catalog], [2])

    def test_by_category(self):
        names = [t.name for t in self.catalog.by_category("application")]
        self.assertEqual(names, ["Dial", "Queue"])


if __name__ == "__main__":
    unittest.main()
