import unittest

from fastapi.testclient import TestClient

from backend.main import app


class TestParamRoutes(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def test_root(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["service"], "Dialplan Flows")
        self.assertIn("POST /api/node-types/properties", body["routes"])
        self.assertIn("GET /api/action-types/{action_type}/params", body["routes"])
        self.assertIn("POST /api/validate", body["routes"])

    def test_list_action_types(self):
        response = self.client.get("/api/action-types")
        self.assertEqual(response.status_code, 200)
        types = response.json()
        self.assertEqual(len(types), 12)
        self.assertIn({"type": "status_change", "label": "Status Change"}, types)

    def test_action_type_params(self):
        response = self.client.get("/api/action-types/webhook/params")
        self.assertEqual(response.status_code, 200)
        method = next(p for p in response.json() if p["id"] == "method")
        self.assertEqual(method["type"], "select")
        self.assertEqual(method["options"], ["GET", "POST", "PUT", "PATCH", "DELETE"])
        self.assertEqual(method["default"], "POST")

    def test_template_type_rendered(self):
        response = self.client.get("/api/action-types/sms/params")
        template = next(p for p in response.json() if p["id"] == "templateId")
        self.assertEqual(template["templateType"], "sms")
        self.assertNotIn("default", template)

    def test_action_type_defaults(self):
        response = self.client.get("/api/action-types/tag_update/defaults")
        self.assertEqual(
            response.json(),
            {
                "operation": "add",
                "tags": "",
                "recordNote": True,
                "noteText": "Tags updated by journey",
            },
        )

    def test_unknown_action_type(self):
        self.assertEqual(self.client.get("/api/action-types/fax/params").status_code, 404)
        self.assertEqual(self.client.get("/api/action-types/fax/defaults").status_code, 404)

    def test_delay_types(self):
        self.assertEqual(len(self.client.get("/api/delay-types").json()), 5)
        self.assertEqual(self.client.get("/api/delay-types/immediate/params").json(), [])
        self.assertEqual(self.client.get("/api/delay-types/immediate/defaults").json(), {})
        response = self.client.get("/api/delay-types/delay_after_enrollment/defaults")
        self.assertEqual(response.json(), {"minutes": 0, "hours": 0, "days": 0})
        self.assertEqual(self.client.get("/api/delay-types/someday/params").status_code, 404)


class TestNodeTypeRoutes(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def test_properties_descriptor(self):
        descriptor = {
            "id": 3,
            "name": "Queue",
            "category": "application",
            "properties": {
                "queueName": {"type": "string", "required": True},
                "timeout": {"type": "integer", "default": 0},
            },
        }
        response = self.client.post("/api/node-types/properties", json=descriptor)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["properties"], {"queueName": "", "timeout": 0})
        self.assertEqual([p["type"] for p in body["paramDefs"]], ["string", "number"])

    def test_schemaless_descriptor(self):
        response = self.client.post(
            "/api/node-types/properties",
            json={"id": 6, "name": "Playback", "category": "application"},
        )
        self.assertEqual(
            response.json()["properties"], {"filename": "", "skip": False, "priority": 1}
        )

    def test_both_shapes_rejected(self):
        descriptor = {
            "id": 3,
            "name": "Queue",
            "category": "application",
            "paramDefs": [{"id": "queueName", "type": "string"}],
            "properties": {"queueName": {"type": "string"}},
        }
        response = self.client.post("/api/node-types/properties", json=descriptor)
        self.assertEqual(response.status_code, 400)

    def test_malformed_descriptor(self):
        response = self.client.post("/api/node-types/properties", json={"name": "No id"})
        self.assertEqual(response.status_code, 400)

    def test_enum_default_outside_options(self):
        descriptor = {
            "id": 3,
            "name": "Queue",
            "category": "application",
            "properties": {
                "strategy": {"type": "string", "enum": ["ringall"], "default": "random"},
            },
        }
        response = self.client.post("/api/node-types/properties", json=descriptor)
        self.assertEqual(response.status_code, 400)
        self.assertIn("strategy", response.json()["detail"])


class TestValidationRoutes(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)
        self.graph = {
            "contextId": 10,
            "contextName": "from-external",
            "nodeTypes": [
                {"id": 1, "name": "Extension", "category": "extension"},
                {"id": 4, "name": "Hangup", "category": "terminal"},
            ],
            "nodes": [
                {
                    "id": 1,
                    "contextId": 10,
                    "nodeTypeId": 1,
                    "name": "start",
                    "properties": {"exten": "100", "matchPattern": "exact", "priority": 1},
                },
                {
                    "id": 2,
                    "contextId": 10,
                    "nodeTypeId": 4,
                    "name": "bye",
                    "properties": {"cause": "normal", "priority": 1},
                },
            ],
            "connections": [{"id": 100, "sourceNodeId": 1, "targetNodeId": 2}],
        }

    def test_valid_graph(self):
        response = self.client.post("/api/validate", json=self.graph)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["valid"])
        self.assertEqual(body["errors"], [])

    def test_invalid_graph(self):
        self.graph["nodes"][0]["properties"]["exten"] = ""
        self.graph["connections"] = []
        body = self.client.post("/api/validate", json=self.graph).json()
        self.assertFalse(body["valid"])
        self.assertEqual(body["errors"][0]["message"], "'exten' is required")
        self.assertEqual(body["errors"][0]["nodeId"], 1)
        self.assertEqual(body["warnings"][0]["message"], "Node is unreachable")

    def test_node_from_other_context(self):
        self.graph["nodes"][1]["contextId"] = 11
        response = self.client.post("/api/validate", json=self.graph)
        self.assertEqual(response.status_code, 400)

    def test_validate_step(self):
        step = {
            "name": "Intro call",
            "actionType": "call",
            "actionConfig": {"transferNumber": "+15550100"},
            "delayType": "fixed_time",
            "delayConfig": {"time": "09:30"},
        }
        response = self.client.post("/api/journey/validate-step", json=step)
        self.assertEqual(response.json(), {"valid": True, "errors": []})

    def test_validate_step_errors(self):
        step = {"name": "", "actionType": "email", "actionConfig": {"subject": "Hi"}}
        body = self.client.post("/api/journey/validate-step", json=step).json()
        self.assertFalse(body["valid"])
        self.assertEqual(
            body["errors"], ["Step name must not be empty", "action: 'templateId' is required"]
        )

    def test_validate_step_unknown_type(self):
        step = {"name": "Fax", "actionType": "fax"}
        response = self.client.post("/api/journey/validate-step", json=step)
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
