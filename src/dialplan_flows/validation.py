#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Pre-flight validation of a dial-plan context.

The backend's validateProject remains the authority; these checks catch the
obvious mistakes before a round trip and report them as ValidationIssues.
"""

from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .graph import DialplanGraph
from .models import DialplanNode, ValidationIssue, ValidationResult
from .node_types import NodeCategory, NodeTypeCatalog


class GraphValidator:
    def __init__(
        self,
        graph: DialplanGraph,
        catalog: NodeTypeCatalog,
        context_name: Optional[str] = None,
    ):
        self.graph = graph
        self.catalog = catalog
        self.context_name = context_name
        self.issues: List[ValidationIssue] = []

    def validate(self) -> List[ValidationIssue]:
        """Run all validation checks and return the issues found"""
        self.issues = []

        self._validate_entry_nodes()
        self._validate_node_properties()
        self._validate_connections()
        self._validate_reachability()

        return self.issues

    def _node_issue(self, node: DialplanNode, message: str, severity: str = "error") -> None:
        self.issues.append(
            ValidationIssue(
                level="node",
                node_id=node.id,
                node_name=node.name,
                context_id=self.graph.context_id,
                context_name=self.context_name,
                message=message,
                severity=severity,
            )
        )

    def _validate_entry_nodes(self):
        """Ensure a non-empty context can be entered"""
        if self.graph.nodes and not self.graph.entry_nodes(self.catalog):
            self.issues.append(
                ValidationIssue(
                    level="context",
                    context_id=self.graph.context_id,
                    context_name=self.context_name,
                    message="Context has no extension node to enter it",
                )
            )

    def _validate_node_properties(self):
        """Ensure each node's properties satisfy its node type's schema"""
        for node in self.graph.nodes.values():
            node_type = self.catalog.find(node.node_type_id)
            if node_type is None:
                self._node_issue(node, f"Unknown node type {node.node_type_id}")
                continue
            for error in node_type.validate_properties(node.properties):
                # Leftover keys are harmless to the generator
                severity = "warning" if error.startswith("Unknown field") else "error"
                self._node_issue(node, error, severity)

    def _validate_connections(self):
        """Flag dangling edges, self loops, edges out of terminals and ambiguous priorities"""
        priorities: Dict[int, Dict[int, List[int]]] = defaultdict(lambda: defaultdict(list))

        for connection in self.graph.dropped:
            self.issues.append(
                ValidationIssue(
                    level="connection",
                    connection_id=connection.id,
                    context_id=self.graph.context_id,
                    message=(
                        f"Connection {connection.source_node_id} -> {connection.target_node_id} "
                        "references a node outside this context"
                    ),
                )
            )

        for connection in self.graph.connections.values():
            if connection.source_node_id == connection.target_node_id:
                self.issues.append(
                    ValidationIssue(
                        level="connection",
                        connection_id=connection.id,
                        context_id=self.graph.context_id,
                        message=f"Node {connection.source_node_id} connects to itself",
                        severity="warning",
                    )
                )
            priorities[connection.source_node_id][connection.priority].append(connection.id)

        for node_id, by_priority in priorities.items():
            node = self.graph.nodes[node_id]
            node_type = self.catalog.find(node.node_type_id)
            if node_type is not None and node_type.category == NodeCategory.TERMINAL:
                self._node_issue(node, "Terminal node has outgoing connections", "warning")
            for priority, connection_ids in sorted(by_priority.items()):
                if len(connection_ids) > 1:
                    self._node_issue(
                        node,
                        f"Connections {sorted(connection_ids)} share priority {priority}",
                        "warning",
                    )

    def _validate_reachability(self):
        """Flag nodes that no entry node leads to"""
        entries = self.graph.entry_nodes(self.catalog)
        if not entries:
            return
        reachable = self.graph.reachable_from(node.id for node in entries)
        for node_id in sorted(set(self.graph.nodes) - reachable):
            self._node_issue(self.graph.nodes[node_id], "Node is unreachable", "warning")


def validate_graph(
    graph: DialplanGraph, catalog: NodeTypeCatalog, context_name: Optional[str] = None
) -> ValidationResult:
    """Convenience function to validate a context graph"""
    issues = GraphValidator(graph, catalog, context_name).validate()
    errors = [issue for issue in issues if issue.severity == "error"]
    warnings = [issue for issue in issues if issue.severity == "warning"]
    return ValidationResult(
        valid=not errors,
        errors=errors,
        warnings=warnings,
        timestamp=datetime.now(timezone.utc),
    )
