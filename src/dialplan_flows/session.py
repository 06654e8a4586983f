#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Editing session for a dial-plan project.

This module provides the DialplanEditorSession class which keeps the local
view of a project in step with the backend. It supports:
- Loading a project, its contexts and the node type catalog
- Switching the active context
- Node and connection create/update/delete with cascade in local state
- Node type changes with property re-derivation
- Server-side validation, generation and deployment
- A read-only mode when the backend lacks the generator capability

Every mutation is one API call. Local state changes only after the call
succeeds, so a failure leaves the session exactly as it was. Each outcome is
reported through the session's Notifier.
"""

import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from .client import DialplanClient
from .exceptions import DialplanError, GraphError, ReadOnlyError
from .graph import DialplanGraph
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
    ValidationResult,
)
from .node_types import NodeType, NodeTypeCatalog
from .notifications import LoggingNotifier, Notifier
from .validation import validate_graph


class NodeUpdateState(Enum):
    """Per-node state of a node type change."""

    IDLE = "idle"
    UPDATING = "updating"


class DialplanEditorSession:
    """Keeps the local graph of a project synchronized with the backend.

    Attributes:
        client: Backend facade
        notifier: Receiver of success/warning/error notifications
        project: Loaded project, if any
        contexts: Contexts of the project in backend order
        active_context_id: Context whose graph is loaded
        catalog: Node types available in this session
        capabilities: Backend capability descriptor
        graph: Nodes and connections of the active context
        read_only: Whether mutations are refused
    """

    def __init__(self, client: DialplanClient, notifier: Optional[Notifier] = None):
        self.client = client
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.project: Optional[DialplanProject] = None
        self.contexts: List[DialplanContext] = []
        self.active_context_id: Optional[int] = None
        self.catalog = NodeTypeCatalog()
        self.capabilities: Optional[DialplanCapabilities] = None
        self.graph: Optional[DialplanGraph] = None
        self.read_only = False
        self._node_states: Dict[int, NodeUpdateState] = {}

    # Loading

    async def check_capabilities(self) -> Optional[DialplanCapabilities]:
        """Fetch the capability descriptor and degrade to read-only without a generator."""
        try:
            capabilities = await self.client.check_dialplan_capabilities()
        except DialplanError as e:
            logger.error(f"Error checking dial plan capabilities: {e}")
            self.notifier.error("Failed to check dial plan capabilities")
            return None

        self.capabilities = capabilities
        if not capabilities.has_generator:
            self.read_only = True
            message = "The dial plan builder has limited capabilities; editing is disabled"
            if capabilities.message:
                message = f"{message} ({capabilities.message})"
            self.notifier.warning(message)
        else:
            self.read_only = False

        # The descriptor doubles as a catalog when it carries one
        node_types = capabilities.capabilities.node_types if capabilities.capabilities else None
        if isinstance(node_types, list) and not len(self.catalog):
            self.catalog = NodeTypeCatalog.from_api(node_types)
        return capabilities

    async def load_project(self, project_id: int) -> bool:
        """Load a project, its contexts and the node type catalog.

        The first context becomes active and its graph is loaded.

        Returns:
            True if the project loaded
        """
        try:
            project = await self.client.get_project_details(project_id)
            contexts = await self.client.get_contexts_for_project(project_id)
            descriptors = await self.client.get_node_types()
        except DialplanError as e:
            logger.error(f"Error loading project {project_id}: {e}")
            self.notifier.error("Failed to load project data")
            return False

        self.project = project
        self.contexts = contexts
        self.catalog = NodeTypeCatalog.from_api(descriptors)
        logger.info(
            f"Loaded project '{project.name}' with {len(contexts)} contexts "
            f"and {len(self.catalog)} node types"
        )

        if contexts:
            await self.set_active_context(contexts[0].id)
        else:
            self.active_context_id = None
            self.graph = None
        return True

    async def set_active_context(self, context_id: int) -> None:
        self.active_context_id = context_id
        await self.load_context(context_id)

    async def load_context(self, context_id: int) -> DialplanGraph:
        """Fetch the nodes and connections of a context into a fresh graph.

        List fetch failures yield an empty list instead of failing the view.
        """
        try:
            nodes = await self.client.get_nodes_for_context(context_id)
        except DialplanError as e:
            logger.error(f"Error loading nodes of context {context_id}: {e}")
            self.notifier.error("Failed to load context data")
            nodes = []

        try:
            connections = await self.client.get_connections_for_context(context_id)
        except DialplanError as e:
            logger.warning(f"Error fetching connections of context {context_id}: {e}")
            connections = []

        graph = DialplanGraph(context_id)
        graph.load(nodes, connections)
        self.graph = graph
        self._node_states.clear()
        return graph

    # Guards

    def _require_graph(self) -> DialplanGraph:
        if self.graph is None:
            raise GraphError("No active context")
        return self.graph

    def _require_writable(self) -> None:
        if self.read_only:
            raise ReadOnlyError("Dial plan editing is disabled: generator capability missing")

    def _refuse(self, error: DialplanError, message: str) -> None:
        logger.warning(f"{message}: {error}")
        self.notifier.error(message)

    # Contexts

    async def create_context(
        self, name: str, description: str = "", position: Optional[Position] = None
    ) -> Optional[DialplanContext]:
        """Create a context in the loaded project and make it active."""
        if self.project is None:
            self.notifier.error("No project loaded")
            return None
        try:
            self._require_writable()
            context = await self.client.create_context(
                self.project.id, name, description, position
            )
        except DialplanError as e:
            self._refuse(e, "Failed to create context")
            return None

        self.contexts.append(context)
        self.notifier.success("Context created successfully")
        await self.set_active_context(context.id)
        return context

    # Nodes

    def node_type_of(self, node: DialplanNode) -> Optional[NodeType]:
        return self.catalog.find(node.node_type_id)

    async def create_node(
        self,
        node_type_id: int,
        position: Union[Position, Dict[str, float]],
        name: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> Optional[DialplanNode]:
        """Create a node of the given type in the active context.

        Properties default to the node type's derived defaults; the name
        defaults to the node type name.
        """
        try:
            self._require_writable()
            graph = self._require_graph()
            node_type = self.catalog.get(node_type_id)
            node = await self.client.create_node(
                graph.context_id,
                node_type_id=node_type.id,
                name=name or node_type.name,
                position=position,
                properties=properties if properties is not None else node_type.derive_properties(),
            )
            graph.add_node(node)
        except DialplanError as e:
            self._refuse(e, "Failed to create node")
            return None

        self.notifier.success("Node created successfully")
        return node

    async def update_node(
        self,
        node_id: int,
        *,
        name: Optional[str] = None,
        label: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
        position: Optional[Position] = None,
    ) -> Optional[DialplanNode]:
        try:
            self._require_writable()
            graph = self._require_graph()
            graph.get_node(node_id)
            node = await self.client.update_node(
                node_id, name=name, label=label, properties=properties, position=position
            )
            graph.replace_node(node)
        except DialplanError as e:
            self._refuse(e, "Failed to update node")
            return None

        self.notifier.success("Node updated successfully")
        return node

    async def move_node(self, node_id: int, position: Position) -> Optional[DialplanNode]:
        """Persist a drag; quiet on success like the canvas it serves."""
        try:
            self._require_writable()
            graph = self._require_graph()
            graph.get_node(node_id)
            node = await self.client.update_node(node_id, position=position)
            graph.replace_node(node)
        except DialplanError as e:
            self._refuse(e, "Failed to update node position")
            return None
        return node

    async def delete_node(self, node_id: int) -> bool:
        """Delete a node and drop every connection attached to it locally."""
        try:
            self._require_writable()
            graph = self._require_graph()
            graph.get_node(node_id)
            await self.client.delete_node(node_id)
        except DialplanError as e:
            self._refuse(e, "Failed to delete node")
            return False

        removed = graph.remove_node(node_id)
        self._node_states.pop(node_id, None)
        logger.debug(f"Deleted node {node_id} and {len(removed)} attached connections")
        self.notifier.success("Node deleted successfully")
        return True

    def node_state(self, node_id: int) -> NodeUpdateState:
        return self._node_states.get(node_id, NodeUpdateState.IDLE)

    async def change_node_type(self, node_id: int, node_type_id: int) -> Optional[DialplanNode]:
        """Retype a node, replacing its properties with the new type's defaults.

        Previous property values are discarded; no values migrate across
        schemas. The node's name and label become the new type's name. The
        update response is patched into the graph first, then the node is
        re-fetched; a failed re-fetch keeps the update and only warns.

        Returns:
            The updated node, or None on failure (graph unchanged)
        """
        if self.node_state(node_id) == NodeUpdateState.UPDATING:
            self.notifier.warning("Node type change already in progress")
            return None

        try:
            self._require_writable()
            graph = self._require_graph()
            graph.get_node(node_id)
            node_type = self.catalog.get(node_type_id)
        except DialplanError as e:
            self._refuse(e, "Failed to update node type")
            return None

        self._node_states[node_id] = NodeUpdateState.UPDATING
        try:
            node = await self.client.update_node(
                node_id,
                node_type_id=node_type.id,
                name=node_type.name,
                label=node_type.name,
                properties=node_type.derive_properties(),
            )
            graph.replace_node(node)
        except DialplanError as e:
            self._refuse(e, "Failed to update node type")
            self._node_states[node_id] = NodeUpdateState.IDLE
            return None

        try:
            refreshed = await self.client.get_node_details(node_id)
            graph.replace_node(refreshed)
            node = refreshed
        except DialplanError as e:
            logger.warning(f"Node {node_id} retyped but refresh failed: {e}")
            self.notifier.warning("Node type updated but could not be refreshed")
        finally:
            self._node_states[node_id] = NodeUpdateState.IDLE

        logger.info(f"Node {node_id} is now a '{node_type.name}'")
        self.notifier.success("Node type updated successfully")
        return node

    # Connections

    async def create_connection(
        self,
        source_node_id: int,
        target_node_id: int,
        condition: Optional[str] = None,
        priority: int = 1,
    ) -> Optional[DialplanConnection]:
        try:
            self._require_writable()
            graph = self._require_graph()
            graph.check_connection(source_node_id, target_node_id)
            connection = await self.client.create_connection(
                source_node_id, target_node_id, condition=condition, priority=priority
            )
            graph.add_connection(connection)
        except DialplanError as e:
            self._refuse(e, "Failed to create connection")
            return None

        self.notifier.success("Connection created successfully")
        return connection

    async def update_connection(
        self,
        connection_id: int,
        *,
        condition: Optional[str] = None,
        priority: Optional[int] = None,
    ) -> Optional[DialplanConnection]:
        try:
            self._require_writable()
            graph = self._require_graph()
            graph.get_connection(connection_id)
            connection = await self.client.update_connection(
                connection_id, condition=condition, priority=priority
            )
            graph.replace_connection(connection)
        except DialplanError as e:
            self._refuse(e, "Failed to update connection")
            return None

        self.notifier.success("Connection updated successfully")
        return connection

    async def delete_connection(self, connection_id: int) -> bool:
        try:
            self._require_writable()
            graph = self._require_graph()
            graph.get_connection(connection_id)
            await self.client.delete_connection(connection_id)
        except DialplanError as e:
            self._refuse(e, "Failed to delete connection")
            return False

        graph.remove_connection(connection_id)
        self.notifier.success("Connection deleted successfully")
        return True

    # Validation, generation, deployment

    def validate_locally(self) -> Optional[ValidationResult]:
        """Run the pre-flight checks on the active context."""
        if self.graph is None:
            return None
        context = self._active_context()
        return validate_graph(self.graph, self.catalog, context.name if context else None)

    def _active_context(self) -> Optional[DialplanContext]:
        for context in self.contexts:
            if context.id == self.active_context_id:
                return context
        return None

    async def validate_project(self) -> Optional[ValidationResult]:
        """Ask the backend to validate the project and surface every issue.

        Returns:
            The structured result, or None if the request failed
        """
        if self.project is None:
            self.notifier.error("No project loaded")
            return None
        try:
            result = await self.client.validate_project(self.project.id)
        except DialplanError as e:
            self._refuse(e, "Failed to validate project")
            return None

        for issue in result.errors:
            logger.error(f"Validation: {issue}")
            self.notifier.error(str(issue))
        for issue in result.warnings:
            logger.warning(f"Validation: {issue}")
            self.notifier.warning(str(issue))

        if result.valid:
            self.notifier.success("Project validation successful!")
        else:
            self.notifier.error(f"Validation failed with {len(result.errors)} errors")
        return result

    async def generate_dialplan(self) -> Optional[DialplanGenerationResult]:
        if self.project is None:
            self.notifier.error("No project loaded")
            return None
        try:
            result = await self.client.generate_dialplan(self.project.id)
        except DialplanError as e:
            self._refuse(e, "Failed to generate dialplan")
            return None
        self.notifier.success("Dialplan generated successfully")
        return result

    async def export_dialplan(self, directory: Union[str, Path]) -> Optional[Path]:
        """Generate the dialplan and write it to `<project-name>.conf`.

        Returns:
            Path of the written file, or None on failure
        """
        result = await self.generate_dialplan()
        if result is None:
            return None
        stem = re.sub(r"[^A-Za-z0-9_.-]+", "_", self.project.name).strip("_") or "dialplan"
        path = Path(directory) / f"{stem}.conf"
        try:
            path.write_text(result.dialplan, encoding="utf-8")
        except OSError as e:
            logger.error(f"Error writing {path}: {e}")
            self.notifier.error("Failed to save dialplan file")
            return None
        logger.info(f"Wrote dialplan to {path}")
        return path

    async def deploy(self, request: DeploymentRequest) -> Optional[Dict[str, Any]]:
        if self.project is None:
            self.notifier.error("No project loaded")
            return None
        try:
            self._require_writable()
            response = await self.client.deploy_dialplan(self.project.id, request)
        except DialplanError as e:
            self._refuse(e, "Failed to deploy dialplan")
            return None

        if isinstance(response, dict) and response.get("success") is False:
            self.notifier.error(response.get("message") or "Deployment failed")
            return response

        # Deploy stamps lastDeployed server-side
        try:
            self.project = await self.client.get_project_details(self.project.id)
        except DialplanError as e:
            logger.warning(f"Could not refresh project after deployment: {e}")
        self.notifier.success("Dialplan deployed successfully")
        return response

    async def deployment_history(self) -> List[DialplanDeployment]:
        if self.project is None:
            return []
        try:
            return await self.client.get_deployment_history(self.project.id)
        except DialplanError as e:
            logger.error(f"Error fetching deployment history: {e}")
            self.notifier.error("Failed to load deployment history")
            return []
