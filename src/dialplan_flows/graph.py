#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""In-memory graph of one dial-plan context.

Nodes and connections are stored in flat dicts keyed by id, with an
adjacency index per node, so a single mutation only touches the records it
affects. The graph holds no version tokens: whatever the backend returned
last wins.
"""

from typing import Dict, Iterable, List, Optional, Set

from loguru import logger

from .exceptions import GraphError
from .models import DialplanConnection, DialplanNode
from .node_types import NodeCategory, NodeTypeCatalog


class DialplanGraph:
    """Nodes and connections of a single context.

    Attributes:
        context_id: Context every node of this graph belongs to
        nodes: Node id -> node
        connections: Connection id -> connection
        dropped: Connections rejected by the last load()
    """

    def __init__(self, context_id: int):
        self.context_id = context_id
        self.nodes: Dict[int, DialplanNode] = {}
        self.connections: Dict[int, DialplanConnection] = {}
        self._outgoing: Dict[int, Set[int]] = {}
        self._incoming: Dict[int, Set[int]] = {}
        self.dropped: List[DialplanConnection] = []

    def load(
        self, nodes: Iterable[DialplanNode], connections: Iterable[DialplanConnection]
    ) -> None:
        """Replace the whole graph with freshly fetched records.

        Connections whose ends are not both in this context are dropped with
        a warning rather than failing the load, and kept in `dropped`.
        """
        self.clear()
        for node in nodes:
            self.add_node(node)
        for connection in connections:
            try:
                self.add_connection(connection)
            except GraphError as e:
                logger.warning(f"Dropping connection {connection.id}: {e}")
                self.dropped.append(connection)
        logger.debug(
            f"Loaded context {self.context_id}: {len(self.nodes)} nodes, "
            f"{len(self.connections)} connections"
        )

    def clear(self) -> None:
        self.nodes.clear()
        self.connections.clear()
        self._outgoing.clear()
        self._incoming.clear()
        self.dropped = []

    # Nodes

    def get_node(self, node_id: int) -> DialplanNode:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise GraphError(f"Node {node_id} not in context {self.context_id}") from None

    def add_node(self, node: DialplanNode) -> None:
        if node.context_id != self.context_id:
            raise GraphError(
                f"Node {node.id} belongs to context {node.context_id}, not {self.context_id}"
            )
        if node.id in self.nodes:
            raise GraphError(f"Node {node.id} already exists")
        self.nodes[node.id] = node
        self._outgoing[node.id] = set()
        self._incoming[node.id] = set()

    def replace_node(self, node: DialplanNode) -> None:
        """Swap in an updated copy of an existing node, keeping its edges."""
        if node.id not in self.nodes:
            raise GraphError(f"Node {node.id} not in context {self.context_id}")
        if node.context_id != self.context_id:
            raise GraphError(f"Node {node.id} moved to context {node.context_id}")
        self.nodes[node.id] = node

    def remove_node(self, node_id: int) -> List[DialplanConnection]:
        """Remove a node and every connection that starts or ends at it.

        Returns:
            The connections removed along with the node
        """
        self.get_node(node_id)
        attached = self._outgoing[node_id] | self._incoming[node_id]
        removed = [self.remove_connection(connection_id) for connection_id in sorted(attached)]
        del self.nodes[node_id]
        del self._outgoing[node_id]
        del self._incoming[node_id]
        return removed

    # Connections

    def get_connection(self, connection_id: int) -> DialplanConnection:
        try:
            return self.connections[connection_id]
        except KeyError:
            raise GraphError(f"Connection {connection_id} not in context {self.context_id}") from None

    def check_connection(self, source_node_id: int, target_node_id: int) -> None:
        """Ensure both ends of a prospective connection are nodes of this context.

        Raises:
            GraphError: If either end is unknown here
        """
        for role, node_id in (("source", source_node_id), ("target", target_node_id)):
            if node_id not in self.nodes:
                raise GraphError(
                    f"Connection {role} node {node_id} is not in context {self.context_id}"
                )

    def add_connection(self, connection: DialplanConnection) -> None:
        if connection.id in self.connections:
            raise GraphError(f"Connection {connection.id} already exists")
        self.check_connection(connection.source_node_id, connection.target_node_id)
        self.connections[connection.id] = connection
        self._outgoing[connection.source_node_id].add(connection.id)
        self._incoming[connection.target_node_id].add(connection.id)

    def replace_connection(self, connection: DialplanConnection) -> None:
        previous = self.get_connection(connection.id)
        if (previous.source_node_id, previous.target_node_id) != (
            connection.source_node_id,
            connection.target_node_id,
        ):
            self.remove_connection(connection.id)
            self.add_connection(connection)
        else:
            self.connections[connection.id] = connection

    def remove_connection(self, connection_id: int) -> DialplanConnection:
        connection = self.get_connection(connection_id)
        del self.connections[connection_id]
        self._outgoing[connection.source_node_id].discard(connection_id)
        self._incoming[connection.target_node_id].discard(connection_id)
        return connection

    # Queries

    def outgoing(self, node_id: int) -> List[DialplanConnection]:
        """Outgoing connections in evaluation order (priority, then id)."""
        self.get_node(node_id)
        return sorted(
            (self.connections[cid] for cid in self._outgoing[node_id]),
            key=lambda c: (c.priority, c.id),
        )

    def incoming(self, node_id: int) -> List[DialplanConnection]:
        self.get_node(node_id)
        return sorted((self.connections[cid] for cid in self._incoming[node_id]), key=lambda c: c.id)

    def connections_of(self, node_id: int) -> List[DialplanConnection]:
        self.get_node(node_id)
        ids = self._outgoing[node_id] | self._incoming[node_id]
        return [self.connections[cid] for cid in sorted(ids)]

    def successors(self, node_id: int) -> List[int]:
        return [c.target_node_id for c in self.outgoing(node_id)]

    def entry_nodes(self, catalog: NodeTypeCatalog) -> List[DialplanNode]:
        """Nodes whose type is an extension, i.e. where calls enter the context.

        Nodes of a type missing from the catalog are never entry nodes.
        """
        entries = []
        for node_id in sorted(self.nodes):
            node_type = catalog.find(self.nodes[node_id].node_type_id)
            if node_type is not None and node_type.category == NodeCategory.EXTENSION:
                entries.append(self.nodes[node_id])
        return entries

    def reachable_from(self, start_ids: Iterable[int]) -> Set[int]:
        """Node ids reachable from any of the given nodes, including them."""
        seen: Set[int] = set()
        stack = [node_id for node_id in start_ids if node_id in self.nodes]
        while stack:
            node_id = stack.pop()
            if node_id in seen:
                continue
            seen.add(node_id)
            stack.extend(self.successors(node_id))
        return seen

    def find_node_by_name(self, name: str) -> Optional[DialplanNode]:
        for node in self.nodes.values():
            if node.name == name:
                return node
        return None

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes
