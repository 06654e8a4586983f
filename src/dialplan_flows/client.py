#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Async REST facade for the dial-plan backend.

One HTTP request per logical operation: no batching, no retries, and no
timeout beyond aiohttp's default. Every request carries the bearer token and
tenant header from ClientConfig. Every failure surfaces as a DialplanError,
including timeouts and bodies that do not match the expected record.

Example:
    async with DialplanClient(ClientConfig.from_env()) as client:
        projects = await client.get_projects()
        nodes = await client.get_nodes_for_context(projects[0].contexts[0].id)
"""

import asyncio
from typing import Any, Dict, List, Optional, Type, TypeVar

import aiohttp
from loguru import logger
from pydantic import BaseModel, ValidationError

from .config import ClientConfig
from .exceptions import (
    ApiError,
    AuthenticationError,
    InvalidIdError,
    NotFoundError,
    ResponseError,
    TransportError,
)
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

M = TypeVar("M", bound=BaseModel)


def _check_id(kind: str, value: Any) -> int:
    # bool is an int subclass but never a valid id
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidIdError(f"Invalid {kind} ID: {value!r}")
    return value


def _parse(model: Type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Unexpected {model.__name__} payload: {e}")
        raise ResponseError(f"Malformed {model.__name__} in response: {e}") from e


def _parse_list(model: Type[M], data: Any) -> List[M]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ResponseError(f"Expected a list of {model.__name__}, got {type(data).__name__}")
    return [_parse(model, item) for item in data]


def _position(position: Optional[Any]) -> Optional[Dict[str, float]]:
    if position is None:
        return None
    if isinstance(position, Position):
        return position.model_dump()
    return {"x": position["x"], "y": position["y"]}


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


class DialplanClient:
    """Client for the /dialplan endpoints of the backend.

    Attributes:
        config: Connection settings
    """

    def __init__(self, config: ClientConfig, session: Optional[aiohttp.ClientSession] = None):
        """Initialize the client.

        Args:
            config: Connection settings
            session: Optional externally managed session; when omitted the
                client creates one lazily and closes it in close()
        """
        self.config = config
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "DialplanClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _request(self, method: str, path: str, json: Optional[Any] = None) -> Any:
        """Send a request and decode its JSON body.

        Raises:
            AuthenticationError: On 401
            NotFoundError: On 404
            ApiError: On any other non-2xx status
            TransportError: If no response was received or the request timed out
            ResponseError: If a JSON body could not be decoded
        """
        url = f"{self.config.base_url}/{path.lstrip('/')}"
        logger.debug(f"{method} {url}")
        session = self._get_session()
        try:
            async with session.request(
                method, url, json=json, headers=self.config.headers()
            ) as response:
                if response.status == 204:
                    return None
                payload = await self._read_payload(response)
                if response.status >= 400:
                    raise self._error_for(response.status, payload)
                return payload
        except aiohttp.ClientError as e:
            logger.error(f"{method} {url} failed without response: {e}")
            raise TransportError(f"{method} {path} failed: {e}") from e
        except asyncio.TimeoutError as e:
            logger.error(f"{method} {url} timed out")
            raise TransportError(f"{method} {path} timed out") from e

    @staticmethod
    async def _read_payload(response: aiohttp.ClientResponse) -> Any:
        text = await response.text()
        if not text:
            return None
        if response.content_type == "application/json":
            try:
                return await response.json()
            except ValueError as e:
                raise ResponseError(f"Invalid JSON in response: {e}") from e
        return text

    @staticmethod
    def _error_for(status: int, payload: Any) -> ApiError:
        message = None
        if isinstance(payload, dict):
            message = payload.get("message") or payload.get("error")
        elif isinstance(payload, str):
            message = payload
        message = message or f"HTTP {status}"
        logger.error(f"API error {status}: {message}")
        if status == 401:
            return AuthenticationError(status, message, payload)
        if status == 404:
            return NotFoundError(status, message, payload)
        return ApiError(status, message, payload)

    # Projects

    async def get_projects(self) -> List[DialplanProject]:
        data = await self._request("GET", "/dialplan/projects")
        return _parse_list(DialplanProject, data)

    async def get_project_details(self, project_id: int) -> DialplanProject:
        data = await self._request("GET", f"/dialplan/projects/{_check_id('project', project_id)}")
        return _parse(DialplanProject, data)

    async def create_project(self, name: str, description: str = "") -> DialplanProject:
        """Create a project; the backend adds its default context."""
        data = await self._request(
            "POST", "/dialplan/projects", {"name": name, "description": description}
        )
        return _parse(DialplanProject, data)

    async def update_project(
        self,
        project_id: int,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> DialplanProject:
        body = _drop_none({"name": name, "description": description, "isActive": is_active})
        data = await self._request(
            "PUT", f"/dialplan/projects/{_check_id('project', project_id)}", body
        )
        return _parse(DialplanProject, data)

    async def delete_project(self, project_id: int) -> Any:
        return await self._request("DELETE", f"/dialplan/projects/{_check_id('project', project_id)}")

    async def clone_project(self, project_id: int, new_name: str) -> DialplanProject:
        """Clone a project; contexts, nodes and connections are copied server-side."""
        data = await self._request(
            "POST",
            f"/dialplan/projects/{_check_id('project', project_id)}/clone",
            {"newName": new_name},
        )
        return _parse(DialplanProject, data)

    # Contexts

    async def get_contexts_for_project(self, project_id: int) -> List[DialplanContext]:
        data = await self._request(
            "GET", f"/dialplan/projects/{_check_id('project', project_id)}/contexts"
        )
        return _parse_list(DialplanContext, data)

    async def get_context_details(self, context_id: int) -> DialplanContext:
        data = await self._request("GET", f"/dialplan/contexts/{_check_id('context', context_id)}")
        return _parse(DialplanContext, data)

    async def create_context(
        self,
        project_id: int,
        name: str,
        description: str = "",
        position: Optional[Any] = None,
    ) -> DialplanContext:
        body = {
            "name": name,
            "description": description,
            "position": _position(position) or {"x": 100, "y": 100},
        }
        data = await self._request(
            "POST", f"/dialplan/projects/{_check_id('project', project_id)}/contexts", body
        )
        return _parse(DialplanContext, data)

    async def update_context(
        self,
        context_id: int,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        position: Optional[Any] = None,
    ) -> DialplanContext:
        body = _drop_none(
            {"name": name, "description": description, "position": _position(position)}
        )
        data = await self._request(
            "PUT", f"/dialplan/contexts/{_check_id('context', context_id)}", body
        )
        return _parse(DialplanContext, data)

    async def delete_context(self, context_id: int) -> Any:
        return await self._request("DELETE", f"/dialplan/contexts/{_check_id('context', context_id)}")

    # Nodes

    async def get_nodes_for_context(self, context_id: int) -> List[DialplanNode]:
        data = await self._request(
            "GET", f"/dialplan/contexts/{_check_id('context', context_id)}/nodes"
        )
        return _parse_list(DialplanNode, data)

    async def get_node_details(self, node_id: int) -> DialplanNode:
        data = await self._request("GET", f"/dialplan/nodes/{_check_id('node', node_id)}")
        return _parse(DialplanNode, data)

    async def create_node(
        self,
        context_id: int,
        *,
        node_type_id: int,
        name: str,
        position: Any,
        properties: Dict[str, Any],
        label: Optional[str] = None,
    ) -> DialplanNode:
        body = {
            "nodeTypeId": node_type_id,
            "name": name,
            "label": label if label is not None else name,
            "position": _position(position),
            "properties": properties,
        }
        data = await self._request(
            "POST", f"/dialplan/contexts/{_check_id('context', context_id)}/nodes", body
        )
        return _parse(DialplanNode, data)

    async def update_node(
        self,
        node_id: int,
        *,
        name: Optional[str] = None,
        label: Optional[str] = None,
        position: Optional[Any] = None,
        properties: Optional[Dict[str, Any]] = None,
        node_type_id: Optional[int] = None,
    ) -> DialplanNode:
        body = _drop_none(
            {
                "nodeTypeId": node_type_id,
                "name": name,
                "label": label,
                "position": _position(position),
                "properties": properties,
            }
        )
        data = await self._request("PUT", f"/dialplan/nodes/{_check_id('node', node_id)}", body)
        return _parse(DialplanNode, data)

    async def delete_node(self, node_id: int) -> Any:
        """Delete a node; the backend removes its connections too."""
        return await self._request("DELETE", f"/dialplan/nodes/{_check_id('node', node_id)}")

    async def get_node_types(self) -> List[Dict[str, Any]]:
        """Fetch raw node type descriptors; parse them with NodeTypeCatalog.from_api()."""
        data = await self._request("GET", "/dialplan/node-types")
        if data is None:
            return []
        if not isinstance(data, list):
            raise ResponseError(f"Expected a list of node types, got {type(data).__name__}")
        return data

    # Connections

    async def get_connections_for_context(self, context_id: int) -> List[DialplanConnection]:
        data = await self._request(
            "GET", f"/dialplan/contexts/{_check_id('context', context_id)}/connections"
        )
        return _parse_list(DialplanConnection, data)

    async def create_connection(
        self,
        source_node_id: int,
        target_node_id: int,
        condition: Optional[str] = None,
        priority: int = 1,
    ) -> DialplanConnection:
        body = _drop_none(
            {
                "sourceNodeId": _check_id("node", source_node_id),
                "targetNodeId": _check_id("node", target_node_id),
                "condition": condition,
                "priority": priority,
            }
        )
        data = await self._request("POST", "/dialplan/connections", body)
        return _parse(DialplanConnection, data)

    async def update_connection(
        self,
        connection_id: int,
        *,
        condition: Optional[str] = None,
        priority: Optional[int] = None,
    ) -> DialplanConnection:
        body = _drop_none({"condition": condition, "priority": priority})
        data = await self._request(
            "PUT", f"/dialplan/connections/{_check_id('connection', connection_id)}", body
        )
        return _parse(DialplanConnection, data)

    async def delete_connection(self, connection_id: int) -> Any:
        return await self._request(
            "DELETE", f"/dialplan/connections/{_check_id('connection', connection_id)}"
        )

    # Generation and deployment

    async def validate_project(self, project_id: int) -> ValidationResult:
        data = await self._request(
            "POST", f"/dialplan/projects/{_check_id('project', project_id)}/validate"
        )
        return _parse(ValidationResult, data)

    async def generate_dialplan(self, project_id: int) -> DialplanGenerationResult:
        data = await self._request(
            "POST", f"/dialplan/projects/{_check_id('project', project_id)}/generate"
        )
        if isinstance(data, str):
            return DialplanGenerationResult(dialplan=data)
        return _parse(DialplanGenerationResult, data)

    async def deploy_dialplan(self, project_id: int, request: DeploymentRequest) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/dialplan/projects/{_check_id('project', project_id)}/deploy",
            request.model_dump(mode="json", by_alias=True),
        )

    async def get_deployment_history(self, project_id: int) -> List[DialplanDeployment]:
        data = await self._request(
            "GET", f"/dialplan/projects/{_check_id('project', project_id)}/deployments"
        )
        return _parse_list(DialplanDeployment, data)

    async def check_dialplan_capabilities(self) -> DialplanCapabilities:
        data = await self._request("GET", "/system/dialplan-capabilities")
        return _parse(DialplanCapabilities, data or {})
