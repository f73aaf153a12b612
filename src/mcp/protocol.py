"""
MCP SDK binding for the capability registry.

Registers the frozen CapabilityRegistry with the SDK's low-level Server and
serves it over the streamable HTTP transport at /mcp. The SDK owns the
protocol: initialize and version negotiation, sessions (mcp-session-id),
notifications and JSON-RPC error framing.
"""

import logging
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from mcp.shared.exceptions import McpError

from .errors import CapabilityNotFoundError, ResourceReadError
from .registry import CapabilityRegistry

logger = logging.getLogger(__name__)

# JSON-RPC error code for a failed resource read
RESOURCE_ERROR = -32002


class ToolCallFailed(Exception):
    """Carries an isError tool result through the SDK, which reports it as isError=true."""


class MCPProtocolServer:
    """Low-level MCP server whose handlers delegate to a CapabilityRegistry."""

    def __init__(self, registry: CapabilityRegistry, server_name: str, server_version: str):
        self.registry = registry
        self.server = Server(server_name, version=server_version)
        self._register_handlers()

    def _register_handlers(self) -> None:
        registry = self.registry

        @self.server.list_tools()
        async def handle_list_tools() -> List[types.Tool]:
            return [types.Tool.model_validate(tool.model_dump(exclude_none=True)) for tool in registry.list_tools()]

        @self.server.call_tool(validate_input=False)
        async def handle_call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
            result = await registry.call_tool(name, arguments or {})
            if result.isError:
                raise ToolCallFailed(result.text)
            return [types.TextContent(type="text", text=item.text) for item in result.content]

        @self.server.list_resources()
        async def handle_list_resources() -> List[types.Resource]:
            return [
                types.Resource.model_validate(resource.model_dump(exclude_none=True))
                for resource in registry.list_resources()
            ]

        @self.server.list_resource_templates()
        async def handle_list_resource_templates() -> List[types.ResourceTemplate]:
            return [
                types.ResourceTemplate.model_validate(template.model_dump(exclude_none=True))
                for template in registry.list_resource_templates()
            ]

        @self.server.read_resource()
        async def handle_read_resource(uri) -> List[ReadResourceContents]:
            try:
                result = await registry.read_resource(str(uri))
            except ResourceReadError as e:
                raise McpError(types.ErrorData(
                    code=RESOURCE_ERROR, message=str(e), data={"status": e.status_code}
                )) from e
            except CapabilityNotFoundError as e:
                raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=str(e))) from e
            return [ReadResourceContents(content=item.text, mime_type=item.mimeType) for item in result.contents]

        @self.server.list_prompts()
        async def handle_list_prompts() -> List[types.Prompt]:
            return [types.Prompt.model_validate(prompt.model_dump(exclude_none=True)) for prompt in registry.list_prompts()]

        @self.server.get_prompt()
        async def handle_get_prompt(name: str, arguments: Optional[Dict[str, str]]) -> types.GetPromptResult:
            try:
                result = registry.get_prompt(name, arguments)
            except CapabilityNotFoundError as e:
                raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=str(e))) from e
            return types.GetPromptResult.model_validate(result.model_dump(exclude_none=True))

    def session_manager(self, json_response: bool = True) -> StreamableHTTPSessionManager:
        """A fresh streamable HTTP session manager; run() may be entered once per manager."""
        return StreamableHTTPSessionManager(app=self.server, json_response=json_response)


class StreamableHTTPEndpoint:
    """ASGI endpoint handing every /mcp request (POST, GET, DELETE) to the session manager."""

    def __init__(self, session_manager: StreamableHTTPSessionManager):
        self.session_manager = session_manager

    async def __call__(self, scope, receive, send) -> None:
        await self.session_manager.handle_request(scope, receive, send)
