"""
Capability registry for the MCP server.

Holds the tools, resources, resource templates and prompts exposed by the
server, and dispatches calls to their handlers. The registry is filled once
by the capability composer and then frozen; lookups go through read-only
mappings.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from .errors import CapabilityNotFoundError
from .models import (
    PromptDefinition,
    PromptGetResponse,
    ResourceDefinition,
    ResourceReadResponse,
    ResourceTemplateDefinition,
    ToolCallResponse,
    ToolDefinition,
)

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any]], Awaitable[ToolCallResponse]]
ResourceHandler = Callable[[str], Awaitable[ResourceReadResponse]]
PromptHandler = Callable[[Dict[str, str]], PromptGetResponse]


@dataclass(frozen=True)
class ToolEntry:
    definition: ToolDefinition
    handler: ToolHandler


@dataclass(frozen=True)
class ResourceEntry:
    definition: ResourceDefinition
    handler: ResourceHandler


@dataclass(frozen=True)
class ResourceTemplateEntry:
    definition: ResourceTemplateDefinition
    prefix: str
    handler: ResourceHandler


@dataclass(frozen=True)
class PromptEntry:
    definition: PromptDefinition
    handler: PromptHandler


def template_prefix(uri_template: str) -> str:
    """Literal part of a URI template before its first variable."""
    index = uri_template.find("{")
    return uri_template if index < 0 else uri_template[:index]


class CapabilityRegistry:
    """Name/URI to handler mappings for one server."""

    def __init__(self):
        self._tools: Dict[str, ToolEntry] = {}
        self._resources: Dict[str, ResourceEntry] = {}
        self._templates: Dict[str, ResourceTemplateEntry] = {}
        self._prompts: Dict[str, PromptEntry] = {}
        self._frozen = False

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._frozen:
            raise RuntimeError("Capability registry is frozen; register capabilities before startup completes")

    def add_tool(self, definition: ToolDefinition, handler: ToolHandler) -> None:
        self._check_open()
        if definition.name in self._tools:
            raise ValueError(f"Tool '{definition.name}' is already registered")
        self._tools[definition.name] = ToolEntry(definition, handler)

    def add_resource(self, definition: ResourceDefinition, handler: ResourceHandler) -> None:
        self._check_open()
        if definition.uri in self._resources:
            raise ValueError(f"Resource '{definition.uri}' is already registered")
        self._resources[definition.uri] = ResourceEntry(definition, handler)

    def add_resource_template(self, definition: ResourceTemplateDefinition, handler: ResourceHandler) -> None:
        self._check_open()
        prefix = template_prefix(definition.uriTemplate)
        if prefix in self._templates:
            raise ValueError(f"Resource template prefix '{prefix}' is already registered")
        self._templates[prefix] = ResourceTemplateEntry(definition, prefix, handler)

    def add_prompt(self, definition: PromptDefinition, handler: PromptHandler) -> None:
        self._check_open()
        if definition.name in self._prompts:
            raise ValueError(f"Prompt '{definition.name}' is already registered")
        self._prompts[definition.name] = PromptEntry(definition, handler)

    def freeze(self) -> "CapabilityRegistry":
        """End composition. Further add_* calls raise RuntimeError."""
        self._frozen = True
        logger.info(
            f"Registered {len(self._tools)} tools, {len(self._prompts)} prompts, "
            f"{len(self._resources) + len(self._templates)} resources"
        )
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def tools(self) -> Mapping[str, ToolEntry]:
        return MappingProxyType(self._tools)

    @property
    def resources(self) -> Mapping[str, ResourceEntry]:
        return MappingProxyType(self._resources)

    @property
    def resource_templates(self) -> Mapping[str, ResourceTemplateEntry]:
        return MappingProxyType(self._templates)

    @property
    def prompts(self) -> Mapping[str, PromptEntry]:
        return MappingProxyType(self._prompts)

    def list_tools(self) -> List[ToolDefinition]:
        return [entry.definition for entry in self._tools.values()]

    def list_resources(self) -> List[ResourceDefinition]:
        return [entry.definition for entry in self._resources.values()]

    def list_resource_templates(self) -> List[ResourceTemplateDefinition]:
        return [entry.definition for entry in self._templates.values()]

    def list_prompts(self) -> List[PromptDefinition]:
        return [entry.definition for entry in self._prompts.values()]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def resolve_resource(self, uri: str) -> ResourceHandler:
        """
        Find the handler for a URI: exact static match first, then the
        longest matching template prefix.

        Raises:
            CapabilityNotFoundError: If nothing matches
        """
        entry = self._resources.get(uri)
        if entry is not None:
            return entry.handler

        match: Optional[ResourceTemplateEntry] = None
        for prefix, template in self._templates.items():
            if uri.startswith(prefix) and (match is None or len(prefix) > len(match.prefix)):
                match = template
        if match is None:
            available = list(self._resources) + [t.definition.uriTemplate for t in self._templates.values()]
            raise CapabilityNotFoundError("resource", uri, available)
        return match.handler

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolCallResponse:
        entry = self._tools.get(name)
        if entry is None:
            raise CapabilityNotFoundError("tool", name, self._tools.keys())
        logger.info(f"Calling tool '{name}'")
        return await entry.handler(arguments or {})

    async def read_resource(self, uri: str) -> ResourceReadResponse:
        handler = self.resolve_resource(uri)
        logger.info(f"Reading resource '{uri}'")
        return await handler(uri)

    def get_prompt(self, name: str, arguments: Optional[Dict[str, str]] = None) -> PromptGetResponse:
        entry = self._prompts.get(name)
        if entry is None:
            raise CapabilityNotFoundError("prompt", name, self._prompts.keys())
        logger.info(f"Getting prompt '{name}'")
        return entry.handler(arguments or {})
