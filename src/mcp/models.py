"""
MCP Protocol Request/Response Models

This module defines Pydantic models for the MCP requests and responses
served by the REST endpoints.
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List, Literal


# ============================================================================
# Content Models
# ============================================================================

class TextContent(BaseModel):
    """Text content item of a tool result or prompt message."""
    type: Literal["text"] = "text"
    text: str = Field(..., description="Text payload")


class ResourceContents(BaseModel):
    """Contents of a read resource."""
    uri: str = Field(..., description="URI that was read")
    mimeType: Optional[str] = Field(None, description="MIME type of the text")
    text: str = Field(..., description="Resource body; binary bodies are base64 encoded")


# ============================================================================
# Tool Models
# ============================================================================

class ToolDefinition(BaseModel):
    """MCP tool definition schema."""
    name: str = Field(..., description="Tool name/identifier")
    description: str = Field(..., description="Tool description")
    inputSchema: Dict[str, Any] = Field(..., description="JSON schema for tool inputs")


class ToolListResponse(BaseModel):
    """Response for listing available tools."""
    tools: List[ToolDefinition] = Field(..., description="List of available tools")


class ToolCallRequest(BaseModel):
    """Request to call a tool."""
    name: str = Field(..., description="Tool name to call")
    arguments: Optional[Dict[str, Any]] = Field(default_factory=dict, description="Tool arguments")


class ToolCallResponse(BaseModel):
    """Response from tool call."""
    content: List[TextContent] = Field(..., description="Tool output content")
    isError: bool = Field(default=False, description="Whether the result is an error")

    @property
    def text(self) -> str:
        """Concatenated text of all content items."""
        return "".join(item.text for item in self.content)


# ============================================================================
# Resource Models
# ============================================================================

class ResourceDefinition(BaseModel):
    """MCP resource definition schema."""
    uri: str = Field(..., description="Resource URI")
    name: str = Field(..., description="Resource name")
    description: Optional[str] = Field(None, description="Resource description")
    mimeType: Optional[str] = Field(None, description="MIME type of the resource")


class ResourceTemplateDefinition(BaseModel):
    """MCP resource template schema (parameterized URI)."""
    uriTemplate: str = Field(..., description="RFC 6570 URI template")
    name: str = Field(..., description="Resource name")
    description: Optional[str] = Field(None, description="Resource description")
    mimeType: Optional[str] = Field(None, description="MIME type of the resource")


class ResourceListResponse(BaseModel):
    """Response for listing available resources."""
    resources: List[ResourceDefinition] = Field(..., description="List of available resources")


class ResourceTemplateListResponse(BaseModel):
    """Response for listing resource templates."""
    resourceTemplates: List[ResourceTemplateDefinition] = Field(..., description="List of resource templates")


class ResourceReadRequest(BaseModel):
    """Request to read a resource."""
    uri: str = Field(..., description="Resource URI to read")


class ResourceReadResponse(BaseModel):
    """Response from reading a resource."""
    contents: List[ResourceContents] = Field(..., description="Resource contents")


# ============================================================================
# Prompt Models
# ============================================================================

class PromptArgument(BaseModel):
    """Prompt argument definition."""
    name: str = Field(..., description="Argument name")
    description: Optional[str] = Field(None, description="Argument description")
    required: bool = Field(default=True, description="Whether argument is required")


class PromptDefinition(BaseModel):
    """MCP prompt definition schema."""
    name: str = Field(..., description="Prompt name/identifier")
    description: Optional[str] = Field(None, description="Prompt description")
    arguments: List[PromptArgument] = Field(default_factory=list, description="Prompt arguments")


class PromptListResponse(BaseModel):
    """Response for listing available prompts."""
    prompts: List[PromptDefinition] = Field(..., description="List of available prompts")


class PromptGetRequest(BaseModel):
    """Request to get a prompt."""
    name: str = Field(..., description="Prompt name")
    arguments: Optional[Dict[str, Optional[str]]] = Field(None, description="Prompt arguments")


class PromptMessage(BaseModel):
    """A single message of a rendered prompt."""
    role: Literal["user", "assistant"] = Field("user", description="Message author role")
    content: TextContent = Field(..., description="Message content")


class PromptGetResponse(BaseModel):
    """Response from getting a prompt."""
    description: Optional[str] = Field(None, description="Prompt description")
    messages: List[PromptMessage] = Field(..., description="Prompt messages")


# ============================================================================
# Error Models
# ============================================================================

class MCPError(BaseModel):
    """MCP error response."""
    code: int = Field(..., description="Error code")
    message: str = Field(..., description="Error message")
    data: Optional[Dict[str, Any]] = Field(None, description="Additional error data")
