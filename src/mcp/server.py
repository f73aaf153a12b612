"""
MCP Server - Main FastAPI Application

Exposes the Air Quality capability registry over HTTP:
- /tool/* endpoints for tools
- /resource/* endpoints for resources
- /prompt/* endpoints for prompts
- /mcp streamable HTTP endpoint served by the MCP SDK

Run with: python -m src.mcp.server
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.config import Config, load_config
from .capabilities import build_registry
from .errors import ResourceReadError
from .models import (
    MCPError,
    PromptGetRequest,
    PromptGetResponse,
    PromptListResponse,
    ResourceListResponse,
    ResourceReadRequest,
    ResourceReadResponse,
    ResourceTemplateListResponse,
    ToolCallRequest,
    ToolCallResponse,
    ToolListResponse,
)
from .protocol import MCPProtocolServer, StreamableHTTPEndpoint
from .registry import CapabilityRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


def get_registry(request: Request) -> CapabilityRegistry:
    return request.app.state.registry


# ============================================================================
# Error Handlers
# ============================================================================

async def resource_error_handler(request: Request, exc: ResourceReadError):
    """Handle resource read failures."""
    return JSONResponse(
        status_code=exc.status_code,
        content=MCPError(
            code=exc.status_code,
            message=str(exc),
            data={"type": "ResourceReadError"}
        ).model_dump()
    )


async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions."""
    return JSONResponse(
        status_code=400,
        content=MCPError(
            code=400,
            message=str(exc),
            data={"type": type(exc).__name__}
        ).model_dump()
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=MCPError(
            code=500,
            message="Internal server error",
            data={"type": type(exc).__name__, "detail": str(exc)}
        ).model_dump()
    )


# ============================================================================
# Health Check
# ============================================================================

@router.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": request.app.state.config.server_name,
        "version": request.app.state.config.version
    }


@router.get("/", tags=["Root"])
async def root(request: Request):
    """Root endpoint with API information."""
    return {
        "service": request.app.state.config.server_name,
        "version": request.app.state.config.version,
        "protocol": "Model Context Protocol",
        "endpoints": {
            "mcp": "/mcp",
            "tools": "/tool/list, /tool/call",
            "resources": "/resource/list, /resource/templates, /resource/read",
            "prompts": "/prompt/list, /prompt/get",
            "docs": "/docs"
        }
    }


# ============================================================================
# Tool Endpoints
# ============================================================================

@router.get("/tool/list", response_model=ToolListResponse, tags=["Tools"], summary="List available tools")
async def list_tools_endpoint(registry: CapabilityRegistry = Depends(get_registry)):
    """List all available tools with their input schemas."""
    return ToolListResponse(tools=registry.list_tools())


@router.post("/tool/call", response_model=ToolCallResponse, tags=["Tools"], summary="Call a tool")
async def call_tool_endpoint(body: ToolCallRequest, registry: CapabilityRegistry = Depends(get_registry)):
    """
    Execute a tool call.

    - **name**: Tool name to call
    - **arguments**: Tool arguments as JSON object

    Failures inside the tool are reported with isError=true and HTTP 200.
    """
    return await registry.call_tool(body.name, body.arguments)


# ============================================================================
# Resource Endpoints
# ============================================================================

@router.get("/resource/list", response_model=ResourceListResponse, tags=["Resources"], summary="List available resources")
async def list_resources_endpoint(registry: CapabilityRegistry = Depends(get_registry)):
    """List static resources."""
    return ResourceListResponse(resources=registry.list_resources())


@router.get(
    "/resource/templates",
    response_model=ResourceTemplateListResponse,
    tags=["Resources"],
    summary="List resource templates"
)
async def list_resource_templates_endpoint(registry: CapabilityRegistry = Depends(get_registry)):
    """List parameterized resource URIs."""
    return ResourceTemplateListResponse(resourceTemplates=registry.list_resource_templates())


@router.post("/resource/read", response_model=ResourceReadResponse, tags=["Resources"], summary="Read a resource")
async def read_resource_endpoint(body: ResourceReadRequest, registry: CapabilityRegistry = Depends(get_registry)):
    """
    Read a resource by URI.

    - **uri**: Resource URI (e.g., "airquality://current/37.7749,-122.4194")
    """
    return await registry.read_resource(body.uri)


# ============================================================================
# Prompt Endpoints
# ============================================================================

@router.get("/prompt/list", response_model=PromptListResponse, tags=["Prompts"], summary="List available prompts")
async def list_prompts_endpoint(registry: CapabilityRegistry = Depends(get_registry)):
    """List all available prompts with their arguments."""
    return PromptListResponse(prompts=registry.list_prompts())


@router.post("/prompt/get", response_model=PromptGetResponse, tags=["Prompts"], summary="Get a prompt")
async def get_prompt_endpoint(body: PromptGetRequest, registry: CapabilityRegistry = Depends(get_registry)):
    """
    Render a prompt.

    - **name**: Prompt name
    - **arguments**: Optional prompt arguments for substitution
    """
    return registry.get_prompt(body.name, body.arguments)


# ============================================================================
# Application
# ============================================================================

def create_app(config: Optional[Config] = None) -> FastAPI:
    """
    Build the FastAPI application and compose its capability registry.

    Args:
        config: Server configuration; loaded from the environment when omitted

    Returns:
        Configured FastAPI application
    """
    config = config or load_config()
    registry = build_registry(config)
    protocol = MCPProtocolServer(registry, config.server_name, config.version)
    session_manager = protocol.session_manager()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with session_manager.run():
            logger.info(f"{config.server_name} MCP session manager started")
            yield

    app = FastAPI(
        title=f"MCP Server - {config.server_name}",
        description="Model Context Protocol server exposing Google Air Quality tools, resources, and prompts",
        version=config.version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.config = config
    app.state.registry = registry
    app.state.protocol = protocol

    # CORS middleware for cross-origin requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["mcp-session-id"],
    )

    app.add_exception_handler(ResourceReadError, resource_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
    app.include_router(router)
    app.add_route("/mcp", StreamableHTTPEndpoint(session_manager), include_in_schema=False)

    return app


def main() -> None:
    config = load_config()

    # Configure logging
    logging.basicConfig(level=config.log_level)

    logger.info(f"Starting {config.server_name} on port {config.port}")
    uvicorn.run("src.mcp.server:create_app", factory=True, host="0.0.0.0", port=config.port)


if __name__ == "__main__":
    main()
