"""
Capability composition for the MCP server.

register_all wires the tools, prompts and resources into one registry;
build_registry does that once and freezes the result.
"""

import logging

from src.config import Config
from .handlers import prompts, resources, tools
from .registry import CapabilityRegistry

logger = logging.getLogger(__name__)


def register_all(registry: CapabilityRegistry, config: Config) -> None:
    """Register all MCP features (tools, prompts, resources) with the registry."""
    tools.register_all(registry, config.api_key, config.base_url)
    prompts.register_all(registry)
    resources.register_all(registry, config.api_key, config.base_url)


def build_registry(config: Config) -> CapabilityRegistry:
    """Compose and freeze the server's capability registry."""
    registry = CapabilityRegistry()
    register_all(registry, config)
    return registry.freeze()
