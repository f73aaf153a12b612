"""
Model Context Protocol (MCP) Server

This package implements an MCP server for the Google Air Quality API that exposes:
- Tools: get_current_air_quality, get_air_quality_forecast,
  get_air_quality_history, get_air_quality_heatmap_tile
- Resources: airquality://current|forecast|history/{lat},{lon},
  airquality://heatmap/{mapType}/{zoom}/{x}/{y}, example://server-info
- Prompts: Location-based templates that guide the agent to the right tool

Capabilities are composed once into a CapabilityRegistry and served over
HTTP, both as REST endpoints and as a JSON-RPC 2.0 endpoint at /mcp.
"""

__version__ = "0.1.0"
