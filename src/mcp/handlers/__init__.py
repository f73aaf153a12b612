"""
MCP Capability Handlers

This package contains the handlers registered with the capability registry:
- tools: Air Quality tool declarations and execution
- resources: URI-addressed Air Quality resources
- prompts: Prompt templates that point the agent at the tools
"""
