"""
Exceptions raised by the MCP capability layer.

Tool handlers never raise these; they report failures inside the tool result.
"""


class CapabilityNotFoundError(ValueError):
    """No tool, prompt or resource is registered under the requested name/URI."""

    def __init__(self, kind: str, name: str, available=None):
        self.kind = kind
        self.name = name
        message = f"{kind.capitalize()} '{name}' not found"
        if available:
            message += f". Available {kind}s: {sorted(available)}"
        super().__init__(message)


class ResourceReadError(ValueError):
    """
    A resource read failed.

    status_code follows HTTP conventions: 400 when the URI itself is
    malformed, 502 when the Air Quality API call failed.
    """

    def __init__(self, message: str, status_code: int = 400):
        self.status_code = status_code
        super().__init__(message)
