"""
Tests for MCP Server endpoints

Tests cover:
- Health and root endpoints
- Tool listing and execution
- Resource listing and reading
- Prompt listing and retrieval
- The streamable HTTP /mcp endpoint
- The server entrypoint
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from src.airquality.client import ProviderError
from src.airquality.models import CurrentConditionsResponse
from src.config import Config
from src.mcp import server
from src.mcp.server import create_app

MCP_HEADERS = {"Accept": "application/json, text/event-stream"}


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(scope="module")
def client():
    """Test client with the application lifespan (and MCP session manager) running."""
    with TestClient(create_app(Config(api_key="test-key"))) as test_client:
        yield test_client


@pytest.fixture
def mock_tool_client():
    """Replace the provider client used by the tools."""
    with patch("src.mcp.handlers.tools.AirQualityClient") as mock_cls:
        yield mock_cls.return_value


@pytest.fixture
def mock_resource_client():
    """Replace the provider client used by the resources."""
    with patch("src.mcp.handlers.resources.AirQualityClient") as mock_cls:
        yield mock_cls.return_value


def initialize(client):
    """Open an MCP session and return the headers that address it."""
    response = client.post("/mcp", headers=MCP_HEADERS, json={
        "jsonrpc": "2.0",
        "id": 1,
        "method": "initialize",
        "params": {
            "protocolVersion": "2024-11-05",
            "capabilities": {},
            "clientInfo": {"name": "pytest", "version": "1.0"}
        }
    })
    assert response.status_code == 200
    headers = dict(MCP_HEADERS, **{"mcp-session-id": response.headers["mcp-session-id"]})

    notified = client.post("/mcp", headers=headers, json={
        "jsonrpc": "2.0", "method": "notifications/initialized"
    })
    assert notified.status_code == 202
    return headers, response.json()


@pytest.fixture
def session(client):
    """Headers of an initialized MCP session."""
    headers, _ = initialize(client)
    yield headers
    client.delete("/mcp", headers=headers)


def rpc(client, headers, method, params=None, request_id=2):
    """POST one JSON-RPC request to /mcp within a session."""
    payload = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        payload["params"] = params
    response = client.post("/mcp", headers=headers, json=payload)
    assert response.status_code == 200
    return response.json()


# ============================================================================
# Health Check Tests
# ============================================================================

def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "google-air-quality-mcp"


def test_root_endpoint(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "service" in data
    assert data["endpoints"]["mcp"] == "/mcp"


# ============================================================================
# Tool Endpoint Tests
# ============================================================================

def test_list_tools(client):
    """Test listing tools."""
    response = client.get("/tool/list")
    assert response.status_code == 200
    data = response.json()
    assert len(data["tools"]) == 4

    tool_names = [tool["name"] for tool in data["tools"]]
    assert "get_current_air_quality" in tool_names
    assert "get_air_quality_forecast" in tool_names
    assert "get_air_quality_history" in tool_names
    assert "get_air_quality_heatmap_tile" in tool_names


def test_call_tool(client, mock_tool_client):
    """Test a successful tool call."""
    mock_tool_client.fetch_current_conditions.return_value = CurrentConditionsResponse(region_code="us")

    response = client.post("/tool/call", json={
        "name": "get_current_air_quality",
        "arguments": {"latitude": 37.7749, "longitude": -122.4194}
    })

    assert response.status_code == 200
    data = response.json()
    assert data["isError"] is False
    assert data["content"][0]["type"] == "text"
    assert '"regionCode": "us"' in data["content"][0]["text"]


def test_call_tool_failure_is_a_result(client, mock_tool_client):
    """Provider failures come back as isError results with HTTP 200."""
    mock_tool_client.fetch_current_conditions.side_effect = ProviderError(500, "quota exceeded")

    response = client.post("/tool/call", json={
        "name": "get_current_air_quality",
        "arguments": {"latitude": 1, "longitude": 2}
    })

    assert response.status_code == 200
    data = response.json()
    assert data["isError"] is True
    assert "quota exceeded" in data["content"][0]["text"]


def test_call_unknown_tool(client):
    """Test calling a tool that is not registered."""
    response = client.post("/tool/call", json={"name": "nope", "arguments": {}})
    assert response.status_code == 400
    assert "not found" in response.json()["message"]


# ============================================================================
# Resource Endpoint Tests
# ============================================================================

def test_list_resources(client):
    """Test listing static resources and templates."""
    response = client.get("/resource/list")
    assert response.status_code == 200
    assert [r["uri"] for r in response.json()["resources"]] == ["example://server-info"]

    response = client.get("/resource/templates")
    assert response.status_code == 200
    assert len(response.json()["resourceTemplates"]) == 4


def test_read_server_info(client):
    """Test reading the static resource."""
    response = client.post("/resource/read", json={"uri": "example://server-info"})
    assert response.status_code == 200
    contents = response.json()["contents"][0]
    assert contents["mimeType"] == "text/plain"
    assert "Google Air Quality MCP Server" in contents["text"]


def test_read_resource_invalid_uri(client, mock_resource_client):
    """A malformed URI is a 400 with a structured error body."""
    response = client.post("/resource/read", json={"uri": "airquality://heatmap/NOT_A_MAP/1/0/0"})
    assert response.status_code == 400
    data = response.json()
    assert data["code"] == 400
    assert "invalid map type" in data["message"]
    assert data["data"]["type"] == "ResourceReadError"
    mock_resource_client.fetch_heatmap_tile.assert_not_called()


def test_read_resource_provider_failure(client, mock_resource_client):
    """A provider failure is a 502 carrying the provider text."""
    mock_resource_client.fetch_current_conditions.side_effect = ProviderError(500, "quota exceeded")

    response = client.post("/resource/read", json={"uri": "airquality://current/1,2"})
    assert response.status_code == 502
    assert "quota exceeded" in response.json()["message"]


def test_read_unknown_resource(client):
    """Test reading a URI no resource matches."""
    response = client.post("/resource/read", json={"uri": "other://thing"})
    assert response.status_code == 400


# ============================================================================
# Prompt Endpoint Tests
# ============================================================================

def test_list_prompts(client):
    """Test listing prompts."""
    response = client.get("/prompt/list")
    assert response.status_code == 200
    assert len(response.json()["prompts"]) == 5


def test_get_prompt(client):
    """Test rendering a prompt."""
    response = client.post("/prompt/get", json={
        "name": "air_quality_heatmap_by_location_prompt",
        "arguments": {"location": "Tokyo"}
    })
    assert response.status_code == 200
    text = response.json()["messages"][0]["content"]["text"]
    assert "Tokyo" in text
    assert "UAQI_RED_GREEN" in text
    assert "10" in text


def test_get_prompt_without_arguments(client):
    """Missing arguments fall back to defaults."""
    response = client.post("/prompt/get", json={"name": "current_air_quality_by_location_prompt"})
    assert response.status_code == 200
    assert "unknown location" in response.json()["messages"][0]["content"]["text"]

# ============================================================================
# Streamable HTTP /mcp Tests
# ============================================================================

def test_mcp_initialize_opens_session(client):
    headers, data = initialize(client)
    assert headers["mcp-session-id"]
    assert data["id"] == 1
    result = data["result"]
    assert result["protocolVersion"] == "2024-11-05"
    assert result["serverInfo"]["name"] == "google-air-quality-mcp"
    assert result["serverInfo"]["version"] == "0.1.0"
    assert {"tools", "resources", "prompts"} <= set(result["capabilities"])

    response = client.delete("/mcp", headers=headers)
    assert response.status_code == 200


def test_mcp_lists(client, session):
    assert len(rpc(client, session, "tools/list")["result"]["tools"]) == 4
    assert len(rpc(client, session, "prompts/list")["result"]["prompts"]) == 5
    assert len(rpc(client, session, "resources/list")["result"]["resources"]) == 1
    assert len(rpc(client, session, "resources/templates/list")["result"]["resourceTemplates"]) == 4


def test_mcp_tool_schema_is_served(client, session):
    tools = {tool["name"]: tool for tool in rpc(client, session, "tools/list")["result"]["tools"]}
    schema = tools["get_current_air_quality"]["inputSchema"]
    assert schema["required"] == ["latitude", "longitude"]
    assert "customLocalAqis" in schema["properties"]


def test_mcp_tool_call(client, session, mock_tool_client):
    mock_tool_client.fetch_current_conditions.return_value = CurrentConditionsResponse(region_code="us")

    data = rpc(client, session, "tools/call", {
        "name": "get_current_air_quality",
        "arguments": {"latitude": 37.7749, "longitude": -122.4194}
    })

    assert data["result"]["isError"] is False
    assert '"regionCode": "us"' in data["result"]["content"][0]["text"]


def test_mcp_tool_call_error_result(client, session, mock_tool_client):
    data = rpc(client, session, "tools/call", {
        "name": "get_air_quality_heatmap_tile",
        "arguments": {"mapType": "US_AQI", "zoom": 20, "x": 0, "y": 0}
    })

    assert data["result"]["isError"] is True
    assert data["result"]["content"][0]["text"] == "zoom must be between 0 and 16"
    mock_tool_client.fetch_heatmap_tile.assert_not_called()


def test_mcp_resource_read(client, session):
    data = rpc(client, session, "resources/read", {"uri": "example://server-info"})
    contents = data["result"]["contents"][0]
    assert contents["mimeType"] == "text/plain"
    assert "Google Air Quality MCP Server" in contents["text"]


def test_mcp_resource_errors(client, session, mock_resource_client):
    mock_resource_client.fetch_forecast.side_effect = ProviderError(500, "quota exceeded")

    data = rpc(client, session, "resources/read", {"uri": "airquality://forecast/1,2"})
    assert data["error"]["code"] == -32002
    assert "quota exceeded" in data["error"]["message"]
    assert data["error"]["data"] == {"status": 502}

    data = rpc(client, session, "resources/read", {"uri": "airquality://forecast/not-a-location"})
    assert data["error"]["code"] == -32002
    assert data["error"]["data"] == {"status": 400}


def test_mcp_prompt_get(client, session):
    data = rpc(client, session, "prompts/get", {
        "name": "air_quality_history_by_location_prompt",
        "arguments": {"location": "Delhi"}
    })
    assert "Delhi" in data["result"]["messages"][0]["content"]["text"]


# ============================================================================
# Entrypoint Tests
# ============================================================================

def test_import_has_no_side_effects():
    """The module only defines the factory; nothing is built at import."""
    assert not hasattr(server, "app")
    assert not hasattr(server, "config")


def test_main_runs_app_factory():
    config = Config(api_key="test-key", port=9001, log_level="DEBUG")

    with patch("src.mcp.server.load_config", return_value=config), \
            patch("src.mcp.server.uvicorn.run") as mock_run:
        server.main()

    mock_run.assert_called_once_with(
        "src.mcp.server:create_app", factory=True, host="0.0.0.0", port=9001
    )
