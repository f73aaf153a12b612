"""
Process configuration for the Air Quality MCP server.

Values come from the environment, with a local .env file loaded first.
"""

import logging
import os

import dotenv
from pydantic import BaseModel, Field, ValidationError

from src.airquality.client import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8080
DEFAULT_SERVER_NAME = "google-air-quality-mcp"
SERVER_VERSION = "0.1.0"


class Config(BaseModel):
    """Runtime settings for the server and the provider client."""
    port: int = Field(DEFAULT_PORT, ge=1, le=65535, description="HTTP listen port")
    api_key: str = Field("", description="Air Quality API key")
    server_name: str = Field(DEFAULT_SERVER_NAME, description="Name advertised to MCP clients")
    base_url: str = Field(DEFAULT_BASE_URL, description="Air Quality API base URL")
    log_level: str = Field("INFO", description="Root logging level")
    version: str = Field(SERVER_VERSION, description="Server version advertised to MCP clients")


def load_config() -> Config:
    """
    Load configuration from the environment.

    Returns:
        Config built from PORT, API_KEY, MCP_SERVER_NAME, AIR_QUALITY_BASE_URL and LOG_LEVEL

    Raises:
        ValueError: If a value cannot be parsed (e.g. a non-numeric PORT)
    """
    if not dotenv.load_dotenv():
        logger.info("No .env file loaded, using environment variables and defaults")

    try:
        config = Config(
            port=os.getenv("PORT", str(DEFAULT_PORT)),
            api_key=os.getenv("API_KEY", ""),
            server_name=os.getenv("MCP_SERVER_NAME", DEFAULT_SERVER_NAME),
            base_url=os.getenv("AIR_QUALITY_BASE_URL", DEFAULT_BASE_URL),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e

    if not config.api_key:
        logger.warning("API_KEY is not set. Every Air Quality API call will fail.")

    return config
