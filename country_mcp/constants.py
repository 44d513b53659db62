"""Shared constants for Country MCP."""

SERVER_NAME = "country-mcp"
SERVER_VERSION = "1.0.0"

# Network defaults
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000

# SSE transport paths
SSE_PATH = "/mcp"
POST_MESSAGES_PATH = "/mcp/messages"
HEALTH_PATH = "/health"

# Query parameter correlating a message post with its SSE stream
SESSION_ID_PARAM = "sessionId"

# Upstream country data API
COUNTRY_API_BASE_URL = "https://restcountries.com/v3.1"
COUNTRY_API_TIMEOUT = 10.0  # seconds

# Logging defaults
LOG_DIR = "logs"
DEFAULT_LOG_LEVEL = "INFO"

# Config file search order (first match wins)
CONFIG_FILE_NAMES = ("config.yaml", "config.yml")
CONFIG_ENV_VAR = "COUNTRY_MCP_CONFIG"

# CORS headers
CORS_ALLOW_ORIGIN = {"Access-Control-Allow-Origin": "*"}
MESSAGE_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "content-type",
}
PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "content-type",
}
