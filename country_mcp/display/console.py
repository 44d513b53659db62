"""Console status display for the headless HTTP server."""

import logging
from datetime import datetime
from typing import Any, Dict

from country_mcp.constants import (
    HEALTH_PATH,
    POST_MESSAGES_PATH,
    SERVER_NAME,
    SERVER_VERSION,
    SESSION_ID_PARAM,
    SSE_PATH,
)

logger = logging.getLogger(__name__)


def gen_status_info(host: str, port: int, log_fpath: str, log_lvl: str) -> Dict[str, Any]:
    """Generate a structured dictionary of startup information."""
    # 0.0.0.0 is a bind address, not something a client can dial
    display_host = "localhost" if host in ("0.0.0.0", "::") else host
    base_url = f"http://{display_host}:{port}"
    return {
        "ts": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "base_url": base_url,
        "sse_url": f"{base_url}{SSE_PATH}",
        "post_url": f"{base_url}{POST_MESSAGES_PATH}?{SESSION_ID_PARAM}=",
        "health_url": f"{base_url}{HEALTH_PATH}",
        "log_fpath": log_fpath,
        "log_lvl_cfg": log_lvl,
    }


def disp_console_status(status_info: Dict[str, Any]) -> None:
    """Print the listening endpoints to the console."""
    header = f" {SERVER_NAME} v{SERVER_VERSION} "
    line_len = 70

    print(f"\n{'=' * line_len}")
    print(f"{header:-^{line_len}}")
    print(f"{'=' * line_len}")
    print(f"[{status_info['ts']}] MCP Server listening on {status_info['base_url']}")
    print(f"    SSE Stream: GET {status_info['sse_url']}")
    print(f"    Message post endpoint: POST {status_info['post_url']}")
    print(f"    Health: GET {status_info['health_url']}")
    print(f"    Log File: {status_info['log_fpath']} (level: {status_info['log_lvl_cfg']})")
    print("-" * line_len)

    logger.info(
        "Server endpoints: sse=%s post=%s health=%s",
        status_info["sse_url"],
        status_info["post_url"],
        status_info["health_url"],
    )
