"""
mdtasks server entry point.

Startup sequence:
1. Read DATA_DIR, API_ENABLED and API_PORT from environment
2. Create the data directory if needed and open a FileProjectStore
3. Start REST API server in background thread (if API_ENABLED)
4. Register all MCP tools
5. Run MCP server (stdio transport)
"""

import logging
import os
import sys
import threading
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from mdtasks.store.file_store import FileProjectStore
from mdtasks.tools import register_task_tools

log = logging.getLogger(__name__)


def _configure_logging() -> None:
    # stdout belongs to the MCP stdio transport
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _start_api_server(store, port: int) -> None:
    """Run the FastAPI/uvicorn server in a daemon thread."""
    import uvicorn

    from mdtasks.api.app import create_app

    app = create_app(store)
    log.info("Starting REST API on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="warning")


def main() -> None:
    _configure_logging()

    data_dir_env = os.environ.get("DATA_DIR", "")
    if not data_dir_env:
        log.error("DATA_DIR environment variable is not set")
        sys.exit(1)

    data_dir = Path(data_dir_env)
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        log.error("Cannot create DATA_DIR %s: %s", data_dir, e)
        sys.exit(1)
    if not data_dir.is_dir():
        log.error("DATA_DIR is not a directory: %s", data_dir)
        sys.exit(1)

    api_port_raw = os.environ.get("API_PORT", "9400")
    try:
        api_port = int(api_port_raw)
    except ValueError:
        log.error("API_PORT must be an integer, got %r", api_port_raw)
        sys.exit(1)

    log.info("Data dir: %s", data_dir)
    store = FileProjectStore(data_dir)

    api_enabled = os.environ.get("API_ENABLED", "true").lower() in ("true", "1", "yes")
    if api_enabled:
        api_thread = threading.Thread(
            target=_start_api_server, args=(store, api_port), daemon=True
        )
        api_thread.start()

    mcp = FastMCP("mdtasks")
    register_task_tools(mcp, store)

    log.info("Starting mdtasks server")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
