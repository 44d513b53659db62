"""CLI argument parsing and main entry point.

Provides two modes of operation:

* ``country-mcp serve`` - run the HTTP/SSE server under Uvicorn.
* ``country-mcp stdio`` - serve a single session over stdin/stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import socket
import sys
from typing import List, Optional

import uvicorn

from country_mcp.config.loader import load_config
from country_mcp.config.schema import AppConfig
from country_mcp.constants import SERVER_NAME, SERVER_VERSION
from country_mcp.display.console import disp_console_status, gen_status_info
from country_mcp.display.logging_config import setup_logging
from country_mcp.errors import ConfigurationError

module_logger = logging.getLogger(__name__)


def _load_config_or_exit(config_path: Optional[str]) -> AppConfig:
    try:
        return load_config(config_path)
    except ConfigurationError as e_cfg:
        print(f"Error: {e_cfg}", file=sys.stderr)
        sys.exit(1)


def _port_in_use(host: str, port: int) -> Optional[OSError]:
    """Return the bind error if *host*:*port* is unavailable."""
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        probe.bind((host, port))
    except OSError as e_bind:
        return e_bind
    finally:
        probe.close()
    return None


# ── ``country-mcp serve`` ────────────────────────────────────────────────


async def _run_server(config: AppConfig, log_fpath: str, log_lvl: str) -> None:
    """Async main for the serve subcommand."""
    from country_mcp.server.app import create_app

    host = config.server.host
    port = config.server.port

    bind_err = _port_in_use(host, port)
    if bind_err is not None:
        module_logger.error("Port %s on %s is already in use: %s", port, host, bind_err)
        print(
            f"\nError: Port {port} on {host} is already in use.\n"
            f"   Release the port or choose a different one with --port.\n",
            file=sys.stderr,
        )
        sys.exit(1)

    uvicorn_cfg = uvicorn.Config(
        app=create_app(config),
        host=host,
        port=port,
        log_config=None,
        log_level=log_lvl.lower() if log_lvl == "DEBUG" else "warning",
    )
    uvicorn_svr = uvicorn.Server(uvicorn_cfg)

    disp_console_status(gen_status_info(host, port, log_fpath, log_lvl))
    try:
        await uvicorn_svr.serve()
    except (KeyboardInterrupt, SystemExit) as e_exit:
        module_logger.info("Server stopped due to '%s'.", type(e_exit).__name__)
    finally:
        module_logger.info("%s has shut down or is shutting down.", SERVER_NAME)


def _cmd_serve(args: argparse.Namespace) -> None:
    """Entry-point for ``country-mcp serve``."""
    config = _load_config_or_exit(args.config)
    if args.host is not None:
        config.server.host = args.host
    if args.port is not None:
        config.server.port = args.port

    log_fpath, log_lvl = setup_logging(
        args.log_level or config.logging.level,
        log_dir=config.logging.directory,
        console=config.logging.console,
    )
    module_logger.info(
        "---- %s v%s starting (log level: %s) ----", SERVER_NAME, SERVER_VERSION, log_lvl
    )

    try:
        asyncio.run(_run_server(config, log_fpath, log_lvl))
    except KeyboardInterrupt:
        module_logger.info("%s interrupted by KeyboardInterrupt.", SERVER_NAME)
    except Exception as e_fatal:
        module_logger.exception("%s encountered an uncaught fatal error: %s", SERVER_NAME, e_fatal)
        sys.exit(1)


# ── ``country-mcp stdio`` ────────────────────────────────────────────────


def _cmd_stdio(args: argparse.Namespace) -> None:
    """Entry-point for ``country-mcp stdio``."""
    from country_mcp.stdio import run_stdio

    config = _load_config_or_exit(args.config)
    setup_logging(
        args.log_level or config.logging.level,
        log_dir=config.logging.directory,
        console=config.logging.console,
    )

    try:
        asyncio.run(run_stdio(config))
    except KeyboardInterrupt:
        module_logger.info("Stdio server interrupted by KeyboardInterrupt.")
    except Exception as e_fatal:
        module_logger.critical("Fatal error in stdio server: %s", e_fatal, exc_info=True)
        sys.exit(1)


def _port_arg(value: str) -> int:
    """argparse type for ``--port``: an integer in 1-65535."""
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port '{value}'") from None
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port {port} is out of range (1-65535)")
    return port


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with serve/stdio subcommands."""
    parser = argparse.ArgumentParser(
        prog="country-mcp",
        description=f"{SERVER_NAME} v{SERVER_VERSION}",
    )
    subparsers = parser.add_subparsers(dest="command")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        help="Set logging level (default: from config, else info)",
    )
    common.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Path to configuration file (YAML). Default: auto-detect config.yaml/config.yml",
    )

    # ── serve ───────────────────────────────────────────────────
    sp_serve = subparsers.add_parser(
        "serve",
        parents=[common],
        help="Run the HTTP/SSE server",
    )
    sp_serve.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host address (default: from config/HOST, else 0.0.0.0)",
    )
    sp_serve.add_argument(
        "--port",
        type=_port_arg,
        default=None,
        help="Port (default: from config/port env var, else 8000)",
    )
    sp_serve.set_defaults(func=_cmd_serve)

    # ── stdio ───────────────────────────────────────────────────
    sp_stdio = subparsers.add_parser(
        "stdio",
        parents=[common],
        help="Serve a single MCP session over stdin/stdout",
    )
    sp_stdio.set_defaults(func=_cmd_stdio)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Program entry point: parse arguments and dispatch to subcommand."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)
    else:
        args.func(args)
