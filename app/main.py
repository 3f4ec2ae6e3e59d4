#!/usr/bin/env python3
"""
Cloud MCP Server - Entry Point

This is the main entry point for the MCP server.
Supports both stdio and streamable-http transports.
"""

import argparse
import signal
import sys
from pathlib import Path

# Add app directory to path for imports when running directly
APP_DIR = Path(__file__).parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from cloud_mcp import __version__
from cloud_mcp.config import CloudMCPServerConfig, load_config, reload_config
from cloud_mcp.server import create_server
from cloud_mcp.utils.logging import get_logger, setup_logging

logger = get_logger("cloud_mcp.main")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Cloud MCP Server for GCP and Azure",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start with stdio transport (default for local dev)
  python main.py --transport stdio

  # Start with HTTP transport
  python main.py --transport streamable-http --port 8080

  # Use custom config directory
  python main.py --config-dir /path/to/config
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cloud-mcp-server {__version__}",
    )
    parser.add_argument(
        "--config-dir",
        type=str,
        help="Configuration directory path (default: ~/.cloudmcp/)",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "streamable-http"],
        help="Transport protocol (overrides config)",
    )
    parser.add_argument(
        "--host",
        type=str,
        help="Host to bind to (for HTTP transport, overrides config)",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port to listen on (for HTTP transport, overrides config)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Logging level (overrides config)",
    )
    return parser.parse_args(argv)


def setup_signal_handlers(config: CloudMCPServerConfig, args: argparse.Namespace) -> None:
    """
    Re-read configuration on SIGHUP.

    Only logging settings take effect without a restart; the tool
    catalogue, executor limits and listeners keep their startup values.
    """

    def handle_sighup(signum, frame):
        reloaded = reload_config(config, args.config_dir)
        log_level = args.log_level or reloaded.server.log_level
        setup_logging(log_level, reloaded.server.log_file)
        logger.warning("Received SIGHUP; logging reconfigured, restart to apply other changes")

    # Only setup SIGHUP on Unix systems
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, handle_sighup)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = load_config(args.config_dir)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    # Apply CLI overrides
    if args.transport:
        config.server.transport = args.transport
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port
    if args.log_level:
        config.server.log_level = args.log_level

    setup_logging(config.server.log_level, config.server.log_file)
    setup_signal_handlers(config, args)

    try:
        mcp = create_server(config)

        logger.info("Starting Cloud MCP Server v%s", __version__)
        logger.info("Transport: %s", config.server.transport)

        if config.server.transport == "stdio":
            mcp.run(transport="stdio")
        else:
            import uvicorn

            logger.info("Running on http://%s:%s", config.server.host, config.server.port)
            uvicorn.run(
                mcp.http_app(),
                host=config.server.host,
                port=config.server.port,
                log_level=config.server.log_level,
            )
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        return 0
    except Exception as e:
        logger.exception("Server error: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
