"""Command line entry point: ``storefront-mcp-server``.

Runs the storefront client either as an MCP server over stdio (for agent
hosts) or as a REST API on top of FastAPI. Backend location and local state
can be given as flags; they override the matching STOREFRONT_* variables.
"""

import argparse
import asyncio
import logging
import os
import sys

# Flags that map one-to-one onto environment settings read by load_settings()
ENV_FLAGS = {
    "api_url": "STOREFRONT_API_URL",
    "payment_url": "STOREFRONT_PAYMENT_URL",
    "state_file": "STOREFRONT_STATE_FILE",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storefront-mcp-server",
        description=(
            "Home decor storefront client: cart, sign-in session, checkout handoff "
            "and account tools, served over MCP (stdio) or HTTP."
        ),
        epilog="Credentials are read from STOREFRONT_EMAIL and STOREFRONT_PASSWORD.",
    )
    parser.add_argument(
        "--mode",
        choices=["stdio", "http"],
        default="stdio",
        help="stdio serves MCP tools to an agent host; http serves the REST API (default: stdio)",
    )
    parser.add_argument(
        "--api-url",
        help="Backend REST base URL, e.g. http://localhost:5000/api/v1 (env: STOREFRONT_API_URL)",
    )
    parser.add_argument(
        "--payment-url",
        help="Base URL for /payment routes; defaults to the API URL without /v1 (env: STOREFRONT_PAYMENT_URL)",
    )
    parser.add_argument(
        "--state-file",
        help="JSON file holding the persisted cart and auth cookie (env: STOREFRONT_STATE_FILE)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging verbosity written to stderr (default: INFO)",
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Interface for the REST API to bind (http mode only, default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the REST API (http mode only, default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the REST API when source files change (http mode only)",
    )
    return parser


def apply_overrides(args: argparse.Namespace) -> None:
    """Export flag values so the servers pick them up when loading settings."""
    for attr, env_name in ENV_FLAGS.items():
        value = getattr(args, attr)
        if value:
            os.environ[env_name] = value


def main() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    # Must run before the server modules configure logging on import
    logging.basicConfig(level=getattr(logging, args.log_level))
    apply_overrides(args)

    if args.mode == "http":
        from .http_server import run_http_server
        run_http_server(host=args.host, port=args.port, reload=args.reload)
        return

    from .server import main as server_main

    try:
        asyncio.run(server_main())
    except KeyboardInterrupt:
        print("\nShutting down...", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    main()
