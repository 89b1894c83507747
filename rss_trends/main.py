"""
Main entry point for RSS Trends.

Serves the endpoints over HTTP with aiohttp, or runs a single endpoint
once from the command line.
"""

import argparse
import asyncio
import functools
import json
import logging
import sys
from pathlib import Path

import coloredlogs
from aiohttp import web

from rss_trends.config import AppConfig, config_from_env, load_config
from rss_trends.endpoints import EndpointResponse, Endpoints

logger = logging.getLogger(__name__)

ENDPOINTS_KEY = web.AppKey("endpoints", Endpoints)

# Route path -> Endpoints method
ROUTES = {
    "/api/send-trends": "send_trends",
    "/api/send-news": "send_news",
    "/api/send-test": "send_test",
}

# CLI name -> Endpoints method
COMMANDS = {
    "trends": "send_trends",
    "news": "send_news",
    "test": "send_test",
}

json_dumps = functools.partial(json.dumps, ensure_ascii=False, default=str)


def _make_handler(method: str):
    async def handler(request: web.Request) -> web.Response:
        endpoints = request.app[ENDPOINTS_KEY]
        logger.info("%s %s", request.method, request.path)
        response: EndpointResponse = await getattr(endpoints, method)()
        return web.json_response(
            response.body, status=response.status, dumps=json_dumps
        )

    handler.__name__ = method
    return handler


async def _close_endpoints(app: web.Application) -> None:
    await app[ENDPOINTS_KEY].close()


def create_app(config: AppConfig, endpoints: Endpoints | None = None) -> web.Application:
    """
    Create the aiohttp application exposing the endpoints.

    Parameters
    ----------
    config : AppConfig
        Immutable application configuration.
    endpoints : Endpoints | None
        Endpoint handlers; built from the configuration when omitted.

    Returns
    -------
    web.Application
        The configured application.
    """
    app = web.Application()
    app[ENDPOINTS_KEY] = endpoints or Endpoints(config)

    for path, method in ROUTES.items():
        app.router.add_route("*", path, _make_handler(method))

    app.on_cleanup.append(_close_endpoints)
    return app


async def run_once(config: AppConfig, command: str) -> EndpointResponse:
    """
    Run one endpoint once.

    Parameters
    ----------
    config : AppConfig
        Immutable application configuration.
    command : str
        One of ``trends``, ``news`` or ``test``.

    Returns
    -------
    EndpointResponse
        The endpoint envelope.
    """
    endpoints = Endpoints(config)
    try:
        return await getattr(endpoints, COMMANDS[command])()
    finally:
        await endpoints.close()


def setup_logging(verbose: bool = False) -> None:
    """
    Configure application logging.

    Parameters
    ----------
    verbose : bool
        If True, set log level to DEBUG.
    """
    level = logging.DEBUG if verbose else logging.INFO

    coloredlogs.install(
        level=level,
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("telegram").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


def build_config(config_path: str | None) -> AppConfig:
    """
    Build the configuration from a YAML file or the environment.

    Parameters
    ----------
    config_path : str | None
        Optional path to a YAML configuration file.

    Returns
    -------
    AppConfig
        Immutable application configuration.
    """
    if config_path:
        return load_config(Path(config_path))
    return config_from_env()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Post fresh RSS items to a Telegram channel",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to a YAML configuration file (default: environment only)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Serve the HTTP endpoints")
    serve_parser.add_argument("--host", default=None, help="Interface to bind")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to listen on")

    run_parser = subparsers.add_parser("run", help="Run one endpoint once")
    run_parser.add_argument("endpoint", choices=sorted(COMMANDS))

    args = parser.parse_args()

    setup_logging(args.verbose)

    try:
        config = build_config(args.config)
    except Exception as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    if args.command == "serve":
        host = args.host or config.server.host
        port = args.port or config.server.port
        logger.info("Serving %d endpoint(s) on %s:%d", len(ROUTES), host, port)
        web.run_app(create_app(config), host=host, port=port, print=None)
        return

    response = asyncio.run(run_once(config, args.endpoint))
    print(json_dumps(response.body, indent=2))
    sys.exit(0 if response.ok else 1)


if __name__ == "__main__":
    main()
