#!/usr/bin/env python3
"""
Run the Comp Valuation Engine web server.

Host and port come from HOST / PORT unless given on the command line.
Use --host 0.0.0.0 in containers.
"""

import argparse

import uvicorn

from utils.config import Config, configure_logging


def main(argv=None):
    """Start the web server."""
    config = Config.load()

    parser = argparse.ArgumentParser(description="Comp Valuation Engine API server")
    parser.add_argument("--host", default=config.host, help=f"Bind address (default {config.host})")
    parser.add_argument("--port", type=int, default=config.port, help=f"Port (default {config.port})")
    parser.add_argument("--reload", action="store_true", default=config.debug, help="Reload on code changes")
    args = parser.parse_args(argv)

    configure_logging(config.log_level)

    print(f"Starting Comp Valuation Engine on http://{args.host}:{args.port}")
    print("Press Ctrl+C to stop")

    uvicorn.run(
        "web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
