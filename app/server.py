"""Command-line entry point: ``python -m app.server --port 3000``."""

import argparse
import logging
import os

import uvicorn

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000
# Seconds uvicorn waits for in-flight requests after SIGINT/SIGTERM
SHUTDOWN_TIMEOUT = 10


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Clipper API server.")
    parser.add_argument("--host", default=os.environ.get("HOST", "0.0.0.0"), help="Bind address")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", DEFAULT_PORT)),
        help=f"Server port (default: {DEFAULT_PORT}, or $PORT)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    # Importing the app configures logging
    from app.main import app

    logger.info("Starting Clipper API on %s:%d", args.host, args.port)
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        timeout_graceful_shutdown=SHUTDOWN_TIMEOUT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
