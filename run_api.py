import argparse

import uvicorn

from common.core.telemetry import get_logger

logger = get_logger(__name__)


def setup_cli():
    """Setup CLI arguments and return parsed args."""
    parser = argparse.ArgumentParser(description="Kubernetes Job Trigger API")
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Bind address (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Bind port (default: 8080)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Log level (default: info)",
    )
    return parser.parse_args()


def main():
    """Main entry point with command-line argument support."""
    args = setup_cli()
    logger.info(f"Starting API on {args.host}:{args.port}")
    # Single worker: job monitors live in this process
    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        workers=1,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
