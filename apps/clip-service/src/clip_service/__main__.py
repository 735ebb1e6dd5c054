"""Entrypoint for running the Clip Service.

Usage:
    python -m clip_service
    python -m clip_service --port 8000
    python -m clip_service --host 0.0.0.0 --port 8000
"""

import argparse
import logging
import os
import sys

from clip_service.logging_config import configure_logging


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Clip Service - trim and concatenate videos with ffmpeg"
    )
    parser.add_argument(
        "--host",
        default=os.getenv("CLIP_HOST", "0.0.0.0"),
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("CLIP_PORT", "8000")),
        help="Port to listen on (default: 8000)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser.parse_args()


def main() -> None:
    """Main entrypoint for the clip service."""
    args = parse_args()
    configure_logging(args.log_level)

    logger = logging.getLogger(__name__)
    logger.info(f"Starting Clip Service on {args.host}:{args.port}")

    try:
        import uvicorn

        uvicorn.run(
            "clip_service.main:app",
            host=args.host,
            port=args.port,
            log_level=args.log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
