"""
Lab Report Parser Service — Main Entry Point
============================================
Starts the Flask-based extraction service.

Usage:
    python main.py                    # Default: 0.0.0.0:4000 (or HOST/PORT)
    python main.py --port 8000        # Custom port
    python main.py --debug            # Debug mode
"""

import argparse
import logging

from labparser.config import Settings, setup_logging
from labparser.server import create_app

logger = logging.getLogger("labparser.main")


def main():
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="Lab Report Parser Service")
    parser.add_argument("--host", default=settings.host, help="Bind host")
    parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    parser.add_argument("--debug", action="store_true", help="Debug mode")
    args = parser.parse_args()

    setup_logging(settings.log_level, settings.log_file)

    # create_app() builds the OpenAI client and rasterizer once for the process
    logger.info("Creating Flask app...")
    app = create_app(settings=settings)

    logger.info(f"Starting server on {args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
