#!/usr/bin/env python3
"""
HQ STUDIO - comic strips generated panel by panel.

Runs the web interface.
"""

import argparse
import logging

from dotenv import load_dotenv

from app import create_app
from hqstudio.config import StudioConfig


def main():
    """Entry point."""
    parser = argparse.ArgumentParser(description="HQ Studio - AI comic strip generator")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, default=5000, help="Port to listen on")
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use the offline generator (no API calls)"
    )
    parser.add_argument(
        "--no-logs",
        action="store_true",
        help="Do not write interaction logs"
    )
    parser.add_argument("--debug", action="store_true", help="Run Flask in debug mode")
    parser.add_argument("--log-level", default="INFO", help="Logging level")

    args = parser.parse_args()

    # Load environment variables
    load_dotenv()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {}
    if args.mock:
        overrides["use_mock"] = True
    if args.no_logs:
        overrides["log_dir"] = None
    config = StudioConfig.from_env(**overrides)

    if not config.api_key and not config.use_mock:
        print("Warning: OPENAI_API_KEY not found in environment.")
        print("Please set it in a .env file or export it as an environment variable.")
        print("Running with the offline generator.\n")

    app = create_app(config)
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
