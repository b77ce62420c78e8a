#!/usr/bin/env python3
"""
Animorex auth broker - Discord/Google login exchanged for a signed session cookie.
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)

logger = logging.getLogger(__name__)

#
# NOTE: Keep broker imports lazy (inside functions) so `.env` is loaded before
# configuration is read.
#


def check_config() -> int:
    """Report missing settings; returns a process exit code."""
    from broker.auth.config import load_auth_config

    cfg = load_auth_config()
    missing = cfg.missing_settings()
    if missing:
        print("Missing required settings:", file=sys.stderr)
        for name in missing:
            print(f"  - {name}", file=sys.stderr)
        return 1
    print("Configuration OK")
    return 0


def main(argv=None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Identity broker: exchanges Discord/Google OAuth2 codes for a session cookie",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate environment / .env configuration
  python main.py --check-config

  # Run the HTTP server (PORT from the environment, default 8080)
  python main.py --serve
        """,
    )
    parser.add_argument("--serve", action="store_true", help="Run the auth broker HTTP server")
    parser.add_argument("--check-config", action="store_true", help="Validate configuration and exit")
    parser.add_argument("--host", default=None, help="Server bind host (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Server listen port (default: $PORT or 8080)")

    args = parser.parse_args(argv)
    load_dotenv()

    if args.check_config:
        return check_config()

    if args.serve:
        from broker.api.server import run
        from broker.auth.config import ConfigError

        try:
            run(host=args.host, port=args.port)
        except ConfigError as e:
            logger.error("Refusing to start: %s", str(e))
            return 2
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
