#!/usr/bin/env python3
"""
Simple launcher script for the arbitrage bot.
"""
import argparse
import logging
import asyncio
import sys

from arbitrage_bot.errors import ConfigError
from arbitrage_bot.main import main, setup_logging

if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Round-trip Jupiter/Jito arbitrage bot. Bundles are only submitted in live mode.')
    parser.add_argument(
        'mode',
        nargs='?',
        default=None,
        choices=['scan', 'live'],
        help=('Operation mode: scan builds and signs profitable round trips but never submits them; '
              'live also submits each one as a Jito bundle. Default from MODE (scan)')
    )
    parser.add_argument(
        '--cycles',
        type=int,
        default=None,
        help='Stop after this many cycles (default: run until interrupted)'
    )
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    args = parser.parse_args()
    setup_logging(level=logging.DEBUG if args.debug else logging.INFO)

    try:
        asyncio.run(main(mode=args.mode, max_cycles=args.cycles))
    except KeyboardInterrupt:
        print("\nBot stopped by user")
        sys.exit(0)
    except ConfigError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)
