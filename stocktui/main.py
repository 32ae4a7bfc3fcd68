#!/usr/bin/env python3
"""
stocktui - Terminal Stock Dashboard

Main executable. Tracks holdings across several portfolio files, fetches
prices from Yahoo Finance in the background and keeps Taiwan and US tables
sorted as results arrive.

Usage:
    stocktui
    stocktui --portfolio-dir ~/my-portfolios
    DEMO=1 stocktui
    python3 -m stocktui --log-level DEBUG
"""

import argparse
import logging
import sys

from stocktui.app_config import config


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="stocktui", description="Terminal stock portfolio dashboard")
    parser.add_argument("--portfolio-dir", help="directory holding *.conf portfolio files")
    parser.add_argument("--cache-dir", help="directory for cached quotes and history")
    parser.add_argument("--demo", action="store_true", help="show the single demo portfolio (demo.conf)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="log file verbosity")
    return parser.parse_args(argv)


def setup_logging(level: str = "INFO", filename: str = None):
    """Log to file only; anything on stderr would corrupt the curses screen."""
    logging.basicConfig(
        level=getattr(logging, level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(filename or config.LOG_FILENAME),
        ]
    )


def apply_args(args, cfg=None):
    """Apply command line overrides to the configuration instance."""
    cfg = cfg or config
    if args.portfolio_dir:
        cfg.PORTFOLIO_DIRECTORY = args.portfolio_dir
    if args.cache_dir:
        cfg.CACHE_DIRECTORY = args.cache_dir
    if args.demo:
        cfg.DEMO_MODE = True
    return cfg


def main(argv=None):
    """Entry point: configure logging, then run the dashboard under curses.wrapper."""
    args = parse_args(argv)
    apply_args(args)
    setup_logging(args.log_level)

    logger = logging.getLogger(__name__)
    logger.info("Starting stocktui")

    # Imported late so curses is only required when actually running the UI
    from stocktui.app import StockTuiApp

    try:
        StockTuiApp.main(config)
        logger.info("Application completed successfully")
    except KeyboardInterrupt:
        print("\nApplication interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Critical error starting application: {e}")
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
