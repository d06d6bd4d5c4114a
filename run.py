#!/usr/bin/env python3
"""Convenience runner for the Intervals.icu duplicate cleaner.

Usage:
    python run.py --dry-run
"""
import logging
import sys

from intervals_deduper.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    sys.exit(main())
