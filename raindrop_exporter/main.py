#!/usr/bin/env python3
"""
Main entry point for the Raindrop Exporter.

This module serves as the primary entry point for the console script.
"""

import sys

from raindrop_exporter.cli import main

if __name__ == "__main__":
    sys.exit(main())
