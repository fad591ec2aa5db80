#!/usr/bin/env python3
"""
Package entry point for the Raindrop Exporter.

This allows the package to be executed with: python -m raindrop_exporter
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
