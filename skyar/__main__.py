#!/usr/bin/env python3
"""
Sky AR - Command line entry point.

Run with:
    python -m skyar scene --lat 34.05 --lon -118.24
"""

from .cli import main

if __name__ == "__main__":
    main()
