"""
Allow running the counter as a Python module.

Usage:
    python -m resource_counter --all-regions
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
