"""
Entry point for running layergraph as a module.

Usage:
    python -m layergraph
"""

import sys

from layergraph.main import main

if __name__ == "__main__":
    sys.exit(main())
