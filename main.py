"""
Main entry point for the growth relief pipeline.

Grows a space-colonization branch pattern on a torus, converts it into a
depth map and writes a closed panel mesh as binary STL.

Configuration is loaded from config/pipeline.json (defaults if missing).
Run with --help for the command line overrides.
"""

import sys

from relief.cli import main


if __name__ == '__main__':
    sys.exit(main())
