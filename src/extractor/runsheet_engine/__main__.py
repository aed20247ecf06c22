"""Main module for running the run-sheet engine."""

import sys

from runsheet_engine.cli import main

if __name__ == "__main__":
    sys.exit(main())
