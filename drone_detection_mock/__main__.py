"""
Main entry point for running the detection mock as a module.

This allows the stream to be started with:
    python -m drone_detection_mock
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
