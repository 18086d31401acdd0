#!/usr/bin/env python3
"""Main entry point for commit-squash when run as python -m commit_squash."""

import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main())
