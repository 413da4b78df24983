#!/usr/bin/env python3
"""
Time Ledger - Main entry point (python -m timeledger).
"""

import sys

from cli.ledger import main

if __name__ == "__main__":
    sys.exit(main())
