#!/usr/bin/env python3
"""
SmartBank Entry Point

Starts the interactive console session over the demo accounts.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from smartbank.cli import app


if __name__ == "__main__":
    if len(sys.argv) == 1:
        sys.argv.append("shell")
    app()
