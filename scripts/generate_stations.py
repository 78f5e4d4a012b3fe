#!/usr/bin/env python3
"""
Generate the game-ready stations.json.

Usage:
    python scripts/generate_stations.py          # all countries (prompts when interactive)
    python scripts/generate_stations.py DE       # one country
"""

import sys
from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from georadio.cli import main

if __name__ == "__main__":
    sys.exit(main())
