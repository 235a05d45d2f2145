"""
Copy local JSON catalog data into the remote store.

Usage: python scripts/migrate_data.py [--data-dir DIR]
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from catalog_admin.migrate import main

if __name__ == "__main__":
    sys.exit(main())
