#!/usr/bin/env python3
"""Scan an organization's repositories into the inventory.

Usage:
    python scripts/scan_org.py --org acme --batch-size 10
    python scripts/scan_org.py --org acme --repo web
    python scripts/scan_org.py --org acme --only-new --queue
"""

import sys

sys.path.insert(0, ".")

from repo_inventory.cli import cli

if __name__ == "__main__":
    sys.exit(cli())
