"""Entry point for running journal_analytics as a module.

Usage:
    python -m journal_analytics [command] [options]

Commands:
    pnl         FIFO P&L of one trade
    report      Portfolio analytics summary
    verify      Verify snapshot integrity

Examples:
    python -m journal_analytics pnl t-42
    python -m journal_analytics report --asset-class stock --save
    python -m journal_analytics --snapshot-format csv verify
"""

import sys

from journal_analytics.interfaces.cli import main

if __name__ == "__main__":
    sys.exit(main())
