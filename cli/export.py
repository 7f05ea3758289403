#!/usr/bin/env python3
"""
Export the stored price history as CSV.

Usage:
    python -m cli.export [--output PATH]

Without --output the file is named metalwatch_history_<epoch ms>.csv in
the current directory; "-" writes to stdout.
"""
import argparse
import sys
from datetime import datetime, timezone
from typing import List, Optional

from metalwatch.history.export import default_export_filename, write_csv

from cli.common import build_tracker, load_config


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Export price history to CSV")
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output path, or - for stdout (default: metalwatch_history_<ms>.csv)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to tracker config file",
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    tracker = build_tracker(config)

    if args.output == "-":
        sys.stdout.write(tracker.export_csv())
        return 0

    output = args.output or default_export_filename(datetime.now(timezone.utc))
    path = write_csv(tracker.store.query(), output)
    print(f"Exported {len(tracker.store)} ticks to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
