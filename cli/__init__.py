"""
Command-line entry points for the tracker.

Provides command-line interfaces for:
- Polling service (track)
- Indicator and forecast report (analyze)
- CSV export (export)
"""
