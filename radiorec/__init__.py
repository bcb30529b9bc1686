"""
Radio Recorder - browse a station's program guide and record a broadcast.

This package provides:
- A broadcast time model (05:00 day cutover, 14-digit guide timestamps)
- A recording session state machine with wall-clock progress ticks
- A Telegram bot for browsing the guide and controlling recordings
- Dynamic configuration management
"""

__version__ = "1.0.0"
