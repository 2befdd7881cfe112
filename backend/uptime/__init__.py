"""Uptime Engine - endpoint polling, uptime history and status change alerts."""

__version__ = "1.0.0"
