"""Rollcall: presence verification for classroom check-ins."""

__version__ = "0.1.0"
