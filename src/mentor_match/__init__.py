"""Mentor matching: per-user local persistence, account service and content generation."""

__version__ = "0.4.0"
