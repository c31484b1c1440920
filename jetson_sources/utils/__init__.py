"""Utility module for Jetson kernel source provisioning.

This module provides cross-cutting utilities:
- Logging: Console and per-run file logging with credential redaction
"""
