"""Utility functions and tools used across the nodebuild package.

- `logger`: Logging utilities and configuration
"""
