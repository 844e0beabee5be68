"""
Jack SDK Command-Line Interface
===============================

This package provides command-line tools for the Jack SDK:

- **jackc**: Jack compiler (.jack -> .vm)

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["jackc"]
